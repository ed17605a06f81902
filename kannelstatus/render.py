"""HTML rendering of collected instance reports.

Each section is rendered by its own function returning an HTML fragment;
render_dashboard() stitches them into the page. All text taken from the
status documents or the configuration is escaped here.
"""

import math
from datetime import datetime
from html import escape
from urllib.parse import urlencode

from ._dashboard import build_page
from .commands import ADMIN_COMMANDS, LINK_COMMANDS, admin_url, link_admin_url
from .config import DEFAULT_QUEUE_ERROR_THRESHOLD
from .fetcher import mask_password
from .formatting import format_decimal, format_integer
from .models import InstanceReport, LinkInfo, LinkState, Totals

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# States shown in red when any link is in them; the rest are neutral.
_ALERT_STATES = (LinkState.DISCONNECTED, LinkState.CONNECTING, LinkState.RECONNECTING)

_STATE_TITLES = {
    LinkState.ONLINE: "Online",
    LinkState.DISCONNECTED: "Disconnected",
    LinkState.CONNECTING: "Connecting",
    LinkState.RECONNECTING: "Re-connecting",
    LinkState.DEAD: "Dead",
    LinkState.UNKNOWN: "Unknown",
}

_INDENT = '<span class="indent"></span>'


def page_url(path: str, refresh: int, details: bool) -> str:
    """Build the dashboard URL for a refresh interval and details flag."""
    params: dict[str, int] = {"refresh": refresh}
    if details:
        params["details"] = 1
    return f"{path}?{urlencode(params)}"


def _state_class(state: LinkState) -> str:
    if state is LinkState.ONLINE:
        return "green"
    if state in _ALERT_STATES:
        return "red"
    return "text"


def _render_header(now: datetime, refresh: int, details: bool, path: str) -> str:
    t_down = math.ceil(refresh / 2)
    t_up = refresh * 2
    down_url = escape(page_url(path, t_down, details))
    up_url = escape(page_url(path, t_up, details))
    return f"""<table>
<tr><td><h3>Kannel Status Monitor</h3></td>
<td class="text">Current date and time: <br /><b>{now.strftime(TIME_FORMAT)}</b></td>
<td class="text right">Refresh rate: <br />
  <a class="href" href="{down_url}">{t_down}s</a> |
  <b>{refresh}s</b> |
  <a class="href" href="{up_url}">{t_up}s</a>
</td></tr>
</table>"""


def _render_admin_links(report: InstanceReport) -> str:
    instance = report.instance
    links = []
    for command in ADMIN_COMMANDS:
        links.append(
            f'<a class="href admin" href="{escape(admin_url(instance, command))}" '
            f'data-command="{command}" data-target="{escape(instance.name)}">{command}</a>'
        )
    # Two rows of three, as on the bearerbox admin page.
    return " |\n".join(links[:3]) + " <br />\n" + " |\n".join(links[3:])


def _render_instance(report: InstanceReport) -> str:
    instance = report.instance
    css = "green" if report.ok else "red"
    lines = [
        f'<span class="{css}">({report.index}) ({escape(instance.name)}) '
        f"<b>{escape(mask_password(report.fetch.url))}</b></span> <br />"
    ]

    if not report.ok:
        lines.append(f'{_INDENT}<span class="red">{escape(report.fetch.error or "")}</span> <br />')
    else:
        if report.uptime is not None:
            uptime = report.uptime
            lines.append(
                f"{_INDENT}<b>{escape(uptime.label)}</b>, "
                f"started {uptime.started.strftime(TIME_FORMAT)}, uptime {uptime} <br />"
            )
        lines.append(f"{_INDENT}<b>Inbound:</b> {escape(report.inbound_text)} <br />")
        lines.append(f"{_INDENT}<b>Outbound:</b> {escape(report.outbound_text)} <br />")
        version = "<br />\n".join(escape(line) for line in report.version.split("\n"))
        lines.append(f"{_INDENT}<b>Version:</b> {version} <br />")

    return (
        '<tr><td class="text">\n'
        + "\n".join(lines)
        + '\n</td><td class="text right">\n'
        + _render_admin_links(report)
        + "\n</td></tr>"
    )


def _render_instances(reports: list[InstanceReport]) -> str:
    rows = "\n".join(_render_instance(r) for r in reports)
    return f"""<table>
<tr><td class="text">{len(reports)} instance(s) configured for this monitor: <br /></td>
<td class="text right">Admin commands:</td></tr>
{rows}
</table>"""


def _traffic_cell(
    reports: list[InstanceReport],
    values: list[str],
    total: str,
    unit: str,
    bold: bool = True,
    total_error: bool = False,
) -> str:
    lines = []
    for report, value in zip(reports, values):
        shown = f"<b>{value}</b>" if bold else value
        lines.append(f"({report.index}) {shown} {unit}<br />")
    lines.append('<hr size="1" />')
    shown_total = f"<b>{total}</b> {unit}" if bold else f"{total} {unit}"
    if total_error:
        shown_total = f'<span class="red">{total} {unit}</span>'
    lines.append(f"(all) {shown_total} <br />")
    return '<td class="text right">\n' + "\n".join(lines) + "\n</td>"


def _render_traffic(reports: list[InstanceReport], totals: Totals, queue_error_threshold: int) -> str:
    cells = [
        _traffic_cell(
            reports, [format_integer(r.received_total) for r in reports], format_integer(totals.received), "msgs"
        ),
        _traffic_cell(
            reports, [format_decimal(r.inbound) for r in reports], format_decimal(totals.inbound), "msgs/s"
        ),
        _traffic_cell(reports, [format_integer(r.sent_total) for r in reports], format_integer(totals.sent), "msgs"),
        _traffic_cell(
            reports, [format_decimal(r.outbound) for r in reports], format_decimal(totals.outbound), "msgs/s"
        ),
        _traffic_cell(
            reports,
            [format_integer(r.received_queued) for r in reports],
            format_integer(totals.queued_mo),
            "msgs",
            bold=False,
            total_error=totals.queued_mo > queue_error_threshold,
        ),
        _traffic_cell(
            reports,
            [format_integer(r.sent_queued) for r in reports],
            format_integer(totals.queued_mt),
            "msgs",
            bold=False,
            total_error=totals.queued_mt > queue_error_threshold,
        ),
    ]
    headers = ["Received (MO)", "Inbound (MO)", "Sent (MT)", "Outbound (MT)", "Queued (MO)", "Queued (MT)"]
    header_row = "".join(f'<td class="text right">{h}</td>' for h in headers)
    cells_html = "\n".join(cells)
    return f"""<h4>Overall SMS traffic</h4>
<div class="bord">
<table class="traffic">
<tr>{header_row}</tr>
<tr>
{cells_html}
</tr>
</table>
</div>"""


def _render_box_rows(report: InstanceReport) -> list[str]:
    prefix = f'<tr><td class="text center">({report.index})</td>'
    if not report.ok:
        return [prefix + '<td colspan="7" class="text"><span class="red"><b>status unavailable</b></span></td></tr>']
    if not report.boxes:
        return [
            prefix + '<td colspan="7" class="text">'
            '<span class="red"><b>no boxes connected to this bearerbox!</b></span></td></tr>'
        ]

    rows = []
    for box in report.boxes:
        started = ""
        if box.uptime is not None:
            started = f"{box.uptime.started.strftime(TIME_FORMAT)}, uptime {box.uptime}"
        rows.append(
            prefix
            + f'<td class="text"><b>{escape(box.type)}</b></td>'
            + f'<td class="text nowrap">{escape(box.id)}</td>'
            + f'<td class="text nowrap">{escape(box.ip)}</td>'
            + f'<td class="text right nowrap"><b>{escape(box.queue)}</b> msgs</td>'
            + "<td></td>"
            + f'<td class="text nowrap">{started}</td>'
            + f'<td class="text nowrap">{escape(box.ssl)}</td></tr>'
        )
    return rows


def _render_boxes(reports: list[InstanceReport]) -> str:
    rows_html = "\n".join(row for report in reports for row in _render_box_rows(report))
    return f"""<h4>Box connections</h4>
<div class="bord">
<table>
<tr><td class="text center">Instance</td><td class="text">Type</td><td class="text">ID</td>
<td class="text">IP</td><td class="text right">Queued (MO)</td><td></td>
<td class="text">Started</td><td class="text">SSL</td></tr>
{rows_html}
</table>
</div>"""


def _links_count_cell(reports: list[InstanceReport], totals: Totals) -> str:
    lines = []
    for report in reports:
        shown = f"{report.link_count} links" if report.has_status else "none"
        lines.append(f"({report.index}) {shown}<br />")
    lines.append('<hr size="1" />')
    lines.append(f"(all) {totals.links} links <br />")
    return '<td class="text right">\n' + "\n".join(lines) + "\n</td>"


def _online_cell(reports: list[InstanceReport], totals: Totals) -> str:
    lines = []
    for report in reports:
        if not report.has_status:
            shown = "none"
        else:
            online = report.link_states.get(LinkState.ONLINE, 0)
            shown = "<b>all</b> links" if online == report.link_count else f"{online} links"
        lines.append(f"({report.index}) {shown}<br />")
    lines.append('<hr size="1" />')
    lines.append(f"(all) {totals.link_states.get(LinkState.ONLINE, 0)} links <br />")
    return '<td class="text right"><span class="green">\n' + "\n".join(lines) + "\n</span></td>"


def _state_cell(reports: list[InstanceReport], totals: Totals, state: LinkState) -> str:
    css = _state_class(state)
    lines = []
    for report in reports:
        count = report.link_states.get(state, 0)
        if count == 0:
            shown = '<span class="text">none</span>'
        else:
            ids = " ".join(report.link_ids.get(state, []))
            shown = (
                f'<a href="#" class="href link-ids" data-state="{state.value}" data-ids="{escape(ids)}">'
                f'<span class="{css}"><b>{count}</b> links</span></a>'
            )
        lines.append(f"({report.index}) {shown}<br />")
    lines.append('<hr size="1" />')
    lines.append(f"(all) {totals.link_states.get(state, 0)} links <br />")
    return '<td class="text right">\n' + "\n".join(lines) + "\n</td>"


def _render_link_summary(reports: list[InstanceReport], totals: Totals) -> str:
    cells = [_links_count_cell(reports, totals), _online_cell(reports, totals)]
    cells.extend(_state_cell(reports, totals, state) for state in LinkState if state is not LinkState.ONLINE)
    headers = ["Links"] + [_STATE_TITLES[state] for state in LinkState]
    header_row = "".join(f'<td class="text right">{h}</td>' for h in headers)
    cells_html = "\n".join(cells)
    return f"""<h4>SMSC connections</h4>
<div class="bord">
<table>
<tr>{header_row}</tr>
<tr>
{cells_html}
</tr>
</table>
</div>"""


def _render_link_state(link: LinkInfo) -> str:
    if link.state is None:
        return f'<span class="text">{escape(link.status)}</span>'
    shown = f'<span class="{_state_class(link.state)}">{link.state.value}</span>'
    if link.state is LinkState.ONLINE and link.online_seconds is not None:
        shown += f" <br /> ({link.online_seconds}s)"
    return shown


def _render_link_rows(report: InstanceReport) -> list[str]:
    rows = []
    for link in report.links:
        started = f"started {link.started.strftime(TIME_FORMAT)}" if link.started is not None else ""
        commands = " <br />\n".join(
            f'<a class="href admin" href="{escape(link_admin_url(report.instance, command, link.id))}" '
            f'data-command="{command}" data-target="{escape(link.id)}">{command.split("-")[0]}</a>'
            for command in LINK_COMMANDS
        )
        rows.append(
            f'<tr><td class="text center">({report.index})</td>'
            f'<td class="text"><b>{escape(link.id)}</b> <br />{escape(link.name)}</td>'
            f'<td class="text nowrap">{_render_link_state(link)}</td>'
            f'<td class="text nowrap">{started}</td>'
            f'<td class="text right nowrap">{format_integer(link.received)}</td>'
            f'<td class="text right nowrap">{format_integer(link.sent)}</td>'
            f'<td class="text right nowrap">{format_integer(link.failed)}</td>'
            f'<td class="text right nowrap">{format_integer(link.queued)}</td>'
            f'<td class="text right nowrap">{commands}</td></tr>'
        )
    return rows


def _render_link_details(reports: list[InstanceReport]) -> str:
    rows_html = "\n".join(row for report in reports for row in _render_link_rows(report))
    headers = (
        '<td class="text">Instance</td><td class="text">SMSC-ID</td><td class="text">Status</td>'
        '<td class="text">Started</td><td class="text right">Received (MO)</td>'
        '<td class="text right">Sent (MT)</td><td class="text right">Failed (MT)</td>'
        '<td class="text right">Queued (MT)</td><td class="text right">Admin</td>'
    )
    return f"""<h4>SMSC connection details</h4>
<div class="bord">
<table>
<tr>{headers}</tr>
{rows_html}
</table>
</div>"""


def render_dashboard(
    reports: list[InstanceReport],
    totals: Totals,
    *,
    refresh: int,
    details: bool = False,
    path: str = "/",
    now: datetime | None = None,
    queue_error_threshold: int = DEFAULT_QUEUE_ERROR_THRESHOLD,
) -> str:
    """Render the full status page.

    Args:
        reports: One report per configured instance, in order.
        totals: Sums across the reports.
        refresh: Meta-refresh interval in seconds.
        details: Whether to include the per-link details table.
        path: Request path the page is served at, used for self links.
        now: Time shown in the header (defaults to now).
        queue_error_threshold: Queued sum above which totals are flagged.

    Returns:
        Complete HTML document.
    """
    if now is None:
        now = datetime.now()

    sections = [
        _render_header(now, refresh, details, path),
        _render_instances(reports),
        _render_traffic(reports, totals, queue_error_threshold),
        _render_boxes(reports),
        _render_link_summary(reports, totals),
    ]
    if details:
        sections.append(_render_link_details(reports))
    else:
        details_url = escape(page_url(path, refresh, True))
        sections.append(f'<p><a class="href" href="{details_url}">SMSC connection details</a></p>')

    return build_page("\n\n".join(sections), refresh, escape(page_url(path, refresh, details)))
