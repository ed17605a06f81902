"""Reading bearerbox metrics out of a raw status.xml document."""

import logging
import re
from collections.abc import Iterator
from datetime import datetime, timedelta

from .extract import iter_elements, xpath_value
from .formatting import to_int, to_number
from .models import BoxInfo, InstanceReport, LinkInfo, LinkState, StatusFetch, Uptime

logger = logging.getLogger(__name__)

# "running, uptime 0d 2h 15m 7s" (gateway/status)
_GATEWAY_UPTIME_RE = re.compile(r"(.*), uptime (\d+)d (\d+)h (\d+)m (\d+)s")

# "on-line 0d 1h 2m 3s" (gateway/boxes/box/status)
_BOX_UPTIME_RE = re.compile(r"on-line (\d+)d (\d+)h (\d+)m (\d+)s")

# "online 3600s" (gateway/smscs/smsc/status)
_LINK_ONLINE_RE = re.compile(r"online (\d+)s")


def _text(path: str, document: str) -> str:
    """Extract a value, treating a missing tag as empty text."""
    value = xpath_value(path, document)
    return value if value is not None else ""


def _make_uptime(label: str, parts: tuple[str, ...], now: datetime) -> Uptime:
    days, hours, minutes, seconds = (int(p) for p in parts)
    total = days * 86400 + hours * 3600 + minutes * 60 + seconds
    return Uptime(
        label=label,
        days=days,
        hours=hours,
        minutes=minutes,
        seconds=seconds,
        started=now - timedelta(seconds=total),
    )


def parse_uptime(text: str | None, now: datetime) -> Uptime | None:
    """Parse the gateway status line ("<label>, uptime <d>d <h>h <m>m <s>s").

    Args:
        text: Content of gateway/status.
        now: Reference time the start time is computed from.

    Returns:
        Uptime with its start time, or None if the text does not match.
    """
    if not text:
        return None
    match = _GATEWAY_UPTIME_RE.search(text)
    if match is None:
        return None
    return _make_uptime(match.group(1), match.groups()[1:], now)


def parse_box_uptime(text: str | None, now: datetime) -> Uptime | None:
    """Parse a box status line ("on-line <d>d <h>h <m>m <s>s")."""
    if not text:
        return None
    match = _BOX_UPTIME_RE.search(text)
    if match is None:
        return None
    return _make_uptime("", match.groups(), now)


def parse_link_online_seconds(text: str | None) -> int | None:
    """Return the seconds an online link has been up ("online 3600s")."""
    if not text:
        return None
    match = _LINK_ONLINE_RE.search(text)
    if match is None:
        return None
    return int(match.group(1))


def classify_link(status: str) -> LinkState | None:
    """Map a link status text to its state by literal prefix."""
    for state in LinkState:
        if status.startswith(state.value):
            return state
    return None


def _state_name(state: LinkState | str) -> str:
    return state.value if isinstance(state, LinkState) else state


def _iter_links(document: str) -> Iterator[str]:
    smscs = xpath_value("gateway/smscs", document)
    if smscs is None:
        return iter(())
    return iter_elements("smsc", smscs)


def count_links_in_state(state: LinkState | str, document: str) -> int:
    """Count the links whose status text starts with the state name.

    Args:
        state: State to count, e.g. LinkState.ONLINE or "online".
        document: Raw status document.

    Returns:
        Number of matching <smsc> elements (0 for an empty document).
    """
    name = _state_name(state)
    return sum(1 for smsc in _iter_links(document) if _text("status", smsc).startswith(name))


def ids_in_state(state: LinkState | str, document: str) -> list[str]:
    """Return the smsc-ids of the links in the given state, in document order."""
    name = _state_name(state)
    return [_text("id", smsc) for smsc in _iter_links(document) if _text("status", smsc).startswith(name)]


def parse_boxes(document: str, now: datetime) -> list[BoxInfo]:
    """Read every <box> under gateway/boxes."""
    boxes_text = _text("gateway/boxes", document).strip()
    boxes: list[BoxInfo] = []
    for box in iter_elements("box", boxes_text):
        status = _text("status", box)
        boxes.append(
            BoxInfo(
                type=_text("type", box),
                id=_text("id", box),
                ip=_text("IP", box),
                queue=_text("queue", box),
                status=status,
                ssl=_text("ssl", box),
                uptime=parse_box_uptime(status, now),
            )
        )
    return boxes


def parse_links(document: str, now: datetime) -> list[LinkInfo]:
    """Read every <smsc> under gateway/smscs."""
    links: list[LinkInfo] = []
    for smsc in _iter_links(document):
        status = _text("status", smsc)
        online_seconds = parse_link_online_seconds(status)
        links.append(
            LinkInfo(
                id=_text("id", smsc),
                name=_text("name", smsc),
                status=status,
                state=classify_link(status),
                received=to_int(_text("received", smsc)),
                sent=to_int(_text("sent", smsc)),
                failed=to_int(_text("failed", smsc)),
                queued=to_int(_text("queued", smsc)),
                online_seconds=online_seconds,
                started=now - timedelta(seconds=online_seconds) if online_seconds is not None else None,
            )
        )
    return links


def build_report(index: int, fetch: StatusFetch, now: datetime) -> InstanceReport:
    """Extract every dashboard metric for one instance.

    A failed fetch produces an empty report: no extraction is attempted and
    all counters stay at zero.
    """
    if not fetch.ok:
        return InstanceReport(index=index, fetch=fetch)

    document = fetch.body
    inbound_text = _text("gateway/sms/inbound", document)
    outbound_text = _text("gateway/sms/outbound", document)

    report = InstanceReport(
        index=index,
        fetch=fetch,
        uptime=parse_uptime(xpath_value("gateway/status", document), now),
        inbound=to_number(inbound_text),
        outbound=to_number(outbound_text),
        inbound_text=inbound_text,
        outbound_text=outbound_text,
        version=_text("gateway/version", document).replace("\r", ""),
        received_total=to_int(xpath_value("gateway/sms/received/total", document)),
        received_queued=to_int(xpath_value("gateway/sms/received/queued", document)),
        sent_total=to_int(xpath_value("gateway/sms/sent/total", document)),
        sent_queued=to_int(xpath_value("gateway/sms/sent/queued", document)),
        boxes=parse_boxes(document, now),
        links=parse_links(document, now),
        link_count=to_int(xpath_value("gateway/smscs/count", document)),
        link_states={state: count_links_in_state(state, document) for state in LinkState},
        link_ids={state: ids_in_state(state, document) for state in LinkState},
    )

    if report.uptime is None:
        logger.debug("%s: unrecognized gateway status, uptime omitted", fetch.instance.name)
    return report
