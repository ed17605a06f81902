"""HTML page template for the dashboard.

This module loads the page skeleton from dashboard.html and fills in the
styles, script and the rendered status tables.

The template is automatically reloaded when the file changes (hot-reload).
"""

from pathlib import Path
from string import Template

_TEMPLATE_PATH = Path(__file__).parent / "dashboard.html"

# Cache for template and its mtime
_template_cache: Template | None = None
_template_mtime: float = 0.0


def _get_template() -> Template:
    """Get the HTML template, reloading if the file changed.

    Returns:
        The current Template instance.
    """
    global _template_cache, _template_mtime

    current_mtime = _TEMPLATE_PATH.stat().st_mtime

    if _template_cache is None or current_mtime != _template_mtime:
        _template_cache = Template(_TEMPLATE_PATH.read_text(encoding="utf-8"))
        _template_mtime = current_mtime

    return _template_cache


def build_html(css: str, js: str, body: str, refresh: int, refresh_url: str) -> str:
    """Build the complete HTML page.

    Uses string.Template for substitution; values are inserted as-is, so
    body and refresh_url must already be HTML-escaped.

    Args:
        css: CSS styles string
        js: JavaScript string
        body: Rendered page content
        refresh: Meta-refresh interval in seconds
        refresh_url: URL the meta refresh reloads

    Returns:
        Complete HTML page string
    """
    return _get_template().safe_substitute(
        css=css,
        js=js,
        body=body,
        refresh=refresh,
        refresh_url=refresh_url,
    )
