"""HTML dashboard page shell.

The status tables are rendered per request by kannelstatus.render; this
package holds the static parts (template, CSS, JS) they are wrapped in.
"""

from ._css import CSS_STYLES
from ._html import build_html
from ._js import JS_ADMIN


def build_page(body: str, refresh: int, refresh_url: str) -> str:
    """Wrap rendered tables in the full page with styles and scripts."""
    return build_html(CSS_STYLES, JS_ADMIN, body, refresh, refresh_url)


__all__ = [
    "build_page",
]
