"""Tag extraction for Kannel's status.xml output.

The bearerbox status document is a small, predictable tree of plain tags
(no namespaces, no attributes worth reading). Rather than building a DOM for
every render, values are pulled straight out of the raw text with a cursor
based scanner:

    xpath_value("gateway/sms/inbound", body)  ->  "0.52"

Each path segment narrows the working text to the inner span of the first
top-level element with that name. Elements nested deeper (for example the
<status> of an <smsc> while looking up gateway/status) are skipped, and the
closing tag is always searched for after its opening tag.

This is not an XML parser: entities are left as-is, comments and CDATA are
not understood, and a document with unbalanced tags may hide elements.
"""

import re
from collections.abc import Iterator

# Matches <name ...>, </name> and <name/>. Declarations (<?xml?>) and
# comments (<!-- -->) start with another character and are ignored.
_TAG_RE = re.compile(r"<(/?)([A-Za-z_][\w.:-]*)[^<>]*?(/?)>")


def find_element(document: str, name: str, start: int = 0) -> tuple[int, int, int] | None:
    """Locate the first top-level <name> element at or after ``start``.

    Args:
        document: Raw document text.
        name: Tag name to look for.
        start: Offset to start scanning from.

    Returns:
        Tuple of (body_start, body_end, element_end) offsets, or None if the
        element does not occur at top level or its closing tag is missing.
    """
    depth = 0
    body_start: int | None = None
    nested = 0

    for match in _TAG_RE.finditer(document, start):
        closing, tag, self_closing = match.groups()

        if body_start is None:
            if closing:
                if depth > 0:
                    depth -= 1
            elif self_closing:
                if depth == 0 and tag == name:
                    return match.end(), match.end(), match.end()
            elif depth == 0 and tag == name:
                body_start = match.end()
            else:
                depth += 1
            continue

        # Inside the wanted element only same-named tags affect the match.
        if tag != name or self_closing:
            continue
        if not closing:
            nested += 1
        elif nested:
            nested -= 1
        else:
            return body_start, match.start(), match.end()

    return None


def get_element_by_name(document: str, name: str) -> str | None:
    """Return the text between <name> and its matching </name>, or None."""
    if not document:
        return None
    span = find_element(document, name)
    if span is None:
        return None
    return document[span[0] : span[1]]


def xpath_value(path: str, document: str) -> str | None:
    """Extract the text content at a slash-separated tag path.

    Args:
        path: Tag names separated by "/", e.g. "gateway/sms/received/total".
        document: Raw status document (may be empty).

    Returns:
        The inner text of the last element in the path, or None if any
        element along the path is missing.
    """
    node: str | None = document
    for segment in path.split("/"):
        if node is None:
            return None
        node = get_element_by_name(node, segment)
    return node


def iter_elements(name: str, document: str) -> Iterator[str]:
    """Yield the body of each top-level <name> element in order.

    Iteration advances past each element's closing tag and stops at the
    first missing or empty element.
    """
    if not document:
        return
    cursor = 0
    while True:
        span = find_element(document, name, cursor)
        if span is None:
            return
        body = document[span[0] : span[1]]
        if body == "":
            return
        yield body
        cursor = span[2]
