"""Number parsing and formatting for dashboard values.

Status fields arrive as free text, so numbers are read from their leading
numeric prefix ("0.52,0.40,0.33" reads as 0.52) and anything unreadable
counts as zero. Output uses a fixed convention independent of the host
locale: "." groups thousands and "," separates decimals.
"""

import math
import re
from decimal import ROUND_HALF_UP, Decimal, localcontext

_NUMBER_PREFIX_RE = re.compile(r"\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))")
_INTEGER_PREFIX_RE = re.compile(r"\s*([-+]?\d+)")

# Swap the separators produced by Python's "," format option.
_SEPARATORS = str.maketrans(",.", ".,")


def to_number(text: str | None) -> float:
    """Read the leading number from a status field, 0.0 if there is none."""
    if not text:
        return 0.0
    match = _NUMBER_PREFIX_RE.match(text)
    if match is None:
        return 0.0
    value = float(match.group(1))
    # A run of digits too long for a float reads as inf.
    return value if math.isfinite(value) else 0.0


def to_int(text: str | None) -> int:
    """Read the leading integer from a status field, 0 if there is none.

    Digits are converted exactly; "7.9" reads as 7.
    """
    if not text:
        return 0
    match = _INTEGER_PREFIX_RE.match(text)
    if match is None:
        return 0
    try:
        return int(match.group(1))
    except ValueError:
        # Longer than the interpreter's int string conversion limit.
        return 0


def _format_grouped(number: float, decimals: int) -> str:
    value = Decimal(number) if isinstance(number, int) else Decimal(str(number))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + decimals + 2)
        value = value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    return f"{value:,.{decimals}f}".translate(_SEPARATORS)


def format_integer(number: float) -> str:
    """Format a number with no decimals and "." thousands grouping.

    >>> format_integer(1234567)
    '1.234.567'
    """
    return _format_grouped(number, 0)


def format_decimal(number: float) -> str:
    """Format a number with two decimals, "," decimal point and "." grouping.

    >>> format_decimal(12.5)
    '12,50'
    """
    return _format_grouped(number, 2)
