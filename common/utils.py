from __future__ import annotations

from typing import Optional
import math
import re
from decimal import Decimal, ROUND_HALF_UP


def clamp(v: float, lo: float, hi: float) -> float:
    return max(min(v, hi), lo)


# Plain decimal, or unsigned 0x/0o/0b integer; ASCII digits only, no '_' grouping.
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_PREFIXED = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")
_BASES = {"x": 16, "o": 8, "b": 2}


def parse_finite(raw: Optional[str]) -> Optional[float]:
    """
    Parse a path/query segment as a finite float.
    Returns None for anything that is not a finite number ("abc", "inf", "nan",
    "", "1_0"). Hex/octal/binary integers ("0x10") are accepted.
    """
    if raw is None:
        return None
    text = raw.strip()
    if _PREFIXED.fullmatch(text):
        try:
            v = float(int(text[2:], _BASES[text[1].lower()]))
        except OverflowError:
            return None
    elif _DECIMAL.fullmatch(text):
        v = float(text)
    else:
        return None
    return v if math.isfinite(v) else None


def compact_number(v: float) -> str:
    """
    Shortest round-trip text for a float, with integral values written
    without a trailing '.0' (so -0.0 and 0.0 both give '0').
    """
    if math.isfinite(v) and v == int(v) and abs(v) < 1e21:
        return str(int(v))
    return repr(float(v))


def round_half_up(v: float) -> int:
    """Round .5 upwards (built-in round() goes to the even neighbour)."""
    return int(math.floor(v + 0.5))


def to_fixed(v: float, digits: int) -> str:
    """Fixed-point text, rounding the exact binary value half away from zero."""
    q = Decimal(1).scaleb(-digits)
    return str(Decimal(v).quantize(q, rounding=ROUND_HALF_UP))
