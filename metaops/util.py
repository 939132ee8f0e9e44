from __future__ import annotations

import math
from datetime import date
from typing import Any


def iso_date(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def to_number(value: Any) -> float:
    """Coerce a numeric-ish Graph API value to a finite float.

    Insights return most counters as strings ("1,234.50"); anything that does not
    parse to a finite number becomes 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            n = float(value)
        except OverflowError:
            return 0.0
        return n if math.isfinite(n) else 0.0
    s = str(value).replace(",", "").strip()
    if s == "":
        return 0.0
    try:
        n = float(s)
    except ValueError:
        return 0.0
    return n if math.isfinite(n) else 0.0


def _round_half_away(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return math.copysign(math.floor(abs(value) + 0.5), value)


def round2(value: float) -> float:
    scaled = value * 100.0
    if not math.isfinite(scaled):
        # Past ~1e306 there are no cents left to round.
        return value if math.isfinite(value) else 0.0
    return _round_half_away(scaled) / 100.0


def round_count(value: float) -> int:
    return int(_round_half_away(value))


def safe_div(n: float, d: float) -> float:
    # Exact zero check; callers floor count denominators themselves.
    if d == 0:
        return 0.0
    return n / d
