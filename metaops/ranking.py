from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from metaops.util import round2


T = TypeVar("T", bound=Mapping[str, Any])


def _metric(item: Mapping[str, Any], metric: str, missing: float) -> float:
    value = item["kpis"].get(metric)
    return missing if value is None else float(value)


def _has(item: Mapping[str, Any], metric: str) -> bool:
    return item["kpis"].get(metric) is not None


def rank_by(items: Sequence[T], metric: str, *, descending: bool = True) -> list[T]:
    """Best-first ordering on one KPI.

    A missing metric counts as 0 when ranking high-to-low (ROAS) and as +inf when
    ranking low-to-high (CPA), so entities without the metric always end up last.
    On a tie with a real value, the entity that has the metric goes first.
    """
    if descending:
        return sorted(items, key=lambda it: (_metric(it, metric, 0.0), _has(it, metric)), reverse=True)
    return sorted(items, key=lambda it: (_metric(it, metric, math.inf), not _has(it, metric)))


def underperformers(
    items: Sequence[T],
    *,
    roas_min: float | None = None,
    cpa_max: float | None = None,
) -> list[T]:
    out: list[T] = []
    for it in items:
        roas = _metric(it, "roas", 0.0)
        cpa = _metric(it, "cpa", math.inf)
        fail_roas = roas_min is not None and roas < roas_min
        fail_cpa = cpa_max is not None and cpa > cpa_max
        if fail_roas or fail_cpa:
            out.append(it)
    return out


def funnel_dropoffs(counts: Sequence[float]) -> list[float]:
    return [
        0.0 if i == 0 else round2(1.0 - c / max(counts[i - 1], 1e-9))
        for i, c in enumerate(counts)
    ]


def focus_stage(dropoffs: Sequence[float]) -> int | None:
    if not dropoffs:
        return None
    return dropoffs.index(max(dropoffs))


def top_n(items: Sequence[T], n: int) -> list[T]:
    return list(items[:n])


def bottom_n(items: Sequence[T], n: int) -> list[T]:
    return list(items[-n:]) if n > 0 else []
