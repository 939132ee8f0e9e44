from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from metaops.util import round2, round_count, safe_div, to_number


@dataclass(frozen=True)
class KpiSet:
    """Derived metrics for one entity or bucket.

    ``conversions``, ``cpa``, ``roas`` and ``revenue`` are None when their
    preconditions do not hold; a 0 there is a real value, not a placeholder.
    """

    spend: float
    impressions: int
    clicks: int
    ctr: float
    cpc: float
    cpm: float
    conversions: int | None = None
    cpa: float | None = None
    roas: float | None = None
    revenue: float | None = None

    def get(self, metric: str) -> float | None:
        if metric not in _KPI_FIELDS:
            raise ValueError(f"unknown metric: {metric}")
        return getattr(self, metric)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name in _KPI_FIELDS:
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        return out


_KPI_FIELDS = tuple(f.name for f in fields(KpiSet))


def compute_kpis(
    spend: Any,
    impressions: Any,
    clicks: Any,
    conversions: Any = None,
    revenue: Any = None,
) -> KpiSet:
    spend_f = to_number(spend)
    impressions_f = to_number(impressions)
    clicks_f = to_number(clicks)
    conversions_f = to_number(conversions) if conversions is not None else None
    revenue_f = to_number(revenue) if revenue is not None else None

    ctr = safe_div(clicks_f, impressions_f)
    cpc = safe_div(spend_f, max(clicks_f, 1.0))
    cpm = safe_div(spend_f, max(impressions_f, 1.0)) * 1000.0
    cpa = safe_div(spend_f, max(conversions_f, 1.0)) if conversions_f is not None else None
    roas = (
        safe_div(revenue_f, max(spend_f, 1e-9))
        if revenue_f is not None and revenue_f > 0
        else None
    )

    return KpiSet(
        spend=round2(spend_f),
        impressions=round_count(impressions_f),
        clicks=round_count(clicks_f),
        ctr=round2(ctr),
        cpc=round2(cpc),
        cpm=round2(cpm),
        conversions=round_count(conversions_f) if conversions_f is not None else None,
        cpa=round2(cpa) if cpa is not None else None,
        roas=round2(roas) if roas is not None else None,
        revenue=round2(revenue_f) if revenue_f is not None else None,
    )
