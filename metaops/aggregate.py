from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from metaops.actions import purchase_count, purchase_value
from metaops.kpis import KpiSet, compute_kpis
from metaops.util import round2, to_number


Outcomes = Literal["always", "nonzero", "never"]
Row = Mapping[str, Any]


@dataclass
class Bucket:
    spend: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0
    conversions: float = 0.0
    revenue: float = 0.0

    def add_row(self, row: Row) -> None:
        self.spend += to_number(row.get("spend"))
        self.impressions += to_number(row.get("impressions"))
        self.clicks += to_number(row.get("clicks"))
        self.conversions += purchase_count(row)
        self.revenue += purchase_value(row)

    def to_kpis(self, outcomes: Outcomes = "always") -> KpiSet:
        """``outcomes`` decides whether conversions/revenue reach the KPI calculator.

        "always" passes them even when zero (so cpa is present), "nonzero" only
        when non-zero, "never" for reports that carry no action data.
        """
        if outcomes == "always":
            conversions, revenue = self.conversions, self.revenue
        elif outcomes == "nonzero":
            conversions = self.conversions or None
            revenue = self.revenue or None
        elif outcomes == "never":
            conversions = revenue = None
        else:
            raise ValueError("outcomes must be one of: always, nonzero, never")
        return compute_kpis(self.spend, self.impressions, self.clicks, conversions, revenue)


def aggregate(rows: Iterable[Row], key_fn: Callable[[Row], Hashable]) -> dict[Hashable, Bucket]:
    buckets: dict[Hashable, Bucket] = {}
    for r in rows:
        key = key_fn(r)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = Bucket()
        bucket.add_row(r)
    return buckets


def totals(rows: Iterable[Row]) -> Bucket:
    bucket = Bucket()
    for r in rows:
        bucket.add_row(r)
    return bucket


def breakdown_key(breakdowns: Sequence[str]) -> Callable[[Row], tuple[str, ...]]:
    fields = tuple(breakdowns)

    def key(row: Row) -> tuple[str, ...]:
        return tuple(str(row.get(b) if row.get(b) is not None else "") for b in fields)

    return key


def by_breakdown(
    rows: Iterable[Row],
    breakdowns: Sequence[str],
    *,
    outcomes: Outcomes = "always",
) -> list[dict[str, Any]]:
    buckets = aggregate(rows, breakdown_key(breakdowns))
    items: list[dict[str, Any]] = []
    for values, bucket in buckets.items():
        item: dict[str, Any] = {"key": "|".join(values)}
        item.update(zip(breakdowns, values))
        item["kpis"] = bucket.to_kpis(outcomes)
        items.append(item)
    return items


def by_entity(
    rows: Iterable[Row],
    level: str,
    *,
    outcomes: Outcomes = "nonzero",
) -> list[dict[str, Any]]:
    id_field = f"{level}_id"
    name_field = f"{level}_name"
    names: dict[str, str] = {}

    def key(row: Row) -> str:
        entity_id = str(row.get(id_field) or "")
        name = str(row.get(name_field) or "")
        if name and not names.get(entity_id):
            names[entity_id] = name
        return entity_id

    buckets = aggregate(rows, key)
    return [
        {"id": entity_id, "name": names.get(entity_id, ""), "kpis": bucket.to_kpis(outcomes)}
        for entity_id, bucket in buckets.items()
    ]


def by_label(
    items: Iterable[Mapping[str, Any]],
    label_fn: Callable[[Mapping[str, Any]], str],
    *,
    label_field: str = "type",
) -> list[dict[str, Any]]:
    """Regroup computed items by a label, summing their (rounded) KPI counters."""
    buckets: dict[str, Bucket] = {}
    for it in items:
        k: KpiSet = it["kpis"]
        label = label_fn(it)
        bucket = buckets.setdefault(label, Bucket())
        bucket.spend += k.spend
        bucket.impressions += k.impressions
        bucket.clicks += k.clicks
        bucket.conversions += k.conversions or 0
        bucket.revenue += k.revenue or 0
    return [{label_field: label, "kpis": bucket.to_kpis("always")} for label, bucket in buckets.items()]


def with_spend_share(items: Sequence[Mapping[str, Any]]) -> tuple[list[dict[str, Any]], float]:
    """Return copies of ``items`` carrying ``spend_share`` (percent), plus total spend."""
    total_spend = sum(it["kpis"].spend for it in items)
    out = [
        {**it, "spend_share": round2(it["kpis"].spend / max(total_spend, 1e-9) * 100.0)}
        for it in items
    ]
    return out, round2(total_spend)
