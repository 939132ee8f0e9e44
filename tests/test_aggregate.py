"""Tests for bucket aggregation, grouping shapes and spend share."""

import pytest

from metaops.aggregate import (
    Bucket,
    aggregate,
    breakdown_key,
    by_breakdown,
    by_entity,
    by_label,
    totals,
    with_spend_share,
)
from metaops.kpis import compute_kpis


def _row(spend, impressions=0, clicks=0, purchases=None, revenue=None, **dims):
    row = {"spend": str(spend), "impressions": str(impressions), "clicks": str(clicks), **dims}
    if purchases is not None:
        row["actions"] = [{"action_type": "purchase", "value": str(purchases)}]
    if revenue is not None:
        row["action_values"] = [{"action_type": "purchase", "value": str(revenue)}]
    return row


# =============================================================================
# Bucket
# =============================================================================


class TestBucket:
    def test_add_row_sums_normalized_values(self):
        b = Bucket()
        b.add_row(_row("1,000.50", 10, 2, purchases=1, revenue=50))
        b.add_row(_row(None, "5", "x"))
        assert b.spend == 1000.5
        assert b.impressions == 15
        assert b.clicks == 2
        assert b.conversions == 1
        assert b.revenue == 50

    def test_outcomes_always_keeps_zero_conversions(self):
        k = Bucket(spend=10).to_kpis("always")
        assert k.conversions == 0
        assert k.cpa == 10.0
        assert k.roas is None

    def test_outcomes_nonzero_drops_zero_conversions(self):
        k = Bucket(spend=10).to_kpis("nonzero")
        assert k.conversions is None
        assert k.cpa is None

    def test_outcomes_never(self):
        k = Bucket(spend=10, conversions=2, revenue=40).to_kpis("never")
        assert k.cpa is None and k.roas is None and k.revenue is None

    def test_unknown_outcomes_mode(self):
        with pytest.raises(ValueError):
            Bucket().to_kpis("sometimes")


# =============================================================================
# aggregate / totals
# =============================================================================


def test_aggregate_groups_by_key():
    rows = [_row(10, a="x"), _row(5, a="y"), _row(2.5, a="x")]
    buckets = aggregate(rows, lambda r: r["a"])
    assert set(buckets) == {"x", "y"}
    assert buckets["x"].spend == 12.5


def test_totals_over_no_rows():
    k = totals([]).to_kpis("nonzero")
    assert k.spend == 0 and k.ctr == 0 and k.cpa is None


def test_breakdown_key_missing_dimension_is_blank():
    key = breakdown_key(["age", "gender"])
    assert key({"age": "18-24"}) == ("18-24", "")


# =============================================================================
# by_breakdown
# =============================================================================


def test_same_breakdown_values_share_one_bucket():
    rows = [
        _row(10, 100, 5, age="25-34", gender="female"),
        _row(15, 200, 5, age="25-34", gender="female"),
    ]
    items = by_breakdown(rows, ["age", "gender"])
    assert len(items) == 1
    item = items[0]
    assert item["kpis"].spend == 25.0
    assert item["age"] == "25-34"
    assert item["gender"] == "female"
    assert item["key"] == "25-34|female"


def test_breakdown_keys_do_not_collide_on_separator():
    rows = [_row(1, a="x|y", b="z"), _row(2, a="x", b="y|z")]
    assert len(by_breakdown(rows, ["a", "b"])) == 2


def test_breakdown_default_outcomes_include_cpa():
    items = by_breakdown([_row(20, age="18-24")], ["age"])
    assert items[0]["kpis"].cpa == 20.0


# =============================================================================
# by_entity
# =============================================================================


def test_by_entity_carries_first_non_empty_name():
    rows = [
        _row(10, campaign_id="c1", campaign_name=""),
        _row(20, campaign_id="c1", campaign_name="Spring Sale", purchases=2, revenue=90),
        _row(30, campaign_id="c2", campaign_name="Retargeting"),
    ]
    items = {it["id"]: it for it in by_entity(rows, "campaign")}
    assert items["c1"]["name"] == "Spring Sale"
    assert items["c1"]["kpis"].spend == 30.0
    assert items["c1"]["kpis"].cpa == 15.0
    assert items["c1"]["kpis"].roas == 3.0
    assert items["c2"]["kpis"].cpa is None


def test_by_entity_preserves_first_seen_order():
    rows = [_row(1, ad_id="b"), _row(1, ad_id="a"), _row(1, ad_id="b")]
    assert [it["id"] for it in by_entity(rows, "ad")] == ["b", "a"]


# =============================================================================
# by_label / spend share
# =============================================================================


def test_by_label_sums_item_kpis():
    items = [
        {"creative_type": "video", "kpis": compute_kpis(10, 100, 10, 1, 30)},
        {"creative_type": "image", "kpis": compute_kpis(5, 50, 5)},
        {"creative_type": "video", "kpis": compute_kpis(20, 100, 10, 1, 30)},
    ]
    summary = {s["type"]: s["kpis"] for s in by_label(items, lambda it: it["creative_type"])}
    assert summary["video"].spend == 30.0
    assert summary["video"].conversions == 2
    assert summary["video"].roas == 2.0
    assert summary["image"].cpa == 5.0


def test_spend_share_sums_to_hundred():
    items = [{"id": str(i), "kpis": compute_kpis(s, 0, 0)} for i, s in enumerate([33.33, 12.5, 7.77, 46.4])]
    shared, total = with_spend_share(items)
    assert total == 100.0
    assert sum(it["spend_share"] for it in shared) == pytest.approx(100.0, abs=0.01 * len(shared))
    assert shared[0]["spend_share"] == 33.33
    assert "spend_share" not in items[0]


def test_spend_share_with_no_spend():
    items = [{"id": "a", "kpis": compute_kpis(0, 0, 0)}]
    shared, total = with_spend_share(items)
    assert total == 0.0
    assert shared[0]["spend_share"] == 0.0
