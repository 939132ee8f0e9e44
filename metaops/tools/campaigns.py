from __future__ import annotations

from typing import Any

from metaops.aggregate import by_entity
from metaops.ranking import rank_by, top_n, underperformers
from metaops.result import AnalysisResult
from metaops.schemas import DateRange, PerformanceThresholds
from metaops.tools.common import ToolContext, account_id_or_raise, fetch_insights, id_filter


def _brief(item: dict[str, Any]) -> dict[str, Any]:
    return {"id": item["id"], "name": item["name"], "kpis": item["kpis"]}


async def analyze_campaign_performance(
    ctx: ToolContext,
    *,
    date_range: DateRange,
    ad_account_id: str | None = None,
    campaign_ids: list[str] | None = None,
    performance_thresholds: PerformanceThresholds | None = None,
) -> AnalysisResult:
    account_id = account_id_or_raise(ad_account_id, ctx.default_account_id)
    rows = await fetch_insights(
        ctx,
        account_id,
        fields=["campaign_id", "campaign_name", "spend", "impressions", "clicks", "actions", "action_values"],
        date_range=date_range,
        level="campaign",
        filtering=id_filter("campaign.id", campaign_ids),
    )

    campaigns = by_entity(rows, "campaign", outcomes="nonzero")
    ranked_by_roas = rank_by(campaigns, "roas", descending=True)
    ranked_by_cpa = rank_by(campaigns, "cpa", descending=False)

    thresholds = performance_thresholds or PerformanceThresholds()
    flagged = underperformers(campaigns, roas_min=thresholds.roas, cpa_max=thresholds.cpa)

    recommendations = {
        "reallocate_budget_from": [_brief(c) for c in top_n(flagged, 5)],
        "to_top_campaigns": [_brief(c) for c in top_n(ranked_by_roas, 5)],
    }
    return AnalysisResult(
        raw_data=rows,
        analysis={
            "ranked_by_roas": ranked_by_roas,
            "ranked_by_cpa": ranked_by_cpa,
            "underperformers": flagged,
        },
        recommendations=recommendations,
        meta={"account_id": account_id},
    )
