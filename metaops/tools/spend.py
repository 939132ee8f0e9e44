from __future__ import annotations

from metaops.aggregate import by_entity, with_spend_share
from metaops.ranking import rank_by, top_n
from metaops.result import AnalysisResult
from metaops.schemas import DateRange, SpendLevel
from metaops.tools.common import ToolContext, account_id_or_raise, fetch_insights


async def get_spend_allocation_insights(
    ctx: ToolContext,
    *,
    date_range: DateRange,
    ad_account_id: str | None = None,
    level: SpendLevel = "campaign",
) -> AnalysisResult:
    account_id = account_id_or_raise(ad_account_id, ctx.default_account_id)
    if level not in ("campaign", "adset", "ad"):
        raise ValueError("level must be one of: campaign, adset, ad")

    rows = await fetch_insights(
        ctx,
        account_id,
        fields=[f"{level}_id", f"{level}_name", "spend", "impressions", "clicks", "actions", "action_values"],
        date_range=date_range,
        level=level,
    )

    allocation, total_spend = with_spend_share(by_entity(rows, level, outcomes="nonzero"))
    recommendations = {
        "reallocate_from": top_n(rank_by(allocation, "roas", descending=False), 5),
        "reallocate_to": top_n(rank_by(allocation, "roas", descending=True), 5),
    }
    return AnalysisResult(
        raw_data=rows,
        analysis={"allocation": allocation, "total_spend": total_spend},
        recommendations=recommendations,
        meta={"account_id": account_id, "level": level},
    )
