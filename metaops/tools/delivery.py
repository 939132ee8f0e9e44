from __future__ import annotations

from metaops.aggregate import by_breakdown
from metaops.ranking import bottom_n, rank_by, top_n
from metaops.result import AnalysisResult
from metaops.schemas import DateRange
from metaops.tools.common import ToolContext, account_id_or_raise, fetch_insights


DELIVERY_BREAKDOWNS = ("publisher_platform", "platform_position")


async def get_ad_delivery_insights(
    ctx: ToolContext,
    *,
    date_range: DateRange,
    ad_account_id: str | None = None,
    placements: list[str] | None = None,
) -> AnalysisResult:
    account_id = account_id_or_raise(ad_account_id, ctx.default_account_id)

    # Breakdown dimensions go in `breakdowns` only, never in `fields`.
    rows = await fetch_insights(
        ctx,
        account_id,
        fields=["spend", "impressions", "clicks"],
        date_range=date_range,
        level="ad",
        breakdowns=list(DELIVERY_BREAKDOWNS),
    )

    items = [
        {"platform": it["publisher_platform"], "position": it["platform_position"], "kpis": it["kpis"]}
        for it in by_breakdown(rows, DELIVERY_BREAKDOWNS, outcomes="never")
    ]
    if placements:
        wanted = {p.lower() for p in placements}
        items = [it for it in items if str(it["platform"]).lower() in wanted]

    # No outcome data here, so every roas is missing and the order is the grouping order.
    items = rank_by(items, "roas", descending=True)

    return AnalysisResult(
        raw_data=rows,
        analysis={"items": items},
        recommendations={"shift_impressions_to": top_n(items, 3), "reduce_in": bottom_n(items, 3)},
        meta={"account_id": account_id},
    )
