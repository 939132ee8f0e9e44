from __future__ import annotations

from metaops.aggregate import by_breakdown
from metaops.ranking import rank_by
from metaops.result import AnalysisResult
from metaops.schemas import AudienceLevel, DateRange
from metaops.tools.common import ToolContext, account_id_or_raise, fetch_insights, id_filter


DEFAULT_BREAKDOWNS = ("age", "gender", "publisher_platform")


async def get_audience_performance_breakdown(
    ctx: ToolContext,
    *,
    date_range: DateRange,
    ad_account_id: str | None = None,
    level: AudienceLevel = "adset",
    ids: list[str] | None = None,
    breakdowns: list[str] | None = None,
) -> AnalysisResult:
    account_id = account_id_or_raise(ad_account_id, ctx.default_account_id)
    if level not in ("adset", "campaign"):
        raise ValueError("level must be one of: adset, campaign")
    dims = list(breakdowns) if breakdowns else list(DEFAULT_BREAKDOWNS)

    rows = await fetch_insights(
        ctx,
        account_id,
        fields=["spend", "impressions", "clicks", "actions", "action_values", f"{level}_id", f"{level}_name"],
        date_range=date_range,
        level=level,
        breakdowns=dims,
        filtering=id_filter(f"{level}.id", ids),
    )

    ranked = rank_by(by_breakdown(rows, dims, outcomes="always"), "roas", descending=True)
    return AnalysisResult(
        raw_data=rows,
        analysis={"breakdowns": dims, "ranked": ranked},
        meta={"account_id": account_id, "level": level},
    )
