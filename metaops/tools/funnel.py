from __future__ import annotations

from metaops.actions import FUNNEL_STAGES, funnel_counts, purchase_value
from metaops.kpis import compute_kpis
from metaops.ranking import focus_stage, funnel_dropoffs
from metaops.result import AnalysisResult
from metaops.schemas import DateRange
from metaops.tools.common import ToolContext, account_id_or_raise, fetch_insights
from metaops.util import to_number


SUGGESTIONS = [
    "Tighten audience at the largest drop stage",
    "Test landing page changes",
    "Check pixel mapping for missing events",
]


async def analyze_conversion_funnel(
    ctx: ToolContext,
    *,
    date_range: DateRange,
    ad_account_id: str | None = None,
    attribution_window_days: int | None = None,
) -> AnalysisResult:
    account_id = account_id_or_raise(ad_account_id, ctx.default_account_id)
    windows = [f"{attribution_window_days}d_click"] if attribution_window_days else None

    rows = await fetch_insights(
        ctx,
        account_id,
        fields=["spend", "impressions", "clicks", "actions", "action_values"],
        date_range=date_range,
        level="account",
        action_attribution_windows=windows,
    )

    counts = {action_type: 0.0 for action_type, _ in FUNNEL_STAGES}
    spend = impressions = clicks = revenue = 0.0
    for r in rows:
        spend += to_number(r.get("spend"))
        impressions += to_number(r.get("impressions"))
        clicks += to_number(r.get("clicks"))
        for action_type, value in funnel_counts(r).items():
            counts[action_type] += value
        # Revenue uses the substring matcher, stage counts the exact one.
        revenue += purchase_value(r)

    funnel = [{"stage": label, "count": counts[action_type]} for action_type, label in FUNNEL_STAGES]
    dropoffs = funnel_dropoffs([f["count"] for f in funnel])
    kpis = compute_kpis(spend, impressions, clicks, counts["purchase"], revenue)

    return AnalysisResult(
        raw_data=rows,
        analysis={"funnel": funnel, "dropoffs": dropoffs, "kpis": kpis},
        recommendations={"focus_stage": focus_stage(dropoffs), "suggestions": list(SUGGESTIONS)},
        meta={"account_id": account_id},
    )
