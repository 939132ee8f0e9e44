from __future__ import annotations

from metaops.aggregate import totals
from metaops.errors import GraphApiError
from metaops.result import AnalysisResult
from metaops.schemas import DateRange
from metaops.tools.common import ToolContext, account_id_or_raise, fetch_insights


async def list_accounts(ctx: ToolContext) -> AnalysisResult:
    # No business field here; it would require business_management.
    me = await ctx.client.get("/me", {"fields": ["id", "name"]})
    try:
        accounts = await ctx.client.get_all_pages(
            "/me/adaccounts",
            {"fields": ["id", "account_id", "name", "currency", "timezone_name"]},
        )
    except GraphApiError as exc:
        raise GraphApiError(
            f"Failed to list ad accounts: {exc}", status_code=exc.status_code, payload=exc.payload
        ) from exc
    return AnalysisResult(raw_data={"me": me, "accounts": accounts})


async def get_account_performance_summary(
    ctx: ToolContext,
    *,
    date_range: DateRange,
    ad_account_id: str | None = None,
    currency: str | None = None,
    attribution_setting: str | None = None,
) -> AnalysisResult:
    account_id = account_id_or_raise(ad_account_id, ctx.default_account_id)
    rows = await fetch_insights(
        ctx,
        account_id,
        fields=["spend", "impressions", "clicks", "actions", "action_values", "objective", "reach"],
        date_range=date_range,
        level="account",
        time_increment=1,
    )

    objectives: list[str] = []
    for r in rows:
        objective = r.get("objective")
        if objective and objective not in objectives:
            objectives.append(str(objective))

    analysis = {
        "kpis": totals(rows).to_kpis("nonzero"),
        "days": len(rows),
        "objectives": objectives,
    }
    recommendations = {
        "note": (
            "Validate pixel/conversions mapping to ensure accurate CPA/ROAS. "
            "Consider narrowing fields to speed up responses."
        ),
    }
    meta: dict[str, object] = {"account_id": account_id}
    if currency:
        meta["currency"] = currency
    if attribution_setting:
        meta["attribution_setting"] = attribution_setting
    return AnalysisResult(raw_data=rows, analysis=analysis, recommendations=recommendations, meta=meta)
