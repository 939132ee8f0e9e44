from __future__ import annotations

from metaops.actions import exact_purchase_count, exact_purchase_value
from metaops.result import AnalysisResult
from metaops.schemas import DateRange
from metaops.tools.common import ToolContext, account_id_or_raise, fetch_insights
from metaops.util import round2, to_number


NOTES = [
    "For true multi-touch attribution, export event-level data to a DWH and compute modeled credit.",
    "Validate attribution setting in the account and ensure pixel deduping is configured.",
]

# Heuristic LTV when none is supplied: average order value times this many orders.
LTV_ORDER_MULTIPLIER = 3


async def calculate_advanced_attribution(
    ctx: ToolContext,
    *,
    date_range: DateRange,
    ad_account_id: str | None = None,
    assumed_ltv: float | None = None,
    cac_target: float | None = None,
) -> AnalysisResult:
    account_id = account_id_or_raise(ad_account_id, ctx.default_account_id)
    rows = await fetch_insights(
        ctx,
        account_id,
        fields=["spend", "actions", "action_values"],
        date_range=date_range,
        level="account",
    )

    spend = purchases = revenue = 0.0
    for r in rows:
        spend += to_number(r.get("spend"))
        purchases += exact_purchase_count(r)
        revenue += exact_purchase_value(r)

    cac = round2(spend / purchases) if purchases > 0 else 0.0
    roas = round2(revenue / spend) if spend > 0 else 0.0
    if assumed_ltv is not None:
        ltv = float(assumed_ltv)
    elif purchases > 0:
        ltv = round2(round2(revenue / max(purchases, 1)) * LTV_ORDER_MULTIPLIER)
    else:
        ltv = 0.0
    clv_to_cac = round2(ltv / cac) if cac > 0 else 0.0

    return AnalysisResult(
        raw_data=rows,
        analysis={
            "spend": round2(spend),
            "purchases": purchases,
            "revenue": round2(revenue),
            "cac": cac,
            "roas": roas,
            "ltv": ltv,
            "clv_to_cac": clv_to_cac,
        },
        recommendations={
            "cac_ok": cac <= cac_target if cac_target is not None else None,
            "notes": list(NOTES),
        },
        meta={"account_id": account_id},
    )
