"""Insights API: the analysis tools over HTTP.

Endpoints:
  GET /api/insights/accounts          : ad accounts visible to the token
  GET /api/insights/account-summary   : account KPIs for a date range
  GET /api/insights/campaigns         : campaign rankings + budget suggestions
  GET /api/insights/audiences         : KPIs per breakdown (age, gender, placement, ...)
  GET /api/insights/creatives         : per-ad KPIs, creative type summary
  GET /api/insights/spend-allocation  : spend share per campaign/adset/ad
  GET /api/insights/funnel            : view_content -> purchase funnel
  GET /api/insights/delivery          : placement & position performance
  GET /api/insights/attribution       : CAC / ROAS / LTV heuristic
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import date, timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from metaops.config import load_config
from metaops.errors import (
    AsyncJobError,
    AsyncJobTimeoutError,
    ConfigError,
    GraphApiError,
    MissingIdentifierError,
)
from metaops.result import AnalysisResult
from metaops.schemas import DateRange, PerformanceThresholds
from metaops.tools.accounts import get_account_performance_summary, list_accounts
from metaops.tools.attribution import calculate_advanced_attribution
from metaops.tools.audiences import get_audience_performance_breakdown
from metaops.tools.campaigns import analyze_campaign_performance
from metaops.tools.common import ToolContext, open_context
from metaops.tools.creatives import analyze_creative_effectiveness
from metaops.tools.delivery import get_ad_delivery_insights
from metaops.tools.funnel import analyze_conversion_funnel
from metaops.tools.spend import get_spend_allocation_insights

router = APIRouter()


async def get_context() -> AsyncIterator[ToolContext]:
    try:
        cfg = load_config()
    except ConfigError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    async with open_context(cfg) as ctx:
        yield ctx


def _default_dates() -> tuple[str, str]:
    end = date.today()
    start = end - timedelta(days=30)
    return start.isoformat(), end.isoformat()


def _date_range(since: str, until: str) -> DateRange:
    default_since, default_until = _default_dates()
    try:
        return DateRange(since=since or default_since, until=until or default_until)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD.") from exc


def _csv(value: str) -> list[str] | None:
    items = [v.strip() for v in value.split(",") if v.strip()]
    return items or None


async def _call(tool: Any, ctx: ToolContext, **kwargs: Any) -> dict[str, Any]:
    try:
        result: AnalysisResult = await tool(ctx, **kwargs)
    except (MissingIdentifierError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except GraphApiError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except AsyncJobTimeoutError as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc
    except AsyncJobError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return result.to_dict()


@router.get("/accounts")
async def accounts(ctx: ToolContext = Depends(get_context)):
    return await _call(list_accounts, ctx)


@router.get("/account-summary")
async def account_summary(
    since: str = Query(default=""),
    until: str = Query(default=""),
    ad_account_id: str = Query(default=""),
    currency: str = Query(default=""),
    ctx: ToolContext = Depends(get_context),
):
    return await _call(
        get_account_performance_summary,
        ctx,
        date_range=_date_range(since, until),
        ad_account_id=ad_account_id or None,
        currency=currency or None,
    )


@router.get("/campaigns")
async def campaigns(
    since: str = Query(default=""),
    until: str = Query(default=""),
    ad_account_id: str = Query(default=""),
    campaign_ids: str = Query(default="", description="Comma-separated campaign ids"),
    roas_min: float | None = Query(default=None),
    cpa_max: float | None = Query(default=None),
    ctx: ToolContext = Depends(get_context),
):
    return await _call(
        analyze_campaign_performance,
        ctx,
        date_range=_date_range(since, until),
        ad_account_id=ad_account_id or None,
        campaign_ids=_csv(campaign_ids),
        performance_thresholds=PerformanceThresholds(roas=roas_min, cpa=cpa_max),
    )


@router.get("/audiences")
async def audiences(
    since: str = Query(default=""),
    until: str = Query(default=""),
    ad_account_id: str = Query(default=""),
    level: str = Query(default="adset", description="adset, campaign"),
    ids: str = Query(default=""),
    breakdowns: str = Query(default="", description="Comma-separated, default age,gender,publisher_platform"),
    ctx: ToolContext = Depends(get_context),
):
    return await _call(
        get_audience_performance_breakdown,
        ctx,
        date_range=_date_range(since, until),
        ad_account_id=ad_account_id or None,
        level=level,
        ids=_csv(ids),
        breakdowns=_csv(breakdowns),
    )


@router.get("/creatives")
async def creatives(
    since: str = Query(default=""),
    until: str = Query(default=""),
    ad_account_id: str = Query(default=""),
    ad_ids: str = Query(default=""),
    include_preview: bool = Query(default=False),
    ctx: ToolContext = Depends(get_context),
):
    return await _call(
        analyze_creative_effectiveness,
        ctx,
        date_range=_date_range(since, until),
        ad_account_id=ad_account_id or None,
        ad_ids=_csv(ad_ids),
        include_preview=include_preview,
    )


@router.get("/spend-allocation")
async def spend_allocation(
    since: str = Query(default=""),
    until: str = Query(default=""),
    ad_account_id: str = Query(default=""),
    level: str = Query(default="campaign", description="campaign, adset, ad"),
    ctx: ToolContext = Depends(get_context),
):
    return await _call(
        get_spend_allocation_insights,
        ctx,
        date_range=_date_range(since, until),
        ad_account_id=ad_account_id or None,
        level=level,
    )


@router.get("/funnel")
async def funnel(
    since: str = Query(default=""),
    until: str = Query(default=""),
    ad_account_id: str = Query(default=""),
    attribution_window_days: int | None = Query(default=None),
    ctx: ToolContext = Depends(get_context),
):
    return await _call(
        analyze_conversion_funnel,
        ctx,
        date_range=_date_range(since, until),
        ad_account_id=ad_account_id or None,
        attribution_window_days=attribution_window_days,
    )


@router.get("/delivery")
async def delivery(
    since: str = Query(default=""),
    until: str = Query(default=""),
    ad_account_id: str = Query(default=""),
    placements: str = Query(default="", description="Comma-separated publisher platforms"),
    ctx: ToolContext = Depends(get_context),
):
    return await _call(
        get_ad_delivery_insights,
        ctx,
        date_range=_date_range(since, until),
        ad_account_id=ad_account_id or None,
        placements=_csv(placements),
    )


@router.get("/attribution")
async def attribution(
    since: str = Query(default=""),
    until: str = Query(default=""),
    ad_account_id: str = Query(default=""),
    assumed_ltv: float | None = Query(default=None),
    cac_target: float | None = Query(default=None),
    ctx: ToolContext = Depends(get_context),
):
    return await _call(
        calculate_advanced_attribution,
        ctx,
        date_range=_date_range(since, until),
        ad_account_id=ad_account_id or None,
        assumed_ltv=assumed_ltv,
        cac_target=cac_target,
    )
