"""MCP tool server exposing the analysis tools over stdio."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from mcp.server.fastmcp import FastMCP

from metaops.config import MetaConfig
from metaops.schemas import AudienceLevel, DateRange, PerformanceThresholds, SpendLevel
from metaops.tools.accounts import get_account_performance_summary, list_accounts
from metaops.tools.attribution import calculate_advanced_attribution
from metaops.tools.audiences import get_audience_performance_breakdown
from metaops.tools.campaigns import analyze_campaign_performance
from metaops.tools.common import open_context
from metaops.tools.creatives import analyze_creative_effectiveness
from metaops.tools.delivery import get_ad_delivery_insights
from metaops.tools.funnel import analyze_conversion_funnel
from metaops.tools.spend import get_spend_allocation_insights


logger = logging.getLogger(__name__)

SERVER_NAME = "meta-ads"


def build_server(cfg: MetaConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> FastMCP:
    server = FastMCP(SERVER_NAME)

    async def run(tool: Any, **kwargs: Any) -> dict[str, Any]:
        async with open_context(cfg, transport=transport) as ctx:
            result = await tool(ctx, **kwargs)
        return result.to_dict()

    @server.tool(name="list_accounts", description="List ad accounts the current token can access")
    async def accounts() -> dict[str, Any]:
        return await run(list_accounts)

    @server.tool(name="get_account_performance_summary", description="High-level account KPIs and trends")
    async def account_summary(
        date_range: DateRange,
        ad_account_id: Optional[str] = None,
        currency: Optional[str] = None,
        attribution_setting: Optional[str] = None,
    ) -> dict[str, Any]:
        return await run(
            get_account_performance_summary,
            date_range=date_range,
            ad_account_id=ad_account_id,
            currency=currency,
            attribution_setting=attribution_setting,
        )

    @server.tool(
        name="analyze_campaign_performance",
        description="Rank campaigns by ROAS/CPA; flag underperformers; suggest budget shifts",
    )
    async def campaigns(
        date_range: DateRange,
        ad_account_id: Optional[str] = None,
        campaign_ids: Optional[list[str]] = None,
        performance_thresholds: Optional[PerformanceThresholds] = None,
    ) -> dict[str, Any]:
        return await run(
            analyze_campaign_performance,
            date_range=date_range,
            ad_account_id=ad_account_id,
            campaign_ids=campaign_ids,
            performance_thresholds=performance_thresholds,
        )

    @server.tool(
        name="get_audience_performance_breakdown",
        description="Breakdowns across demographics and placements",
    )
    async def audiences(
        date_range: DateRange,
        ad_account_id: Optional[str] = None,
        level: AudienceLevel = "adset",
        ids: Optional[list[str]] = None,
        breakdowns: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        return await run(
            get_audience_performance_breakdown,
            date_range=date_range,
            ad_account_id=ad_account_id,
            level=level,
            ids=ids,
            breakdowns=breakdowns,
        )

    @server.tool(
        name="analyze_creative_effectiveness",
        description="Evaluate ad creatives by format and KPIs; surface winners/losers",
    )
    async def creatives(
        date_range: DateRange,
        ad_account_id: Optional[str] = None,
        ad_ids: Optional[list[str]] = None,
        include_preview: bool = False,
    ) -> dict[str, Any]:
        return await run(
            analyze_creative_effectiveness,
            date_range=date_range,
            ad_account_id=ad_account_id,
            ad_ids=ad_ids,
            include_preview=include_preview,
        )

    @server.tool(
        name="get_spend_allocation_insights",
        description="Distribution by campaign/adset/ad with reallocation suggestions",
    )
    async def spend(
        date_range: DateRange,
        ad_account_id: Optional[str] = None,
        level: SpendLevel = "campaign",
    ) -> dict[str, Any]:
        return await run(get_spend_allocation_insights, date_range=date_range, ad_account_id=ad_account_id, level=level)

    @server.tool(
        name="analyze_conversion_funnel",
        description="Funnel from view_content to purchase, drop-offs and recommendations",
    )
    async def funnel(
        date_range: DateRange,
        ad_account_id: Optional[str] = None,
        attribution_window_days: Optional[int] = None,
    ) -> dict[str, Any]:
        return await run(
            analyze_conversion_funnel,
            date_range=date_range,
            ad_account_id=ad_account_id,
            attribution_window_days=attribution_window_days,
        )

    @server.tool(name="get_ad_delivery_insights", description="Placement & position performance; competitiveness proxy")
    async def delivery(
        date_range: DateRange,
        ad_account_id: Optional[str] = None,
        placements: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        return await run(get_ad_delivery_insights, date_range=date_range, ad_account_id=ad_account_id, placements=placements)

    @server.tool(name="calculate_advanced_attribution", description="CAC, ROAS, LTV heuristic, CLV/CAC; guidance for multi-touch")
    async def attribution(
        date_range: DateRange,
        ad_account_id: Optional[str] = None,
        assumed_ltv: Optional[float] = None,
        cac_target: Optional[float] = None,
    ) -> dict[str, Any]:
        return await run(
            calculate_advanced_attribution,
            date_range=date_range,
            ad_account_id=ad_account_id,
            assumed_ltv=assumed_ltv,
            cac_target=cac_target,
        )

    return server


def serve(cfg: MetaConfig) -> None:
    logger.info("starting %s MCP server (api %s)", SERVER_NAME, cfg.api_version)
    build_server(cfg).run()
