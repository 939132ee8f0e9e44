from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from metaops.config import load_config
from metaops.errors import MetaOpsError
from metaops.schemas import DateRange, PerformanceThresholds
from metaops.server import serve
from metaops.tools.accounts import get_account_performance_summary, list_accounts
from metaops.tools.attribution import calculate_advanced_attribution
from metaops.tools.audiences import get_audience_performance_breakdown
from metaops.tools.campaigns import analyze_campaign_performance
from metaops.tools.common import open_context
from metaops.tools.creatives import analyze_creative_effectiveness
from metaops.tools.delivery import get_ad_delivery_insights
from metaops.tools.funnel import analyze_conversion_funnel
from metaops.tools.spend import get_spend_allocation_insights


TOOLS = {
    "list_accounts": list_accounts,
    "get_account_performance_summary": get_account_performance_summary,
    "analyze_campaign_performance": analyze_campaign_performance,
    "get_audience_performance_breakdown": get_audience_performance_breakdown,
    "analyze_creative_effectiveness": analyze_creative_effectiveness,
    "get_spend_allocation_insights": get_spend_allocation_insights,
    "analyze_conversion_funnel": analyze_conversion_funnel,
    "get_ad_delivery_insights": get_ad_delivery_insights,
    "calculate_advanced_attribution": calculate_advanced_attribution,
}


def _print(obj: object) -> None:
    print(json.dumps(obj, indent=2, sort_keys=True))


def _csv(value: str) -> list[str] | None:
    items = [v.strip() for v in value.split(",") if v.strip()]
    return items or None


def _tool_kwargs(name: str, args: argparse.Namespace) -> dict[str, Any]:
    if name == "list_accounts":
        return {}
    if not args.since or not args.until:
        raise SystemExit(f"--since and --until are required for {name}")

    kwargs: dict[str, Any] = {
        "date_range": DateRange(since=args.since, until=args.until),
        "ad_account_id": args.ad_account_id or None,
    }
    if name == "analyze_campaign_performance":
        kwargs["campaign_ids"] = _csv(args.ids)
        if args.roas_min is not None or args.cpa_max is not None:
            kwargs["performance_thresholds"] = PerformanceThresholds(roas=args.roas_min, cpa=args.cpa_max)
    elif name == "get_audience_performance_breakdown":
        kwargs["level"] = args.level or "adset"
        kwargs["ids"] = _csv(args.ids)
        kwargs["breakdowns"] = _csv(args.breakdowns)
    elif name == "analyze_creative_effectiveness":
        kwargs["ad_ids"] = _csv(args.ids)
        kwargs["include_preview"] = bool(args.include_preview)
    elif name == "get_spend_allocation_insights":
        kwargs["level"] = args.level or "campaign"
    elif name == "analyze_conversion_funnel":
        kwargs["attribution_window_days"] = args.attribution_window_days
    elif name == "get_ad_delivery_insights":
        kwargs["placements"] = _csv(args.placements)
    elif name == "calculate_advanced_attribution":
        kwargs["assumed_ltv"] = args.assumed_ltv
        kwargs["cac_target"] = args.cac_target
    return kwargs


async def _run_tool(name: str, kwargs: dict[str, Any]) -> dict[str, Any]:
    cfg = load_config()
    async with open_context(cfg) as ctx:
        result = await TOOLS[name](ctx, **kwargs)
    return result.to_dict()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="metaops", description="Meta Ads analytics tools (MCP server + CLI).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr.")

    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("serve", help="Run the MCP tool server over stdio.")

    tool = sub.add_parser("tool", help="Run one analysis tool and print its JSON result.")
    tool.add_argument("name", type=str, help="Tool name, e.g. analyze_campaign_performance")
    tool.add_argument("--since", type=str, default="")
    tool.add_argument("--until", type=str, default="")
    tool.add_argument("--ad-account-id", type=str, default="")
    tool.add_argument("--ids", type=str, default="", help="Comma-separated campaign/adset/ad ids")
    tool.add_argument("--level", type=str, default="")
    tool.add_argument("--breakdowns", type=str, default="")
    tool.add_argument("--placements", type=str, default="")
    tool.add_argument("--roas-min", type=float, default=None)
    tool.add_argument("--cpa-max", type=float, default=None)
    tool.add_argument("--include-preview", action="store_true")
    tool.add_argument("--attribution-window-days", type=int, default=None)
    tool.add_argument("--assumed-ltv", type=float, default=None)
    tool.add_argument("--cac-target", type=float, default=None)

    args = parser.parse_args(argv)
    # stdout carries JSON / the MCP stream; logs go to stderr.
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.cmd == "serve":
        try:
            cfg = load_config()
        except MetaOpsError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        serve(cfg)
        return 0

    if args.cmd == "tool":
        name = args.name.strip().replace("-", "_").replace(".", "_")
        if name not in TOOLS:
            raise SystemExit(f"Unknown tool: {args.name}")
        try:
            kwargs = _tool_kwargs(name, args)
            _print(asyncio.run(_run_tool(name, kwargs)))
        except (MetaOpsError, ValueError) as exc:
            print(str(exc), file=sys.stderr)
            return 1
        return 0

    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
