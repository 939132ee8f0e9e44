from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import httpx

from metaops.config import MetaConfig
from metaops.errors import MissingIdentifierError
from metaops.graph import GraphClient
from metaops.jobs import run_insights_job
from metaops.schemas import DateRange


@dataclass(frozen=True)
class ToolContext:
    client: GraphClient
    default_account_id: str = ""
    async_reports: bool = False
    job_poll_seconds: float = 1.5
    job_max_wait_seconds: float = 120.0


@asynccontextmanager
async def open_context(cfg: MetaConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> AsyncIterator[ToolContext]:
    async with GraphClient.from_config(cfg, transport=transport) as client:
        yield ToolContext(
            client=client,
            default_account_id=cfg.ad_account_id,
            async_reports=cfg.async_reports,
            job_poll_seconds=cfg.job_poll_seconds,
            job_max_wait_seconds=cfg.job_max_wait_seconds,
        )


def account_id_or_raise(ad_account_id: str | None, default_account_id: str | None) -> str:
    raw = ad_account_id or default_account_id or ""
    account_id = raw.strip()
    if not account_id:
        raise MissingIdentifierError(
            "ad_account_id",
            "Set META_AD_ACCOUNT_ID in .env or pass ad_account_id in the tool input.",
        )
    return account_id if account_id.startswith("act_") else f"act_{account_id}"


def id_filter(field: str, ids: Sequence[str] | None) -> list[dict[str, Any]] | None:
    if not ids:
        return None
    return [{"field": field, "operator": "IN", "value": list(ids)}]


async def fetch_insights(
    ctx: ToolContext,
    account_id: str,
    *,
    fields: Sequence[str],
    date_range: DateRange,
    level: str,
    **extra: Any,
) -> list[dict[str, Any]]:
    params: dict[str, Any] = {
        "fields": list(fields),
        "time_range": date_range.as_time_range(),
        "level": level,
        **extra,
    }
    if ctx.async_reports:
        return await run_insights_job(
            ctx.client,
            account_id,
            params,
            poll_seconds=ctx.job_poll_seconds,
            max_wait_seconds=ctx.job_max_wait_seconds,
        )
    return await ctx.client.get_all_pages(f"/{account_id}/insights", params)
