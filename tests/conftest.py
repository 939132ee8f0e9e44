"""Shared fixtures: an in-memory Graph API behind httpx.MockTransport."""

import asyncio
from collections import defaultdict, deque

import httpx
import pytest

from metaops.graph import GraphClient
from metaops.schemas import DateRange
from metaops.tools.common import ToolContext


class FakeGraph:
    """Answers Graph API requests from queued payloads keyed by (method, path).

    Paths are given without the version prefix ("/act_1/insights"). Each request
    pops the next queued payload; the last one keeps being served.
    """

    def __init__(self, api_version: str = "v20.0"):
        self.api_version = api_version
        self.routes = defaultdict(deque)
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, payload, status: int = 200) -> "FakeGraph":
        self.routes[(method.upper(), path)].append((status, payload))
        return self

    def insights(self, account_id: str, rows: list[dict], method: str = "GET") -> "FakeGraph":
        return self.add(method, f"/{account_id}/insights", {"data": rows})

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and self._path(r) == path]

    def _path(self, request: httpx.Request) -> str:
        prefix = f"/{self.api_version}"
        path = request.url.path
        return path[len(prefix):] if path.startswith(prefix) else path

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, self._path(request)))
        if not queue:
            return httpx.Response(404, json={"error": {"message": f"no route for {request.method} {request.url.path}"}})
        status, payload = queue[0] if len(queue) == 1 else queue.popleft()
        return httpx.Response(status, json=payload)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def graph() -> FakeGraph:
    return FakeGraph()


@pytest.fixture
def date_range() -> DateRange:
    return DateRange(since="2024-01-01", until="2024-01-31")


@pytest.fixture
def run_tool(graph):
    """Run an async tool against the fake Graph API and return its AnalysisResult."""

    def _run(tool, *, default_account_id="act_123", async_reports=False, **kwargs):
        async def go():
            async with GraphClient("test-token", transport=graph.transport()) as client:
                ctx = ToolContext(
                    client=client,
                    default_account_id=default_account_id,
                    async_reports=async_reports,
                    job_poll_seconds=0,
                    job_max_wait_seconds=5,
                )
                return await tool(ctx, **kwargs)

        return asyncio.run(go())

    return _run


def purchase_row(**fields) -> dict:
    """Build an insights row; ``purchases``/``revenue`` become action entries."""
    purchases = fields.pop("purchases", None)
    revenue = fields.pop("revenue", None)
    row = dict(fields)
    if purchases is not None:
        row["actions"] = [{"action_type": "offsite_conversion.fb_pixel_purchase", "value": str(purchases)}]
    if revenue is not None:
        row["action_values"] = [{"action_type": "offsite_conversion.fb_pixel_purchase", "value": str(revenue)}]
    return row


@pytest.fixture
def make_row():
    return purchase_row
