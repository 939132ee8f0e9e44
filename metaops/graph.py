"""Thin async client for the Meta Graph API."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from metaops.config import DEFAULT_API_VERSION, MetaConfig
from metaops.errors import GraphApiError


logger = logging.getLogger(__name__)

GRAPH_HOST = "https://graph.facebook.com"


def encode_params(params: dict[str, Any]) -> dict[str, str]:
    """Flatten query values the way the Graph API expects them."""
    out: dict[str, str] = {}
    for k, v in params.items():
        if v is None:
            continue
        if isinstance(v, (list, tuple)):
            if not v:
                continue
            if any(isinstance(x, (dict, list, tuple)) for x in v):
                out[k] = json.dumps(list(v), separators=(",", ":"))
            else:
                out[k] = ",".join(str(x) for x in v)
        elif isinstance(v, dict):
            out[k] = json.dumps(v, separators=(",", ":"))
        elif isinstance(v, bool):
            out[k] = "true" if v else "false"
        else:
            out[k] = str(v)
    return out


class GraphClient:
    def __init__(
        self,
        access_token: str,
        *,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 45.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.access_token = access_token
        self.api_version = api_version or DEFAULT_API_VERSION
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls, cfg: MetaConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> "GraphClient":
        return cls(cfg.access_token, api_version=cfg.api_version, timeout=cfg.timeout, transport=transport)

    async def __aenter__(self) -> "GraphClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def url(self, path: str) -> str:
        return f"{GRAPH_HOST}/{self.api_version}/{path.lstrip('/')}"

    def _with_auth(self, params: dict[str, Any] | None) -> dict[str, str]:
        return encode_params({"access_token": self.access_token, **(params or {})})

    async def _send(self, method: str, url: str, params: dict[str, str] | None) -> dict[str, Any]:
        resp = await self._http.request(method, url, params=params)
        try:
            payload = resp.json()
        except ValueError:
            payload = {}

        if resp.status_code >= 400 or (isinstance(payload, dict) and payload.get("error")):
            raise GraphApiError.from_payload(payload, resp.status_code)
        if not isinstance(payload, dict):
            raise GraphApiError(f"Unexpected Graph API response | status={resp.status_code}", status_code=resp.status_code, payload=payload)
        return payload

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._send("GET", self.url(path), self._with_auth(params))

    async def post(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._send("POST", self.url(path), self._with_auth(params))

    async def get_all_pages(self, path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        next_url: str | None = self.url(path)
        next_params: dict[str, str] | None = self._with_auth(params)
        pages = 0

        while next_url:
            payload = await self._send("GET", next_url, next_params)
            data = payload.get("data")
            if isinstance(data, list):
                rows.extend(data)
            pages += 1
            # paging.next already carries the token and cursor
            next_url = (payload.get("paging") or {}).get("next")
            next_params = None

        logger.debug("fetched %d rows in %d page(s) from %s", len(rows), pages, path)
        return rows
