from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

from metaops.errors import ConfigError


logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "v20.0"


@dataclass(frozen=True)
class MetaConfig:
    access_token: str
    ad_account_id: str = ""
    app_id: str = ""
    app_secret: str = ""
    business_id: str = ""
    api_version: str = DEFAULT_API_VERSION
    timeout: float = 45.0
    async_reports: bool = False
    job_poll_seconds: float = 1.5
    job_max_wait_seconds: float = 120.0


def _env_bool(value: str | None) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = str(env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def load_config(environ: Mapping[str, str] | None = None) -> MetaConfig:
    if environ is None:
        load_dotenv()
        environ = os.environ

    access_token = str(environ.get("META_ACCESS_TOKEN") or "").strip()
    if not access_token:
        raise ConfigError("Missing required env var: META_ACCESS_TOKEN")

    ad_account_id = str(environ.get("META_AD_ACCOUNT_ID") or "").strip()
    if not ad_account_id.startswith("act_"):
        logger.warning(
            "META_AD_ACCOUNT_ID is recommended (format: act_XXXXXXXXXXXX). "
            "You can still call list_accounts to discover accounts."
        )

    return MetaConfig(
        access_token=access_token,
        ad_account_id=ad_account_id,
        app_id=str(environ.get("META_APP_ID") or "").strip(),
        app_secret=str(environ.get("META_APP_SECRET") or "").strip(),
        business_id=str(environ.get("META_BUSINESS_ID") or "").strip(),
        api_version=str(environ.get("META_API_VERSION") or "").strip() or DEFAULT_API_VERSION,
        timeout=_env_float(environ, "META_HTTP_TIMEOUT", 45.0),
        async_reports=_env_bool(environ.get("META_ASYNC_REPORTS")),
        job_poll_seconds=_env_float(environ, "META_JOB_POLL_SECONDS", 1.5),
        job_max_wait_seconds=_env_float(environ, "META_JOB_MAX_WAIT_SECONDS", 120.0),
    )
