"""Exceptions raised by metaops."""

from __future__ import annotations

from typing import Any


class MetaOpsError(Exception):
    """Base exception for metaops."""


class ConfigError(MetaOpsError):
    """Required configuration is missing or malformed."""


class MissingIdentifierError(MetaOpsError, ValueError):
    """No explicit and no configured default entity identifier."""

    def __init__(self, name: str, hint: str = ""):
        self.name = name
        message = f"{name} is required."
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)


class GraphApiError(MetaOpsError, RuntimeError):
    """The Graph API answered with an error payload instead of data."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: Any = None):
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)

    @classmethod
    def from_payload(cls, payload: Any, status_code: int) -> "GraphApiError":
        """Build the error from a Graph API ``{"error": {...}}`` body.

        The message reads ``<message> | type=.. | code=.. | fbtrace_id=.. | status=..``,
        skipping details the body does not carry.
        """
        detail = payload.get("error") if isinstance(payload, dict) else None
        if not isinstance(detail, dict):
            detail = {"message": str(detail)} if detail else {}

        parts = [str(detail.get("message") or "Meta API request failed").strip()]
        for key in ("type", "code", "fbtrace_id"):
            value = detail.get(key)
            if value is not None and value != "":
                parts.append(f"{key}={value}")
        parts.append(f"status={status_code}")
        return cls(" | ".join(parts), status_code=status_code, payload=payload)


class AsyncJobError(MetaOpsError, RuntimeError):
    """An async insights report run could not be started."""


class AsyncJobFailedError(AsyncJobError):
    def __init__(self, job_id: str, status: str):
        self.job_id = job_id
        self.status = status
        super().__init__(f"Async insights job {job_id} failed (status: {status})")


class AsyncJobTimeoutError(AsyncJobError):
    def __init__(self, job_id: str, waited_seconds: float):
        self.job_id = job_id
        self.waited_seconds = waited_seconds
        super().__init__(f"Async insights job {job_id} timed out after {waited_seconds:.1f}s")
