from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from metaops.kpis import KpiSet


def jsonable(obj: Any) -> Any:
    if isinstance(obj, KpiSet):
        return obj.to_dict()
    if isinstance(obj, dict):
        return {k: jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [jsonable(v) for v in obj]
    if isinstance(obj, date):
        return obj.isoformat()
    return obj


@dataclass
class AnalysisResult:
    raw_data: Any
    analysis: dict[str, Any] | None = None
    recommendations: dict[str, Any] | None = None
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"raw_data": jsonable(self.raw_data)}
        if self.analysis is not None:
            out["analysis"] = jsonable(self.analysis)
        if self.recommendations is not None:
            out["recommendations"] = jsonable(self.recommendations)
        if self.meta is not None:
            out["meta"] = jsonable(self.meta)
        return out
