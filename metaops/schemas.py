from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from metaops.util import iso_date


AudienceLevel = Literal["adset", "campaign"]
SpendLevel = Literal["campaign", "adset", "ad"]


class DateRange(BaseModel):
    since: date = Field(..., description="YYYY-MM-DD")
    until: date = Field(..., description="YYYY-MM-DD")

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        # Reversed ranges are swapped rather than rejected.
        if self.since > self.until:
            self.since, self.until = self.until, self.since
        return self

    def as_time_range(self) -> dict[str, str]:
        return {"since": iso_date(self.since), "until": iso_date(self.until)}


class PerformanceThresholds(BaseModel):
    cpa: Optional[float] = Field(None, description="Flag campaigns whose CPA is above this value")
    roas: Optional[float] = Field(None, description="Flag campaigns whose ROAS is below this value")
