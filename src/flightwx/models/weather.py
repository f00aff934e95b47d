"""Pydantic v2 models for weather observations and safety evaluations."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from flightwx.models.booking import CertificationTier

PrecipitationType = Literal["none", "rain", "snow", "ice"]


class WeatherObservation(BaseModel):
    """Surface observation at a booking's location; immutable snapshot."""

    model_config = ConfigDict(frozen=True)

    temperature_c: float = Field(ge=-90, le=60)
    humidity_pct: float = Field(ge=0, le=100)
    visibility_m: float = Field(ge=0)
    ceiling_ft: Optional[int] = Field(default=None, ge=0)  # None = unlimited
    wind_speed_kt: float = Field(ge=0)
    wind_direction_deg: float = Field(ge=0, le=360)
    wind_gust_kt: Optional[float] = Field(default=None, ge=0)
    # Hazard inputs are required so a partial report never reads as safe
    precipitation: bool
    precipitation_type: PrecipitationType
    thunderstorm: bool
    icing: bool
    observed_at: datetime


class SafetyMinimums(BaseModel):
    """Weather limits for one certification tier."""

    model_config = ConfigDict(frozen=True)

    visibility_sm: float
    ceiling_ft: int
    wind_speed_kt: float
    wind_gust_kt: float
    crosswind_kt: float
    allow_imc: bool


class MeasuredValues(BaseModel):
    """Values actually compared against the minimums."""

    visibility_sm: float
    ceiling_ft: Optional[int] = None
    wind_speed_kt: float
    wind_gust_kt: Optional[float] = None
    crosswind_kt: float


class SafetyEvaluation(BaseModel):
    """Result of evaluating one observation against one tier."""

    is_safe: bool
    violations: list[str] = Field(default_factory=list)
    hazards: list[str] = Field(default_factory=list)
    reasoning: str
    tier: CertificationTier
    minimums: SafetyMinimums
    actual: MeasuredValues

    @property
    def reasons(self) -> list[str]:
        """Hazards first, then violations."""
        return [*self.hazards, *self.violations]


class WeatherCheckRecord(BaseModel):
    """Audit row appended for every evaluation the workflow performs."""

    id: int | None = None
    booking_id: str
    checked_at: datetime
    observation: WeatherObservation
    is_safe: bool
    tier: CertificationTier
    reasons: list[str] = Field(default_factory=list)
    forced: bool = False
