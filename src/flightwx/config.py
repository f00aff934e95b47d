"""Workflow settings loading from YAML, with environment overrides."""

from __future__ import annotations

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"


class AvailabilitySettings(BaseModel):
    """Slot grid shape and turnaround buffer shared by every resource."""

    timezone: str = "UTC"
    horizon_days: int = Field(default=7, ge=1)
    first_hour: int = Field(default=7, ge=0, le=23)
    last_hour: int = Field(default=18, ge=1, le=24)  # exclusive bound on slot starts
    slot_hours: int = Field(default=2, ge=1)
    turnaround_buffer_minutes: int = Field(default=30, ge=0)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone '{value}'") from None
        return value

    @model_validator(mode="after")
    def _check_hours(self) -> AvailabilitySettings:
        if self.last_hour <= self.first_hour:
            raise ValueError("last_hour must be after first_hour")
        return self


class WorkflowSettings(BaseModel):
    """Tunables for a reconciliation run."""

    hours_ahead: int = Field(default=24, ge=1)
    batch_size: int = Field(default=5, ge=1)
    weather_timeout_s: float = 10.0
    weather_cache_ttl_s: int = 600
    smtp_timeout_s: float = 30.0
    runway_heading: int = Field(default=360, ge=1, le=360)
    availability: AvailabilitySettings = AvailabilitySettings()

    @property
    def timezone(self) -> str:
        return self.availability.timezone


def _apply_env_overrides(raw: dict) -> dict:
    raw = dict(raw)
    availability = dict(raw.get("availability") or {})
    if tz := os.environ.get("FLIGHTWX_TIMEZONE"):
        availability["timezone"] = tz
    if hours := os.environ.get("FLIGHTWX_HOURS_AHEAD"):
        raw["hours_ahead"] = int(hours)
    if batch := os.environ.get("FLIGHTWX_BATCH_SIZE"):
        raw["batch_size"] = int(batch)
    raw["availability"] = availability
    return raw


def load_workflow_settings(
    name: str | None = None, config_dir: Path | None = None
) -> WorkflowSettings:
    """Load a named profile from workflow.yaml.

    Resolution order for the profile name:
    1. Explicit name parameter
    2. FLIGHTWX_PROFILE environment variable
    3. "default"

    A missing workflow.yaml yields built-in defaults (still subject to
    environment overrides). A missing profile raises KeyError.
    """
    profile = name or os.environ.get("FLIGHTWX_PROFILE", "default")
    config_dir = config_dir or CONFIG_DIR
    settings_file = config_dir / "workflow.yaml"

    raw: dict = {}
    if settings_file.exists():
        with open(settings_file) as f:
            data = yaml.safe_load(f) or {}
        profiles = data.get("profiles", {})
        if profile not in profiles:
            available = ", ".join(profiles.keys())
            raise KeyError(f"Profile '{profile}' not found. Available: {available}")
        raw = profiles[profile] or {}

    return WorkflowSettings.model_validate(_apply_env_overrides(raw))
