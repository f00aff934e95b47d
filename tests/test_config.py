"""Tests for workflow settings loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from flightwx.config import AvailabilitySettings, WorkflowSettings, load_workflow_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        "FLIGHTWX_PROFILE", "FLIGHTWX_TIMEZONE", "FLIGHTWX_HOURS_AHEAD", "FLIGHTWX_BATCH_SIZE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / "workflow.yaml").write_text(
        "profiles:\n"
        "  default:\n"
        "    hours_ahead: 12\n"
        "    availability:\n"
        "      timezone: Europe/London\n"
        "      turnaround_buffer_minutes: 15\n"
        "  quiet:\n"
        "    batch_size: 1\n"
    )
    return tmp_path


def test_shipped_default_profile_loads():
    settings = load_workflow_settings("default")
    assert settings.hours_ahead == 24
    assert settings.batch_size == 5
    assert settings.availability.turnaround_buffer_minutes == 30
    assert settings.timezone == "America/New_York"


def test_shipped_evening_profile():
    assert load_workflow_settings("evening").hours_ahead == 36


def test_profile_from_file(config_dir):
    settings = load_workflow_settings(config_dir=config_dir)
    assert settings.hours_ahead == 12
    assert settings.batch_size == 5
    assert settings.timezone == "Europe/London"
    assert settings.availability.turnaround_buffer_minutes == 15


def test_profile_from_env(config_dir, monkeypatch):
    monkeypatch.setenv("FLIGHTWX_PROFILE", "quiet")
    settings = load_workflow_settings(config_dir=config_dir)
    assert settings.batch_size == 1
    assert settings.timezone == "UTC"


def test_missing_profile_raises(config_dir):
    with pytest.raises(KeyError, match="Available: default, quiet"):
        load_workflow_settings("weekend", config_dir=config_dir)


def test_missing_file_uses_defaults(tmp_path):
    assert load_workflow_settings(config_dir=tmp_path) == WorkflowSettings()


def test_env_overrides(config_dir, monkeypatch):
    monkeypatch.setenv("FLIGHTWX_TIMEZONE", "America/Denver")
    monkeypatch.setenv("FLIGHTWX_HOURS_AHEAD", "48")
    monkeypatch.setenv("FLIGHTWX_BATCH_SIZE", "2")
    settings = load_workflow_settings(config_dir=config_dir)
    assert settings.timezone == "America/Denver"
    assert settings.hours_ahead == 48
    assert settings.batch_size == 2
    assert settings.availability.turnaround_buffer_minutes == 15


def test_unknown_timezone_rejected():
    with pytest.raises(ValidationError, match="Unknown timezone"):
        AvailabilitySettings(timezone="Mars/Olympus_Mons")


def test_hours_must_be_ordered():
    with pytest.raises(ValidationError):
        AvailabilitySettings(first_hour=18, last_hour=7)


def test_batch_size_positive():
    with pytest.raises(ValidationError):
        WorkflowSettings(batch_size=0)
