"""Tests for the tier minimums table."""

from __future__ import annotations

import itertools

import pytest

from flightwx.analysis.minimums import (
    WEATHER_MINIMUMS,
    check_monotonic,
    get_minimums,
    is_at_least_as_loose,
)
from flightwx.models import CertificationTier


def test_every_tier_has_minimums():
    assert set(WEATHER_MINIMUMS) == set(CertificationTier)


def test_table_is_monotonic():
    """Each tier is at least as permissive as every less capable tier."""
    tiers = sorted(CertificationTier, key=lambda t: t.rank)
    for lower, higher in itertools.combinations(tiers, 2):
        assert is_at_least_as_loose(WEATHER_MINIMUMS[higher], WEATHER_MINIMUMS[lower])


def test_student_limits():
    m = get_minimums("student")
    assert m.visibility_sm == 5
    assert m.ceiling_ft == 3000
    assert m.wind_speed_kt == 10
    assert m.allow_imc is False


def test_unknown_tier():
    with pytest.raises(ValueError, match="Valid: student, private, instrument, commercial"):
        get_minimums("glider")


def test_check_monotonic_rejects_inverted_table():
    table = dict(WEATHER_MINIMUMS)
    table[CertificationTier.PRIVATE] = WEATHER_MINIMUMS[CertificationTier.STUDENT].model_copy(
        update={"wind_speed_kt": 8}
    )
    with pytest.raises(ValueError, match="'private' are stricter than for 'student'"):
        check_monotonic(table)


def test_check_monotonic_rejects_missing_tier():
    table = {t: m for t, m in WEATHER_MINIMUMS.items() if t != CertificationTier.COMMERCIAL}
    with pytest.raises(ValueError, match="commercial"):
        check_monotonic(table)
