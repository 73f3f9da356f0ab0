"""Tests for the trending score."""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta

import pytest

from ideaboard.core.ranking import calculate_ranking

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def _hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


def test_ranking_formula() -> None:
    result = calculate_ranking(3, 2, _hours_ago(10), now=NOW)
    assert result == pytest.approx(((3 * 5) + (2 * 3) - 1) / math.pow(12, 1.4))


def test_ranking_new_idea_without_engagement_is_negative() -> None:
    result = calculate_ranking(0, 0, NOW, now=NOW)
    assert result == pytest.approx(-1 / math.pow(2, 1.4))
    assert result < 0


def test_ranking_is_deterministic() -> None:
    created = _hours_ago(36)
    first = calculate_ranking(4, 1, created, now=NOW)
    second = calculate_ranking(4, 1, created, now=NOW)
    assert first == second


def test_ranking_supporters_weigh_more_than_comments() -> None:
    created = _hours_ago(5)
    assert calculate_ranking(1, 0, created, now=NOW) > calculate_ranking(0, 1, created, now=NOW)


def test_ranking_decays_with_age() -> None:
    fresh = calculate_ranking(5, 5, _hours_ago(1), now=NOW)
    stale = calculate_ranking(5, 5, _hours_ago(240), now=NOW)
    assert fresh > stale > 0


def test_ranking_nan_input_normalizes_to_zero() -> None:
    assert calculate_ranking(float("nan"), 0, _hours_ago(1), now=NOW) == 0.0


def test_ranking_infinite_input_normalizes_to_zero() -> None:
    assert calculate_ranking(float("inf"), 0, _hours_ago(1), now=NOW) == 0.0


def test_ranking_zero_denominator_normalizes_to_zero() -> None:
    # created 2 hours in the future: (-2 + 2) ** 1.4 == 0
    assert calculate_ranking(3, 2, NOW + timedelta(hours=2), now=NOW) == 0.0


def test_ranking_negative_base_normalizes_to_zero() -> None:
    assert calculate_ranking(3, 2, NOW + timedelta(hours=10), now=NOW) == 0.0


def test_ranking_defaults_to_wall_clock() -> None:
    result = calculate_ranking(1, 0, datetime.now(UTC) - timedelta(hours=1))
    assert result == pytest.approx(4 / math.pow(3, 1.4), rel=1e-3)
