"""Tests for RateLimiterStats."""

from datetime import datetime, timedelta, timezone

import pytest

from limit.models import RateLimiterStats


@pytest.fixture
def stats():
    now = datetime(2026, 1, 1, 12, 0, 1, tzinfo=timezone.utc)
    return RateLimiterStats(
        tokens=2.0,
        last_refill=now - timedelta(milliseconds=1500),
        max_tokens=5.0,
        refill_duration=timedelta(seconds=10),
        now=now,
        refill_rate_per_ms=0.0005,
        refilled_tokens=2.75,
        capped_token_count=2.75,
    )


def test_elapsed_ms(stats):
    assert stats.elapsed_ms == 1500.0


def test_to_dict(stats):
    data = stats.to_dict()
    assert data["tokens"] == 2.0
    assert data["refill_duration_ms"] == 10000.0
    assert data["last_refill"] == "2026-01-01T11:59:59.500000+00:00"
    assert data["capped_token_count"] == 2.75


def test_str_lists_fields(stats):
    text = str(stats)
    assert "RateLimiterStats" in text
    assert "refill rate/ms:      0.0005" in text
    assert "refill duration:     10000.0 ms" in text


def test_is_frozen(stats):
    with pytest.raises(AttributeError):
        stats.tokens = 1.0
