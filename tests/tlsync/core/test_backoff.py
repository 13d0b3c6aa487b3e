"""Unit tests for the rate-limit backoff controller."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from tlsync.config.models import BackoffConfig
from tlsync.core.backoff import RateLimitBackoff, compute_wait
from tlsync.core.runtime.shutdown import ShutdownSignal

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestComputeWait:
    """Test suite for compute_wait."""

    def test_floor_applies_when_reset_is_near(self):
        assert compute_wait(NOW + timedelta(seconds=5), NOW, min_floor=10.0) == 10.0

    def test_pads_past_distant_reset(self):
        assert compute_wait(NOW + timedelta(seconds=60), NOW, min_floor=10.0) == 61.0

    def test_reset_in_the_past_uses_floor(self):
        assert compute_wait(NOW - timedelta(minutes=5), NOW, min_floor=10.0) == 10.0

    @given(
        offset=st.floats(min_value=-3600, max_value=3600, allow_nan=False),
        floor=st.floats(min_value=0.0, max_value=600, allow_nan=False),
    )
    def test_wait_never_below_floor_or_reset(self, offset, floor):
        wait = compute_wait(NOW + timedelta(seconds=offset), NOW, min_floor=floor)

        assert wait >= floor
        assert wait >= offset


@pytest.mark.unit
class TestRateLimitBackoff:
    """Test suite for RateLimitBackoff."""

    def test_plan_uses_config_and_clock(self):
        backoff = RateLimitBackoff(
            BackoffConfig(min_wait_sec=2.0, pad_sec=0.5),
            clock=lambda: NOW,
            sleeper=lambda seconds: False,
        )

        assert backoff.plan(NOW + timedelta(seconds=5)) == 5.5
        assert backoff.plan(NOW) == 2.0

    def test_wait_sleeps_planned_duration(self):
        slept: list[float] = []

        def sleeper(seconds: float) -> bool:
            slept.append(seconds)
            return False

        backoff = RateLimitBackoff(clock=lambda: NOW, sleeper=sleeper)

        assert backoff.wait(NOW + timedelta(seconds=5)) is True
        assert slept == [10.0]

    def test_interrupted_sleep_reports_false(self):
        backoff = RateLimitBackoff(clock=lambda: NOW, sleeper=lambda seconds: True)

        assert backoff.sleep(10.0) is False

    def test_shutdown_signal_interrupts_default_sleeper(self):
        shutdown = ShutdownSignal()
        shutdown.request()
        backoff = RateLimitBackoff(clock=lambda: NOW, shutdown=shutdown)

        # an already requested shutdown returns immediately instead of sleeping 10s
        assert backoff.wait(NOW) is False
