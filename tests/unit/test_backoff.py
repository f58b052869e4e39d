"""Unit tests for global_file_lock.backoff.

Coverage:
- new_state starts at initial_delay with a clock reading
- growth below the cap, reset to restart_delay at the cap
- over-cap rounds bounded by max_over_cap_retries
- LockTimeoutError carries elapsed time and attempts
- independent states do not interfere
- wait / wait_sync sleep for the returned delay
"""
from __future__ import annotations

import random
from unittest.mock import patch

import pytest

from global_file_lock.backoff import Backoff, BackoffState
from global_file_lock.config import LockConfig
from global_file_lock.errors import LockTimeoutError


class _FixedRandom:
    """Random source whose ``random()`` always returns the same value."""

    def __init__(self, value: float) -> None:
        self._value = value

    def random(self) -> float:
        return self._value


class _FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> LockConfig:
    return LockConfig(initial_delay=1, restart_delay=2, delay_cap=10, max_over_cap_retries=3)


@pytest.fixture()
def backoff(config: LockConfig) -> Backoff:
    return Backoff(config, rng=_FixedRandom(0.5))


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


def test_new_state_starts_at_initial_delay() -> None:
    clock = _FakeClock(42.0)
    backoff = Backoff(LockConfig(initial_delay=7), clock=clock)
    state = backoff.new_state()
    assert state.current_delay == 7
    assert state.start_time == 42.0
    assert state.attempt_count == 0
    assert state.over_cap_rounds == 0


def test_default_config() -> None:
    assert Backoff().config == LockConfig()


# ---------------------------------------------------------------------------
# Growth and cap
# ---------------------------------------------------------------------------


def test_delay_grows_until_cap_then_resets(backoff: Backoff) -> None:
    """Recorded delays are non-decreasing until the cap, then restart."""
    state = backoff.new_state()
    recorded = [state.current_delay]
    while recorded[-1] < 10:
        backoff.next_delay(state)
        recorded.append(state.current_delay)

    assert recorded == sorted(recorded)
    assert recorded[-1] >= 10

    backoff.next_delay(state)
    assert state.current_delay == 2
    assert state.over_cap_rounds == 1


def test_returned_delay_is_floor_of_current(backoff: Backoff) -> None:
    state = backoff.new_state()
    returned = [backoff.next_delay(state) for _ in range(7)]
    # 1, 1.5, 2.25, 3.375, 5.06, 7.59, 11.39 (over cap, returned before reset)
    assert returned == [1, 1, 2, 3, 5, 7, 11]
    assert state.current_delay == 2


def test_growth_factor_between_one_and_two() -> None:
    backoff = Backoff(LockConfig(initial_delay=4, delay_cap=1000), rng=random.Random(7))
    state = backoff.new_state()
    previous = state.current_delay
    for _ in range(5):
        backoff.next_delay(state)
        assert previous <= state.current_delay < previous * 2
        previous = state.current_delay


def test_attempt_count_increments(backoff: Backoff) -> None:
    state = backoff.new_state()
    for _ in range(4):
        backoff.next_delay(state)
    assert state.attempt_count == 4


# ---------------------------------------------------------------------------
# Timeout
# ---------------------------------------------------------------------------


def test_timeout_after_max_over_cap_rounds(config: LockConfig) -> None:
    clock = _FakeClock(10.0)
    backoff = Backoff(config, rng=_FixedRandom(0.99), clock=clock)
    state = backoff.new_state()
    clock.now = 12.5

    with pytest.raises(LockTimeoutError) as info:
        for _ in range(1000):
            backoff.next_delay(state)

    assert state.over_cap_rounds == 3
    assert info.value.elapsed == pytest.approx(2.5)
    assert info.value.attempts == state.attempt_count
    assert isinstance(info.value, TimeoutError)


def test_zero_retries_times_out_at_first_cap_hit() -> None:
    backoff = Backoff(
        LockConfig(initial_delay=1, delay_cap=4, max_over_cap_retries=0),
        rng=_FixedRandom(0.0),
    )
    state = BackoffState(current_delay=4, start_time=0.0)
    with pytest.raises(LockTimeoutError):
        backoff.next_delay(state)
    assert state.current_delay == 4
    assert state.attempt_count == 0


def test_timeout_message_mentions_elapsed_ms() -> None:
    error = LockTimeoutError(elapsed=1.25, attempts=9)
    assert "Locked for too long" in str(error)
    assert "1250 ms" in str(error)


def test_timeout_message_includes_identity_once_attached() -> None:
    error = LockTimeoutError(elapsed=0.0)
    error.identity = "/tmp/x.lock"
    assert "/tmp/x.lock" in str(error)


# ---------------------------------------------------------------------------
# Independence
# ---------------------------------------------------------------------------


def test_states_do_not_interfere(backoff: Backoff) -> None:
    first = backoff.new_state()
    second = backoff.new_state()
    for _ in range(5):
        backoff.next_delay(first)
    assert second.current_delay == 1
    assert second.attempt_count == 0
    assert first.attempt_count == 5


# ---------------------------------------------------------------------------
# Sleeping
# ---------------------------------------------------------------------------


def test_wait_sync_sleeps_in_seconds() -> None:
    backoff = Backoff(LockConfig(initial_delay=3, time_unit=0.5), rng=_FixedRandom(0.0))
    state = backoff.new_state()
    with patch("global_file_lock.backoff.time.sleep") as sleep:
        backoff.wait_sync(state)
    sleep.assert_called_once_with(pytest.approx(1.5))


@pytest.mark.asyncio
async def test_wait_sleeps_asynchronously() -> None:
    backoff = Backoff(LockConfig(initial_delay=2, time_unit=0.0001), rng=_FixedRandom(0.0))
    state = backoff.new_state()
    await backoff.wait(state)
    assert state.attempt_count == 1
