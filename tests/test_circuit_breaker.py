"""Tests for the transport circuit breaker."""

import pytest

from fleet_trips.Services.circuit_breaker import CircuitBreaker


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_opens_after_max_consecutive_failures():
    clock = FakeClock()
    breaker = CircuitBreaker(max_retries=3, cooldown=300, clock=clock)

    assert breaker.record_failure() is False
    assert breaker.record_failure() is False
    assert not breaker.is_open()
    assert breaker.record_failure() is True

    assert breaker.is_open()
    assert breaker.state() == "open"
    assert breaker.trips == 1
    assert breaker.remaining() == pytest.approx(300)


def test_success_resets_the_counter():
    breaker = CircuitBreaker(max_retries=2, cooldown=10, clock=FakeClock())

    breaker.record_failure()
    breaker.record_success()
    breaker.record_failure()

    assert not breaker.is_open()
    assert breaker.failures == 1


def test_closes_and_resets_after_cooldown():
    clock = FakeClock()
    breaker = CircuitBreaker(max_retries=1, cooldown=300, clock=clock)
    breaker.record_failure()

    clock.now += 299
    assert breaker.is_open()

    clock.now += 1
    assert not breaker.is_open()
    assert breaker.failures == 0
    assert breaker.remaining() == 0.0


def test_failures_while_open_do_not_extend_cooldown():
    clock = FakeClock()
    breaker = CircuitBreaker(max_retries=1, cooldown=60, clock=clock)
    breaker.record_failure()

    clock.now += 30
    assert breaker.record_failure() is False
    assert breaker.remaining() == pytest.approx(30)
    assert breaker.trips == 1


def test_rejects_zero_retries():
    with pytest.raises(ValueError):
        CircuitBreaker(max_retries=0)
