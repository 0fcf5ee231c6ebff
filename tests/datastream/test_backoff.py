import pytest

from solana_tracker.datastream.backoff import ReconnectBackoff


def test_delay_grows_then_caps():
    b = ReconnectBackoff(base_delay=1.0, max_delay=5.0, randomization_factor=0.5, rng=lambda: 0.0)
    assert b.delay_for(0) == 1.0
    assert b.delay_for(1) == 2.0
    assert b.delay_for(2) == 4.0
    assert b.delay_for(3) == 5.0
    assert b.delay_for(500) == 5.0


def test_jitter_stays_within_factor():
    b = ReconnectBackoff(base_delay=2.5, max_delay=4.5, randomization_factor=0.5, rng=lambda: 1.0)
    assert b.delay_for(0) == pytest.approx(3.75)
    assert b.delay_for(10) == pytest.approx(b.upper_bound())
    assert b.upper_bound() == pytest.approx(6.75)


def test_defaults_bound_every_wait():
    b = ReconnectBackoff()
    for attempt in range(20):
        d = b.delay_for(attempt)
        assert 2.5 <= d <= b.upper_bound()


def test_attempts_are_recorded_and_reset():
    b = ReconnectBackoff(base_delay=1.0, max_delay=10.0, randomization_factor=0.0)
    assert b.next_delay() == 1.0
    b.record_attempt()
    b.record_attempt()
    assert b.attempts == 2
    assert b.next_delay() == 4.0
    b.reset()
    assert b.attempts == 0
    assert b.next_delay() == 1.0


def test_negative_values_rejected():
    with pytest.raises(ValueError):
        ReconnectBackoff(base_delay=-1)
    with pytest.raises(ValueError):
        ReconnectBackoff(randomization_factor=-0.1)
