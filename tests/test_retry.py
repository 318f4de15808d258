"""Tests for the bounded retry abstraction."""
import pytest

from scene_codegen.retry import BoundedRetry, ExhaustionPolicy


def test_retries_until_ceiling() -> None:
    retry = BoundedRetry(3, ExhaustionPolicy.HARD_FAIL)
    decisions = [retry.decide(n) for n in (1, 2, 3)]
    assert [d.retry for d in decisions] == [True, True, False]
    assert decisions[-1].terminal is ExhaustionPolicy.HARD_FAIL
    assert decisions[-1].exhausted
    assert all(d.max_attempts == 3 for d in decisions)


def test_fail_soft_policy_reported_on_exhaustion() -> None:
    retry = BoundedRetry(2, ExhaustionPolicy.FAIL_SOFT)
    assert retry.decide(1).terminal is None
    assert retry.decide(2).terminal is ExhaustionPolicy.FAIL_SOFT


def test_can_start() -> None:
    retry = BoundedRetry(3)
    assert retry.can_start(0)
    assert retry.can_start(2)
    assert not retry.can_start(3)


def test_rejects_zero_attempts() -> None:
    with pytest.raises(ValueError):
        BoundedRetry(0)
