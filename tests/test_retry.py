"""Tests for the explicit retry policy."""
import pytest

from core.exceptions import ConfigurationError
from core.retry import RetryPolicy, exponential_backoff, no_retry


def test_backoff_doubles_each_attempt():
    assert [exponential_backoff(n, 0.5) for n in (1, 2, 3)] == [0.5, 1.0, 2.0]


def test_retries_until_success(no_sleep):
    delays, sleep = no_sleep
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise RuntimeError("temporary")
        return "ok"

    policy = RetryPolicy(max_attempts=3, base_delay=1.0, sleep=sleep)
    assert policy.call(flaky) == "ok"
    assert len(attempts) == 3
    assert delays == [1.0, 2.0]


def test_reraises_last_error_when_exhausted(no_sleep):
    delays, sleep = no_sleep

    def broken():
        raise ValueError("still down")

    with pytest.raises(ValueError, match="still down"):
        RetryPolicy(max_attempts=2, base_delay=0.1, sleep=sleep).call(broken)
    assert delays == [0.1]


def test_no_retry_makes_a_single_attempt():
    calls = []

    def broken():
        calls.append(1)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        no_retry().call(broken)
    assert len(calls) == 1


def test_at_least_one_attempt_is_required():
    with pytest.raises(ConfigurationError):
        RetryPolicy(max_attempts=0)


def test_rejected_errors_are_raised_without_retrying(no_sleep):
    delays, sleep = no_sleep
    calls = []

    def broken():
        calls.append(1)
        raise PermissionError("denied")

    policy = RetryPolicy(max_attempts=3, base_delay=1.0, sleep=sleep, retry_on=lambda exc: not isinstance(exc, PermissionError))
    with pytest.raises(PermissionError):
        policy.call(broken)
    assert len(calls) == 1
    assert delays == []
