"""Tests for the fixed-delay retry helper."""

import pytest

from guestbook.retry import retry


class Flaky:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = []

    def __call__(self, attempt: int) -> str:
        self.calls.append(attempt)
        if len(self.calls) <= self.failures:
            raise OSError("failure {}".format(attempt))
        return "ok"


class TestRetry:
    """retry() calls the operation until it succeeds or attempts run out."""

    def test_returns_first_success(self) -> None:
        op, sleeps = Flaky(0), []
        assert retry(op, 3, 1.0, sleep=sleeps.append) == "ok"
        assert op.calls == [1]
        assert sleeps == []

    def test_fixed_delay_between_attempts(self) -> None:
        op, sleeps = Flaky(2), []
        assert retry(op, 3, 1.5, sleep=sleeps.append) == "ok"
        assert op.calls == [1, 2, 3]
        assert sleeps == [1.5, 1.5]

    def test_reraises_last_error_without_final_sleep(self) -> None:
        op, sleeps = Flaky(10), []
        with pytest.raises(OSError, match="failure 4"):
            retry(op, 4, 2.0, sleep=sleeps.append)
        assert op.calls == [1, 2, 3, 4]
        assert sleeps == [2.0, 2.0, 2.0]

    def test_on_failure_sees_every_failed_attempt(self) -> None:
        seen = []
        with pytest.raises(OSError):
            retry(Flaky(10), 3, 0, on_failure=lambda n, e: seen.append((n, str(e))), sleep=lambda s: None)
        assert seen == [(1, "failure 1"), (2, "failure 2"), (3, "failure 3")]

    def test_only_listed_errors_are_retried(self) -> None:
        op = Flaky(10)
        with pytest.raises(OSError):
            retry(op, 5, 0, retry_on=(KeyError,), sleep=lambda s: None)
        assert op.calls == [1]

    def test_attempts_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            retry(Flaky(0), 0, 1.0)
