from __future__ import annotations

import pytest

from greenfarm.models.enums import GenerationErrorKind
from greenfarm.services.content_generator import GenerationError
from greenfarm.services.retry import RetryPolicy, is_retryable, retry
from tests.conftest import SleepRecorder


class FlakyOperation:
    def __init__(self, failures: list[Exception], result: str = "ok") -> None:
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


def rate_limited() -> GenerationError:
    return GenerationError.rate_limited("429 RESOURCE_EXHAUSTED")


@pytest.mark.asyncio
async def test_success_on_first_attempt_does_not_sleep(sleeper: SleepRecorder) -> None:
    operation = FlakyOperation([])
    policy = RetryPolicy(sleep=sleeper)

    assert await policy.run(operation) == "ok"
    assert operation.calls == 1
    assert sleeper.delays == []


@pytest.mark.asyncio
async def test_rate_limit_exhausts_three_attempts_with_doubling_delay(sleeper: SleepRecorder) -> None:
    operation = FlakyOperation([rate_limited(), rate_limited(), rate_limited(), rate_limited()])
    policy = RetryPolicy(max_attempts=3, initial_delay=2.0, sleep=sleeper)

    with pytest.raises(GenerationError) as exc_info:
        await policy.run(operation, label="scenario")

    assert exc_info.value.kind == GenerationErrorKind.rate_limited
    assert operation.calls == 3
    assert sleeper.delays == [2.0, 4.0]
    assert sum(sleeper.delays) == 6.0


@pytest.mark.asyncio
async def test_recovers_after_transient_rate_limit(sleeper: SleepRecorder) -> None:
    operation = FlakyOperation([rate_limited()], result="scenario")
    policy = RetryPolicy(sleep=sleeper)

    assert await policy.run(operation) == "scenario"
    assert operation.calls == 2
    assert sleeper.delays == [2.0]


@pytest.mark.asyncio
async def test_non_retryable_error_propagates_immediately(sleeper: SleepRecorder) -> None:
    error = GenerationError("HTTP 500", kind=GenerationErrorKind.unavailable)
    operation = FlakyOperation([error])
    policy = RetryPolicy(sleep=sleeper)

    with pytest.raises(GenerationError) as exc_info:
        await policy.run(operation)

    assert exc_info.value is error
    assert operation.calls == 1
    assert sleeper.delays == []


@pytest.mark.asyncio
async def test_plain_exceptions_are_not_retried(sleeper: SleepRecorder) -> None:
    operation = FlakyOperation([ValueError("bad json")])
    policy = RetryPolicy(sleep=sleeper)

    with pytest.raises(ValueError):
        await policy.run(operation)
    assert operation.calls == 1


@pytest.mark.asyncio
async def test_single_attempt_policy_never_sleeps(sleeper: SleepRecorder) -> None:
    operation = FlakyOperation([rate_limited()])
    policy = RetryPolicy(max_attempts=1, sleep=sleeper)

    with pytest.raises(GenerationError):
        await policy.run(operation)
    assert sleeper.delays == []


@pytest.mark.asyncio
async def test_module_level_retry_helper() -> None:
    operation = FlakyOperation([rate_limited()], result="done")

    assert await retry(operation, max_attempts=2, initial_delay=0.0) == "done"
    assert operation.calls == 2


def test_policy_rejects_invalid_bounds() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        RetryPolicy(initial_delay=-1.0)


def test_is_retryable_reads_error_flag() -> None:
    assert is_retryable(rate_limited())
    assert not is_retryable(GenerationError("nope", kind=GenerationErrorKind.malformed))
    assert not is_retryable(RuntimeError("plain"))
