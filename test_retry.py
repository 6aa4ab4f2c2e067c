"""Tests for the shared retry policy and error classification."""

import random

import pytest
from botocore.exceptions import ClientError

from conftest import service_error
from dispute_docs.utils.errors import (
    ErrorType,
    GenerationServiceError,
    InvalidGenerationOutputError,
    RetryExhaustedError,
)
from dispute_docs.utils.retry import RetryPolicy, is_retryable


class Recorder:
    """Counts attempts and replays scripted outcomes."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.attempts = 0

    async def __call__(self):
        self.attempts += 1
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def make_policy(delays=None, **kwargs):
    async def sleep(delay):
        if delays is not None:
            delays.append(delay)
    return RetryPolicy(sleep=sleep, rng=random.Random(7), **kwargs)


def test_classify_by_code_and_status():
    assert GenerationServiceError.classify("ThrottlingException", 400) == ErrorType.GENERATION_RATE_LIMIT
    assert GenerationServiceError.classify("AccessDeniedException", 403) == ErrorType.GENERATION_AUTH_ERROR
    assert GenerationServiceError.classify("Whatever", 429) == ErrorType.GENERATION_RATE_LIMIT
    assert GenerationServiceError.classify("Whatever", 401) == ErrorType.GENERATION_AUTH_ERROR
    assert GenerationServiceError.classify("Whatever", 503) == ErrorType.GENERATION_SERVER_ERROR
    assert GenerationServiceError.classify("Whatever", None) == ErrorType.UNKNOWN_ERROR


def test_only_auth_errors_are_not_retryable():
    assert not is_retryable(service_error("AccessDeniedException", 403))
    assert is_retryable(service_error("ThrottlingException", 429))
    assert is_retryable(service_error("ModelTimeoutException", 408))
    assert is_retryable(service_error("InternalServerException", 500))
    assert is_retryable(InvalidGenerationOutputError.for_section("legalBasis", "bad json"))
    assert not is_retryable(ValueError("unexpected"))


def test_from_client_error_keeps_details():
    error = ClientError(
        {"Error": {"Code": "ThrottlingException", "Message": "slow down"}, "ResponseMetadata": {"HTTPStatusCode": 429}},
        "Converse",
    )
    wrapped = GenerationServiceError.from_client_error(error, operation="converse")
    assert wrapped.error_type == ErrorType.GENERATION_RATE_LIMIT
    assert wrapped.context.details["error_code"] == "ThrottlingException"
    assert wrapped.context.details["status_code"] == 429
    assert "slow down" in wrapped.context.message


@pytest.mark.asyncio
async def test_success_on_first_attempt_never_sleeps():
    delays = []
    operation = Recorder(["ok"])
    assert await make_policy(delays).run(operation) == "ok"
    assert operation.attempts == 1
    assert delays == []


@pytest.mark.asyncio
async def test_auth_error_is_attempted_once():
    operation = Recorder([service_error("AccessDeniedException", 403)])
    with pytest.raises(GenerationServiceError) as excinfo:
        await make_policy().run(operation)
    assert operation.attempts == 1
    assert excinfo.value.error_type == ErrorType.GENERATION_AUTH_ERROR


@pytest.mark.asyncio
async def test_throttling_retried_until_exhausted():
    delays = []
    operation = Recorder([service_error("ThrottlingException", 429)])
    with pytest.raises(RetryExhaustedError) as excinfo:
        await make_policy(delays, max_retries=2).run(operation, operation_name="generate legalBasis")

    assert operation.attempts == 3
    assert len(delays) == 2
    assert excinfo.value.last_error_type == ErrorType.GENERATION_RATE_LIMIT
    assert "3 attempts" in excinfo.value.context.message
    assert isinstance(excinfo.value.__cause__, GenerationServiceError)


@pytest.mark.asyncio
async def test_recovers_after_malformed_output():
    operation = Recorder([
        InvalidGenerationOutputError.for_section("legalBasis", "response is not a JSON object"),
        "ok",
    ])
    assert await make_policy().run(operation) == "ok"
    assert operation.attempts == 2


@pytest.mark.asyncio
async def test_unexpected_exception_propagates_unchanged():
    operation = Recorder([KeyError("boom")])
    with pytest.raises(KeyError):
        await make_policy().run(operation)
    assert operation.attempts == 1


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt():
    operation = Recorder([service_error("ThrottlingException", 429)])
    with pytest.raises(RetryExhaustedError):
        await make_policy(max_retries=0).run(operation)
    assert operation.attempts == 1


def test_backoff_grows_exponentially_within_jitter():
    policy = RetryPolicy(base_delay=1.0, jitter=0.5, rng=random.Random(1))
    for attempt, base in ((1, 1.0), (2, 2.0), (3, 4.0)):
        for _ in range(20):
            delay = policy.backoff(attempt)
            assert base <= delay <= base + 0.5


def test_negative_max_retries_rejected():
    with pytest.raises(ValueError):
        RetryPolicy(max_retries=-1)
