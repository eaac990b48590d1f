"""Tests for lineage emitters and the retrying dispatcher."""

import pytest

from semspine.core.errors import LineageEmitError
from semspine.core.models import Lineage, LineageStep
from semspine.translation.lineage import (
    LineageDispatcher,
    LineageEmitter,
    LogLineageEmitter,
    MemoryLineageEmitter,
)


@pytest.fixture
def lineage():
    return Lineage(
        run_id="run_1_abcdef12",
        timestamp="2024-01-01T00:00:00Z",
        steps=[LineageStep(source_id="pg", object="customers", fields=["id"])],
    )


class FlakyEmitter:
    def __init__(self, failures, error=ConnectionError):
        self.failures = failures
        self.error = error
        self.attempts = 0

    async def emit(self, lineage):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise self.error(f"attempt {self.attempts}")


class TestEmitters:
    def test_protocol(self):
        assert isinstance(MemoryLineageEmitter(), LineageEmitter)
        assert isinstance(LogLineageEmitter(), LineageEmitter)

    @pytest.mark.asyncio
    async def test_memory_emitter(self, lineage):
        emitter = MemoryLineageEmitter()
        await emitter.emit(lineage)
        assert emitter.emitted == [lineage]
        emitter.clear()
        assert emitter.emitted == []

    @pytest.mark.asyncio
    async def test_log_emitter_does_not_raise(self, lineage):
        await LogLineageEmitter().emit(lineage)


class TestDispatcher:
    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            LineageDispatcher(MemoryLineageEmitter(), max_attempts=0)

    @pytest.mark.asyncio
    async def test_success(self, lineage):
        assert await LineageDispatcher(MemoryLineageEmitter()).dispatch(lineage) is None

    @pytest.mark.asyncio
    async def test_recovers_after_retry(self, lineage):
        emitter = FlakyEmitter(failures=2)
        result = await LineageDispatcher(emitter, max_attempts=3, backoff_seconds=0).dispatch(lineage)
        assert result is None
        assert emitter.attempts == 3

    @pytest.mark.asyncio
    async def test_final_failure_returned(self, lineage):
        emitter = FlakyEmitter(failures=5)
        error = await LineageDispatcher(emitter, max_attempts=2, backoff_seconds=0).dispatch(lineage)
        assert isinstance(error, LineageEmitError)
        assert error.message == "ConnectionError: attempt 2"
        assert error.context.run_id == lineage.run_id
        assert emitter.attempts == 2

    @pytest.mark.asyncio
    async def test_backoff_doubles(self, lineage, monkeypatch):
        delays = []

        async def fake_sleep(seconds):
            delays.append(seconds)

        monkeypatch.setattr("semspine.translation.lineage.asyncio.sleep", fake_sleep)
        await LineageDispatcher(FlakyEmitter(failures=3), max_attempts=3, backoff_seconds=0.1).dispatch(lineage)
        assert delays == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_non_retryable_error_stops_early(self, lineage):
        emitter = FlakyEmitter(failures=5, error=ValueError)
        error = await LineageDispatcher(emitter, max_attempts=3, backoff_seconds=0).dispatch(lineage)
        assert emitter.attempts == 1
        assert error.message == "ValueError: attempt 1"

    @pytest.mark.asyncio
    async def test_retryable_semspine_error_is_retried(self, lineage):
        emitter = FlakyEmitter(failures=1, error=LineageEmitError)
        assert await LineageDispatcher(emitter, max_attempts=2, backoff_seconds=0).dispatch(lineage) is None
        assert emitter.attempts == 2
