"""
Lineage emission.

Every execution produces one :class:`Lineage` record. The engine hands it to
a :class:`LineageEmitter` through a :class:`LineageDispatcher`, which retries
retryable emit failures with bounded exponential backoff and reports the
final failure as a typed :class:`LineageEmitError` instead of raising. The
engine turns that error into a response note.

Emitters:
    - ``LogLineageEmitter``: structlog event ``lineage.emitted`` (default)
    - ``MemoryLineageEmitter``: keeps records in a list, for tests and dev

Example:
    >>> dispatcher = LineageDispatcher(MemoryLineageEmitter(), max_attempts=3)
    >>> error = await dispatcher.dispatch(lineage)
    >>> error is None
    True
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from semspine.core.errors import LineageEmitError, is_retryable
from semspine.core.logging import get_logger
from semspine.core.models import Lineage

logger = get_logger(__name__)


@runtime_checkable
class LineageEmitter(Protocol):
    """Sink for lineage records (log, message bus, tracing backend)."""

    async def emit(self, lineage: Lineage) -> None:
        ...


class LogLineageEmitter:
    """Emits lineage as a debug-level structured log event."""

    def __init__(self, logger_name: str = "semspine.lineage"):
        self._logger = get_logger(logger_name)

    async def emit(self, lineage: Lineage) -> None:
        self._logger.debug("lineage.emitted", run_id=lineage.run_id, lineage=lineage.to_dict())


class MemoryLineageEmitter:
    """Collects emitted lineage in memory."""

    def __init__(self):
        self.emitted: list[Lineage] = []

    async def emit(self, lineage: Lineage) -> None:
        self.emitted.append(lineage)

    def clear(self) -> None:
        self.emitted.clear()


class LineageDispatcher:
    """
    Awaits an emitter with bounded retries.

    Delay before retry ``n`` (zero-based) is ``backoff_seconds * 2 ** n``.
    """

    def __init__(
        self,
        emitter: LineageEmitter,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 0.2,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.emitter = emitter
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds

    async def dispatch(self, lineage: Lineage) -> LineageEmitError | None:
        """
        Emit ``lineage``; returns ``None`` on success or the final error.

        Errors that are not retryable (see :func:`is_retryable`) end the
        attempts early.
        """
        last_error: Exception | None = None
        for attempt in range(self.max_attempts):
            try:
                await self.emitter.emit(lineage)
                return None
            except Exception as e:
                last_error = e
                logger.warning(
                    "lineage.emit_failed",
                    run_id=lineage.run_id,
                    attempt=attempt + 1,
                    max_attempts=self.max_attempts,
                    error=str(e),
                )
            if not is_retryable(last_error):
                break
            if attempt + 1 < self.max_attempts and self.backoff_seconds > 0:
                await asyncio.sleep(self.backoff_seconds * (2**attempt))

        return LineageEmitError(
            f"{type(last_error).__name__}: {last_error}" if last_error else "unknown error",
            cause=last_error,
        ).with_context(run_id=lineage.run_id)


__all__ = [
    "LineageEmitter",
    "LogLineageEmitter",
    "MemoryLineageEmitter",
    "LineageDispatcher",
]
