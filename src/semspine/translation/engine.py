"""
Execution engine.

Compiles canonical queries, dispatches the resulting plans to their
connectors concurrently and merges the rows into one
:class:`ResponseEnvelope` with lineage, term definitions and notes.

Manifesto:
    - **All-or-nothing wiring:** every plan's connector is resolved before
      anything is dispatched; an unknown source aborts the whole execution
    - **Partial results over total failure:** a connector error or timeout
      costs that plan only and becomes a note
    - **Deterministic output:** steps and rows follow plan order no matter
      in which order the connectors answer
    - **Lineage is not optional:** it is always built and always handed to
      the emitter; an emit failure is reported in ``notes``, never raised

Architecture:
    ::

        CanonicalQuery ──► Compiler ──► [Ok(plan) | Err(error)] per rule
                                            │ skipped rules → notes
                                            ▼
                          optional policy check (PolicyDeniedError)
                                            │
                                            ▼
        execute_plans: resolve connectors ─► Semaphore(max_concurrency)
                          │                    └─ timeout per plan
                          ▼
                 merge in plan order (rows tagged __source)
                          │
                          ▼
                 LineageDispatcher ──► ResponseEnvelope

Example:
    >>> engine = Engine(emitter=MemoryLineageEmitter())
    >>> ctx = EngineContext.build(contract, connectors, sources)
    >>> envelope = await engine.run(CanonicalQuery(object="customer", select=["id"]), ctx)
    >>> envelope.lineage.steps[0].source_id
    'pg'

Tags:
    semspine, engine, federation, asyncio, lineage
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from semspine.connectors.base import Connector, ExecuteResult, make_step
from semspine.core.errors import (
    ConnectorError,
    ConnectorQueryError,
    ConnectorTimeoutError,
    MissingFieldMappingError,
    PolicyDeniedError,
    SemspineError,
    UnknownSourceError,
)
from semspine.core.logging import LogContext, get_logger
from semspine.core.models import CanonicalQuery, Lineage, ResponseEnvelope, SafePlan
from semspine.core.result import Err, Ok, Result, partition_results
from semspine.core.settings import SemspineSettings, get_settings
from semspine.policy.opa import OpaPolicyClient, PolicyChecker

from .compiler import Compiler
from .context import EngineContext
from .lineage import LineageDispatcher, LineageEmitter, LogLineageEmitter

logger = get_logger(__name__)

SOURCE_TAG = "__source"


def new_run_id() -> str:
    """``run_<epoch ms>_<8 hex>``."""
    return f"run_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class Engine:
    """
    Translation engine.

    Stateless apart from its collaborators: connectors, sources and the
    contract arrive with each call as an immutable :class:`EngineContext`.
    """

    def __init__(
        self,
        *,
        emitter: LineageEmitter | None = None,
        settings: SemspineSettings | None = None,
        policy: PolicyChecker | None = None,
    ):
        self.settings = settings or get_settings()
        self.dispatcher = LineageDispatcher(
            emitter or LogLineageEmitter(),
            max_attempts=self.settings.lineage_max_attempts,
            backoff_seconds=self.settings.lineage_backoff_seconds,
        )
        if policy is None and self.settings.policy_enabled:
            policy = OpaPolicyClient(self.settings.opa_url, timeout=self.settings.http_timeout_seconds)
        self.policy = policy

    # ── Compilation ──────────────────────────────────────────────────

    def compile(self, query: CanonicalQuery, ctx: EngineContext) -> list[SafePlan]:
        return Compiler(ctx.contract, self.settings).compile(query)

    # ── Full request ─────────────────────────────────────────────────

    async def run(
        self,
        query: CanonicalQuery,
        ctx: EngineContext,
        *,
        policy_input: dict[str, Any] | None = None,
    ) -> ResponseEnvelope:
        """
        Compile, check policy and execute.

        Rules that fail to compile are skipped with a note as long as at least
        one rule compiles; otherwise the first compile error is raised.

        Raises:
            CompileError: nothing compiled
            PolicyDeniedError: the policy collaborator denied a plan
            UnknownSourceError: a plan's source has no connector
        """
        plans, errors = partition_results(Compiler(ctx.contract, self.settings).compile_rules(query))
        if not plans:
            raise errors[0]
        notes = [f"rule '{_rule_id(e)}' skipped: {e}" for e in errors]

        if self.policy is not None:
            denied = await self.policy.check_plans(plans, **(policy_input or {}))
            if denied is not None:
                logger.warning("engine.policy_denied", source_id=denied.source_id, rule_id=denied.rule_id)
                raise PolicyDeniedError(source_id=denied.source_id)

        return await self.execute_plans(plans, ctx, notes=notes)

    # ── Execution ────────────────────────────────────────────────────

    async def execute_plans(
        self,
        plans: Sequence[SafePlan],
        ctx: EngineContext,
        *,
        notes: Sequence[str] = (),
    ) -> ResponseEnvelope:
        """
        Dispatch plans concurrently and merge their rows in plan order.

        Raises:
            UnknownSourceError: before any dispatch, if a plan's source has no
                connector
        """
        connectors = [self._resolve(plan, ctx) for plan in plans]
        run_id = new_run_id()
        timestamp = _utc_timestamp()
        all_notes = list(notes)

        async with LogContext(run_id=run_id):
            logger.info("engine.run_started", plans=len(plans))
            semaphore = asyncio.Semaphore(self.settings.max_concurrency)
            outcomes = await asyncio.gather(
                *(self._execute_plan(semaphore, plan, connector) for plan, connector in zip(plans, connectors))
            )

            steps = []
            data: list[dict[str, Any]] = []
            for plan, outcome in zip(plans, outcomes):
                match outcome:
                    case Ok(result):
                        steps.append(result.step or make_step(plan.source_id, plan.native_query))
                        data.extend({**row, SOURCE_TAG: plan.source_id} for row in result.rows)
                    case Err(error):
                        all_notes.append(f"source '{plan.source_id}' failed: {error}")

            lineage = Lineage(run_id=run_id, timestamp=timestamp, steps=steps)
            emit_error = await self.dispatcher.dispatch(lineage)
            if emit_error is not None:
                all_notes.append(f"lineage_emit_failed: {emit_error.message}")

            logger.info(
                "engine.run_completed",
                rows=len(data),
                steps=len(steps),
                failed=len(plans) - len(steps),
            )

        return ResponseEnvelope(
            data=data,
            lineage=lineage,
            definitions=ctx.contract.definitions(),
            notes=all_notes,
        )

    def _resolve(self, plan: SafePlan, ctx: EngineContext) -> Connector:
        connector = ctx.connector(plan.source_id)
        if connector is None:
            raise UnknownSourceError(plan.source_id)
        return connector

    async def _execute_plan(
        self,
        semaphore: asyncio.Semaphore,
        plan: SafePlan,
        connector: Connector,
    ) -> Result[ExecuteResult]:
        timeout = self.settings.plan_timeout_seconds
        async with semaphore:
            try:
                async with asyncio.timeout(timeout):
                    result = await connector.execute(plan.native_query)
                if not all(isinstance(row, Mapping) for row in result.rows):
                    raise ConnectorQueryError("connector returned non-object rows").with_context(
                        source_id=plan.source_id
                    )
                logger.debug("engine.plan_completed", source_id=plan.source_id, rows=len(result.rows))
                return Ok(result)
            except TimeoutError:
                error: SemspineError = ConnectorTimeoutError(plan.source_id, timeout)
            except SemspineError as e:
                error = e
            except Exception as e:
                error = ConnectorError(f"{type(e).__name__}: {e}", cause=e).with_context(
                    source_id=plan.source_id
                )

        logger.warning(
            "engine.plan_failed",
            source_id=plan.source_id,
            rule_id=plan.rule_id,
            error=error.to_dict(),
        )
        return Err(error)


def _rule_id(error: Exception) -> str:
    if isinstance(error, MissingFieldMappingError) and error.rule_id:
        return error.rule_id
    return "unknown"


__all__ = [
    "Engine",
    "SOURCE_TAG",
    "new_run_id",
]
