"""
Semantic drift detection.

Compares what the contract's mapping rules assume about each backend (the
object exists, every mapped concrete field exists) with what the backend
reports about itself right now.

Manifesto:
    - **Failure is data:** an unreachable source becomes a critical finding,
      never an exception, so one dead source does not hide the state of the
      others
    - **One describe per source:** sources are described concurrently, once
      per run, however many rules point at them
    - **Worst first:** findings are sorted by severity weight, ties keep
      detection order

Findings:
    - rule object missing: ``schema_change`` / critical
    - mapped concrete field missing: ``field_removal`` / high
    - ``describe()`` failed: ``constraint_violation`` / critical

Tags:
    semspine, governance, drift, schema
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from datetime import UTC, datetime

from semspine.connectors.base import Connector, Describable
from semspine.core.logging import get_logger
from semspine.core.models import (
    DataSourceRef,
    DiscoverySummary,
    DriftType,
    MappingRule,
    SemanticContract,
    SemanticDrift,
    Severity,
)
from semspine.core.result import Err, Ok, Result

logger = get_logger(__name__)

NO_DRIFT_MESSAGE = "No semantic drift detected. All terms are aligned with current data sources."

_BAND_TITLES = {
    Severity.CRITICAL: "CRITICAL ISSUES",
    Severity.HIGH: "HIGH PRIORITY",
    Severity.MEDIUM: "MEDIUM PRIORITY",
    Severity.LOW: "LOW PRIORITY",
}


class DriftDetector:
    """Detects drift between a contract and its live sources."""

    def __init__(
        self,
        contract: SemanticContract,
        connectors: Mapping[str, Connector],
        sources: Mapping[str, DataSourceRef] | None = None,
    ):
        self.contract = contract
        self.connectors = connectors
        self.sources = sources or {}

    async def detect(self) -> list[SemanticDrift]:
        rules = [r for r in self.contract.rules if isinstance(self.connectors.get(r.source_id), Describable)]
        schemas = await self._describe_sources({r.source_id for r in rules})

        drifts: list[SemanticDrift] = []
        for rule in rules:
            match schemas[rule.source_id]:
                case Ok(summary):
                    drifts.extend(self._check_rule(rule, summary))
                case Err(error):
                    drifts.append(self._unreachable(rule, error))

        logger.info("drift.detected", rules=len(rules), drifts=len(drifts))
        # sorted() is stable
        return sorted(drifts, key=lambda d: d.severity.weight, reverse=True)

    async def _describe_sources(self, source_ids: set[str]) -> dict[str, Result[DiscoverySummary]]:
        ordered = sorted(source_ids)
        results = await asyncio.gather(*(self._describe(source_id) for source_id in ordered))
        return dict(zip(ordered, results))

    async def _describe(self, source_id: str) -> Result[DiscoverySummary]:
        try:
            return Ok(await self.connectors[source_id].describe())
        except Exception as e:
            logger.warning("drift.describe_failed", source_id=source_id, error=str(e))
            return Err(e)

    # ── Rule checks ──────────────────────────────────────────────────

    def _check_rule(self, rule: MappingRule, summary: DiscoverySummary) -> list[SemanticDrift]:
        current = summary.find(rule.object)
        term_name = self.contract.term_name(rule.term_id)

        if current is None:
            return [
                self._drift(
                    rule,
                    "object",
                    DriftType.SCHEMA_CHANGE,
                    Severity.CRITICAL,
                    f'Object "{rule.object}" is no longer available',
                    [f'Term "{term_name}" is completely broken', "All queries using this term will fail"],
                )
            ]

        present = current.field_names()
        return [
            self._drift(
                rule,
                semantic_field,
                DriftType.FIELD_REMOVAL,
                Severity.HIGH,
                f'Field "{concrete}" mapped to "{semantic_field}" no longer exists',
                [f'Queries for "{semantic_field}" will fail'],
            )
            for semantic_field, concrete in rule.field_mappings.items()
            if concrete not in present
        ]

    def _unreachable(self, rule: MappingRule, error: Exception) -> SemanticDrift:
        impact = [f'Term "{self.contract.term_name(rule.term_id)}" is unavailable']
        source = self.sources.get(rule.source_id)
        if source is not None:
            impact.append(f'Data source "{source.name}" cannot be queried')
        return self._drift(
            rule,
            None,
            DriftType.CONSTRAINT_VIOLATION,
            Severity.CRITICAL,
            f"Source {rule.source_id} is unreachable: {error}",
            impact,
        )

    def _drift(
        self,
        rule: MappingRule,
        suffix: str | None,
        drift_type: DriftType,
        severity: Severity,
        description: str,
        impact: list[str],
    ) -> SemanticDrift:
        drift_id = f"drift_{int(time.time() * 1000)}_{rule.id}"
        if suffix:
            drift_id += f"_{suffix}"
        return SemanticDrift(
            id=drift_id,
            term_id=rule.term_id,
            source_id=rule.source_id,
            detected_at=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            drift_type=drift_type,
            severity=severity,
            description=description,
            impact=impact,
        )

    # ── Reporting ────────────────────────────────────────────────────

    @staticmethod
    def report(drifts: list[SemanticDrift]) -> str:
        """Plain-text report grouped by severity band."""
        if not drifts:
            return NO_DRIFT_MESSAGE

        bands = {severity: [d for d in drifts if d.severity == severity] for severity in _BAND_TITLES}
        lines = [
            "SEMANTIC DRIFT DETECTED",
            "",
            f"Found {len(drifts)} drift incidents:",
        ]
        lines += [f"- {severity.value.capitalize()}: {len(bands[severity])}" for severity in _BAND_TITLES]
        lines.append("")

        for severity, title in _BAND_TITLES.items():
            if not bands[severity]:
                continue
            lines.append(f"{title}:")
            for drift in bands[severity]:
                lines.append(f"- {drift.description}")
                lines.append(f"  Impact: {', '.join(drift.impact)}")
                lines.append("")

        return "\n".join(lines)


__all__ = ["DriftDetector", "NO_DRIFT_MESSAGE"]
