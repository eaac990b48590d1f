"""
Policy collaborator client (Open Policy Agent).

Each compiled plan is described as a :class:`PolicyInput` and posted to an OPA
data endpoint as ``{"input": ...}``. The decision is the truthiness of the
response's ``result``. Any failure to obtain a decision (network, HTTP status,
malformed JSON) is a deny.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import httpx

from semspine.core.logging import get_logger
from semspine.core.models import SafePlan, SemspineModel

logger = get_logger(__name__)


class PolicyInput(SemspineModel):
    object: str
    fields: list[str]
    operators: list[str]
    pii_requested: bool = False
    tenant: str = "default"
    role: str = "analyst"

    @classmethod
    def from_plan(
        cls,
        plan: SafePlan,
        *,
        tenant: str = "default",
        role: str = "analyst",
        pii_requested: bool = False,
    ) -> PolicyInput:
        return cls(
            object=plan.native_query.object,
            fields=plan.fields,
            operators=plan.operators,
            pii_requested=pii_requested,
            tenant=tenant,
            role=role,
        )

    def to_opa(self) -> dict:
        """Snake-case document, the shape Rego policies read."""
        return self.model_dump(mode="json")


@runtime_checkable
class PolicyChecker(Protocol):
    async def check_plans(self, plans: Sequence[SafePlan], **options) -> SafePlan | None:
        ...


class OpaPolicyClient:
    """Asks an OPA server whether plans may run."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def allows(self, policy_input: PolicyInput) -> bool:
        try:
            response = await self._client.post(self.url, json={"input": policy_input.to_opa()})
            response.raise_for_status()
            decision = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("policy.check_failed", url=self.url, object=policy_input.object, error=str(e))
            return False
        allowed = bool(decision.get("result")) if isinstance(decision, dict) else False
        logger.debug("policy.decision", object=policy_input.object, allowed=allowed)
        return allowed

    async def check_plans(
        self,
        plans: Sequence[SafePlan],
        *,
        tenant: str = "default",
        role: str = "analyst",
        pii_requested: bool = False,
    ) -> SafePlan | None:
        """First denied plan (in plan order), or ``None`` if all are allowed."""
        decisions = await asyncio.gather(
            *(
                self.allows(PolicyInput.from_plan(plan, tenant=tenant, role=role, pii_requested=pii_requested))
                for plan in plans
            )
        )
        for plan, allowed in zip(plans, decisions):
            if not allowed:
                return plan
        return None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = [
    "PolicyInput",
    "PolicyChecker",
    "OpaPolicyClient",
]
