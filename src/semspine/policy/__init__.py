"""Policy checks for compiled plans."""

from .opa import OpaPolicyClient, PolicyChecker, PolicyInput

__all__ = ["OpaPolicyClient", "PolicyChecker", "PolicyInput"]
