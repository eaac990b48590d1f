"""Storage collaborators for sources, terms, rules and contracts."""

from .memory import MemoryRegistry, Registry

__all__ = ["MemoryRegistry", "Registry"]
