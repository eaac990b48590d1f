"""
Query translation: compile canonical queries, execute plans, emit lineage.
"""

from .bundle import build_context
from .compiler import ALLOWED_OPERATORS, Compiler, extract_fields
from .context import ContextHolder, EngineContext
from .engine import SOURCE_TAG, Engine, new_run_id
from .intent import parse_intent
from .lineage import (
    LineageDispatcher,
    LineageEmitter,
    LogLineageEmitter,
    MemoryLineageEmitter,
)

__all__ = [
    "build_context",
    "ALLOWED_OPERATORS",
    "Compiler",
    "extract_fields",
    "ContextHolder",
    "EngineContext",
    "SOURCE_TAG",
    "Engine",
    "new_run_id",
    "parse_intent",
    "LineageDispatcher",
    "LineageEmitter",
    "LogLineageEmitter",
    "MemoryLineageEmitter",
]
