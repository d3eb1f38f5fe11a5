# ============================================================================
# RESULT TYPE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Foundation - Success/failure wrapper
# PURPOSE: Let engine components report domain failures without raising
# CREATED: 19 OCT 2026
# ============================================================================
"""
Result wrapper returned by graph, planning, context and fractal components.

    result = builder.build(nodes)
    if result.is_failure:
        return result          # propagate the typed error
    graph = result.value
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from core.errors import EngineError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or an EngineError, never both."""
    value: Optional[T] = None
    error: Optional[EngineError] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def ok(cls, value: T = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: EngineError) -> "Result[T]":
        return cls(error=error)


__all__ = ["Result"]
