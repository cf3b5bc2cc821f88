"""
ValidationResult — encapsulates the validation-and-recovery outcome.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from src.config.constants import WARNING_SUSPICIOUS
from src.models.constraint import FieldConstraint


@dataclass(frozen=True)
class ValidationError:
    """A single constraint violation."""

    field: str
    message: str
    value: Any
    constraint: str
    rule: Optional[FieldConstraint] = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "message": self.message,
            "value": self.value,
            "constraint": self.constraint,
        }


@dataclass(frozen=True)
class ValidationWarning:
    """A non-blocking finding. ``kind`` is a catalog warning id, kept off the wire."""

    field: str
    message: str
    suggestion: str = ""
    kind: str = field(default=WARNING_SUSPICIOUS, compare=False)

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "message": self.message,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class RecoveryAttempt:
    """One recovery strategy invocation, in invocation order."""

    strategy: str
    success: bool
    description: str
    result: Any = None

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy,
            "success": self.success,
            "description": self.description,
            "result": self.result,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Terminal artifact of one pipeline run."""

    valid: bool
    timestamp: datetime
    errors: Tuple[ValidationError, ...] = ()
    warnings: Tuple[ValidationWarning, ...] = ()
    recovery_attempts: Tuple[RecoveryAttempt, ...] = ()
    final_output: Any = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.valid and (self.errors or self.final_output is None):
            raise ValueError("a valid result must have no errors and a final output")
        if not self.valid and not self.errors and self.final_output is not None:
            raise ValueError("an invalid result must carry errors or a null final output")
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self) -> dict:
        """Stable wire shape (camel-case keys, metadata omitted when empty)."""
        payload = {
            "valid": self.valid,
            "timestamp": self.timestamp.isoformat(),
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "recoveryAttempts": [a.to_dict() for a in self.recovery_attempts],
            "finalOutput": self.final_output,
        }
        if self.metadata:
            payload["metadata"] = dict(self.metadata)
        return payload

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), default=str, **kwargs)
