"""
FieldConstraint, AdvisoryRule and TargetSchema — declarative schema description.

Constraints are static configuration: built once per target schema, frozen,
and shared by reference across pipeline runs.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class ConstraintKind(str, Enum):
    """Kinds of field constraint; the value doubles as the constraint id."""

    REQUIRED = "required"
    PATTERN = "pattern"
    EMAIL = "email"
    RANGE = "range"
    SIZE = "size"
    ENUM = "enum"
    NESTED = "nested"
    PAST_OR_PRESENT = "past_or_present"


@dataclass(frozen=True)
class FieldConstraint:
    """One declarative rule a field's value must satisfy."""

    path: str
    kind: ConstraintKind
    message: str = ""
    pattern: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    integer: bool = False
    min_size: Optional[int] = None
    max_size: Optional[int] = None
    allowed: Tuple[Any, ...] = ()
    nested: Tuple["FieldConstraint", ...] = ()
    many: bool = False
    example: Any = None

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("FieldConstraint.path must not be empty")
        if not isinstance(self.kind, ConstraintKind):
            object.__setattr__(self, "kind", ConstraintKind(self.kind))

        kind = self.kind
        if kind is ConstraintKind.PATTERN:
            if not self.pattern:
                raise ValueError(f"pattern constraint on '{self.path}' needs a pattern")
            try:
                re.compile(self.pattern)
            except re.error as e:
                raise ValueError(f"invalid pattern for '{self.path}': {e}") from e
        elif kind is ConstraintKind.RANGE:
            if self.minimum is None and self.maximum is None:
                raise ValueError(f"range constraint on '{self.path}' needs a minimum or maximum")
            if (
                self.minimum is not None
                and self.maximum is not None
                and self.minimum > self.maximum
            ):
                raise ValueError(f"range constraint on '{self.path}' has minimum > maximum")
        elif kind is ConstraintKind.SIZE:
            if self.min_size is None and self.max_size is None:
                raise ValueError(f"size constraint on '{self.path}' needs min_size or max_size")
        elif kind is ConstraintKind.ENUM:
            if not self.allowed:
                raise ValueError(f"enum constraint on '{self.path}' needs allowed values")
        elif kind is ConstraintKind.NESTED:
            if not self.nested:
                raise ValueError(f"nested constraint on '{self.path}' needs sub-constraints")

        if not self.message:
            object.__setattr__(self, "message", f"{self.path} violates {kind.value}")

    @property
    def constraint_id(self) -> str:
        return self.kind.value

    def render_message(self, value: Any = None) -> str:
        """Fill the message template; unknown placeholders are left as-is."""
        params = {
            "field": self.path,
            "value": value,
            "minimum": _fmt_number(self.minimum),
            "maximum": _fmt_number(self.maximum),
            "min_size": self.min_size,
            "max_size": self.max_size,
        }
        try:
            return self.message.format(**params)
        except (KeyError, IndexError, ValueError):
            return self.message


@dataclass(frozen=True)
class AdvisoryRule:
    """Non-blocking check that flags suspicious but valid values."""

    path: str                       # "items[].quantity" applies to every element
    kind: str                       # "above" | "equals"
    threshold: Any
    message: str
    suggestion: str = ""

    def __post_init__(self) -> None:
        if self.kind not in ("above", "equals"):
            raise ValueError(f"unknown advisory kind '{self.kind}' on '{self.path}'")


@dataclass(frozen=True)
class TargetSchema:
    """Everything the pipeline needs to validate and recover one target type."""

    name: str
    constraints: Tuple[FieldConstraint, ...]
    defaults: Mapping[str, Any] = field(default_factory=dict)
    lenient_fields: frozenset = frozenset()
    advisories: Tuple[AdvisoryRule, ...] = ()

    def default_for(self, normalized_path: str) -> Tuple[bool, Any]:
        """Return (found, value) for a configured default."""
        if normalized_path in self.defaults:
            return True, self.defaults[normalized_path]
        return False, None

    def is_lenient(self, normalized_path: str) -> bool:
        return normalized_path in self.lenient_fields


def _fmt_number(value: Optional[float]):
    if value is None:
        return None
    if float(value).is_integer():
        return int(value)
    return value
