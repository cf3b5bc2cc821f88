"""
Mock response harness — deterministic LLM outputs for exercising the pipeline.

generate(schema) returns a JSON payload satisfying every constraint of the
schema; generate(schema, fault_kind) injects exactly one class of defect:

    malformed_json          truncated object, not repairable
    missing_required_field  first required top-level field removed
    wrong_type              first numeric field as text, else a string field as a number
    extra_fields            three undeclared fields added
    invalid_values          first pattern/email/range/enum field given a value it rejects

MockChatModel is a callable stand-in for the chat collaborator.
"""
import copy
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from src.config.constants import (
    FAULT_EXTRA_FIELDS,
    FAULT_INVALID_VALUES,
    FAULT_KINDS,
    FAULT_MALFORMED_JSON,
    FAULT_MISSING_REQUIRED,
    FAULT_WRONG_TYPE,
    MOCK_REFERENCE_DATE,
)
from src.models.constraint import ConstraintKind, FieldConstraint, TargetSchema
from src.validation.error_catalog import identifier_shape
from src.validation.paths import MISSING, resolve

logger = logging.getLogger(__name__)


# =============================================================================
# Document construction
# =============================================================================

def build_document(schema: TargetSchema) -> Dict[str, Any]:
    """Build a document tree satisfying every constraint of *schema*."""
    return _build_object(schema.constraints)


def _build_object(constraints: Sequence[FieldConstraint]) -> Dict[str, Any]:
    document: Dict[str, Any] = {}
    for path, rules in _group_by_path(constraints).items():
        _put(document, path, _sample_value(rules))
    return document


def _sample_value(rules: List[FieldConstraint]) -> Any:
    for rule in rules:
        if rule.kind is ConstraintKind.NESTED:
            item = _build_object(rule.nested)
            if not rule.many:
                return item
            size = next((r.min_size for r in rules if r.kind is ConstraintKind.SIZE and r.min_size), 1)
            return [copy.deepcopy(item) for _ in range(size)]

    for rule in rules:
        if rule.example is not None:
            return copy.deepcopy(rule.example)

    for rule in rules:
        value = _synthesize(rule)
        if value is not MISSING:
            return value

    return "sample"


def _synthesize(rule: FieldConstraint) -> Any:
    kind = rule.kind
    if kind is ConstraintKind.ENUM:
        return rule.allowed[0]
    if kind is ConstraintKind.EMAIL:
        return "user@example.com"
    if kind is ConstraintKind.PAST_OR_PRESENT:
        return MOCK_REFERENCE_DATE
    if kind is ConstraintKind.RANGE:
        value = rule.minimum if rule.minimum is not None else rule.maximum
        return int(value) if rule.integer else value
    if kind is ConstraintKind.SIZE:
        return "x" * max(rule.min_size or 1, 1)
    if kind is ConstraintKind.PATTERN:
        shape = identifier_shape(rule)
        if shape is None:
            raise ValueError(
                f"Cannot synthesize a value for pattern '{rule.pattern}' on '{rule.path}'; add an example"
            )
        prefix, width = shape
        return f"{prefix}-{'1'.zfill(width)}"
    return MISSING


# =============================================================================
# Fault injection
# =============================================================================

def generate(schema: TargetSchema, fault_kind: Optional[str] = None) -> str:
    """
    Render a payload for *schema*, optionally with one injected defect class.

    Raises:
        ValueError: For an unknown *fault_kind*.
    """
    if fault_kind is not None and fault_kind not in FAULT_KINDS:
        raise ValueError(f"Unknown fault kind '{fault_kind}'. Expected one of {list(FAULT_KINDS)}")

    document = build_document(schema)
    if fault_kind is None:
        return json.dumps(document)

    if fault_kind == FAULT_MALFORMED_JSON:
        first_key = next(iter(document), "incomplete")
        return f'{{"{first_key}": '

    injector = _INJECTORS[fault_kind]
    injector(document, schema.constraints)
    logger.debug("Injected %s into mock %s payload", fault_kind, schema.name)
    return json.dumps(document)


def generate_batch(schema: TargetSchema, count: int) -> List[str]:
    """Valid payloads whose identifier-shaped fields differ per element."""
    payloads = []
    identifiers = [
        (rule.path, identifier_shape(rule))
        for rule in schema.constraints
        if rule.kind is ConstraintKind.PATTERN and identifier_shape(rule) is not None
    ]
    for i in range(count):
        document = build_document(schema)
        for path, (prefix, width) in identifiers:
            _put(document, path, f"{prefix}-{str(i + 1).zfill(width)[-width:]}")
        payloads.append(json.dumps(document))
    return payloads


def _remove_required(document: Dict[str, Any], constraints: Sequence[FieldConstraint]) -> None:
    for rule in constraints:
        if rule.kind is ConstraintKind.REQUIRED and "." not in rule.path and rule.path in document:
            del document[rule.path]
            return


def _wrong_type(document: Dict[str, Any], constraints: Sequence[FieldConstraint]) -> None:
    for rule in constraints:
        if rule.kind is ConstraintKind.RANGE and resolve(document, rule.path) is not MISSING:
            _put(document, rule.path, "not a number")
            return
    for rule in constraints:
        if isinstance(resolve(document, rule.path), str) and rule.kind is not ConstraintKind.ENUM:
            _put(document, rule.path, 12345)
            return


def _extra_fields(document: Dict[str, Any], constraints: Sequence[FieldConstraint]) -> None:  # noqa: ARG001
    document["unexpectedField1"] = "value1"
    document["unexpectedField2"] = 42
    document["unexpectedArray"] = ["item"]


def _invalid_value(document: Dict[str, Any], constraints: Sequence[FieldConstraint]) -> None:
    for rule in constraints:
        kind = rule.kind
        if kind is ConstraintKind.PATTERN:
            _put(document, rule.path, "INVALID")
        elif kind is ConstraintKind.EMAIL:
            _put(document, rule.path, "not-an-email")
        elif kind is ConstraintKind.RANGE:
            if rule.maximum is not None:
                bad = rule.maximum + 1
            else:
                bad = rule.minimum - 1
            _put(document, rule.path, int(bad) if rule.integer else bad)
        elif kind is ConstraintKind.ENUM:
            _put(document, rule.path, "UNKNOWN_VALUE")
        else:
            continue
        return


_INJECTORS: Dict[str, Callable[[Dict[str, Any], Sequence[FieldConstraint]], None]] = {
    FAULT_MISSING_REQUIRED: _remove_required,
    FAULT_WRONG_TYPE: _wrong_type,
    FAULT_EXTRA_FIELDS: _extra_fields,
    FAULT_INVALID_VALUES: _invalid_value,
}


def _group_by_path(constraints: Sequence[FieldConstraint]) -> Dict[str, List[FieldConstraint]]:
    grouped: Dict[str, List[FieldConstraint]] = {}
    for rule in constraints:
        grouped.setdefault(rule.path, []).append(rule)
    return grouped


def _put(document: Dict[str, Any], path: str, value: Any) -> None:
    """Set a dotted path, creating intermediate objects."""
    keys = path.split(".")
    current = document
    for key in keys[:-1]:
        current = current.setdefault(key, {})
    current[keys[-1]] = value


# =============================================================================
# Chat model stand-in
# =============================================================================

class MockChatModel:
    """
    Callable chat collaborator returning canned responses.

    Responses are matched by prompt substring in registration order; the
    default response is used when nothing matches. ``with_error`` makes
    every call raise, for exercising the service's failure path.
    """

    def __init__(self, default_response: str = '{"result": "mock response"}'):
        self.default_response = default_response
        self._responses: List[tuple] = []
        self._error: Optional[Exception] = None
        self.call_count = 0
        self.prompt_history: List[str] = []

    def with_response(self, prompt_contains: str, response: str) -> "MockChatModel":
        self._responses.append((prompt_contains, response))
        return self

    def with_default(self, response: str) -> "MockChatModel":
        self.default_response = response
        return self

    def with_error(self, error: Optional[Exception]) -> "MockChatModel":
        self._error = error
        return self

    def __call__(self, prompt: str) -> str:
        self.call_count += 1
        self.prompt_history.append(prompt)
        if self._error is not None:
            raise self._error
        for needle, response in self._responses:
            if needle in prompt:
                return response
        return self.default_response

    def reset(self) -> None:
        self.call_count = 0
        self.prompt_history.clear()
