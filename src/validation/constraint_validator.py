"""
Constraint Validator — apply declarative field constraints to a parsed value.

Constraints are evaluated in declaration order and every violation becomes a
ValidationError (order is stable so tests can assert on it). Data problems,
including type mismatches, are reported, never raised.

Also provides the non-blocking checks: unexpected fields and advisory rules.
"""
import math
import re
from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Sequence, Set

from src.config.constants import (
    CONSTRAINT_TYPE,
    EMAIL_PATTERN,
    ISO_DATE_FORMAT,
    WARNING_SUSPICIOUS,
    WARNING_UNEXPECTED_FIELD,
)
from src.models.constraint import AdvisoryRule, ConstraintKind, FieldConstraint
from src.models.validation import ValidationError, ValidationWarning
from src.validation.paths import MISSING, expand, join_path, resolve

_EMAIL_RE = re.compile(EMAIL_PATTERN)


def validate(
    value: Any,
    constraints: Sequence[FieldConstraint],
    today: Optional[date] = None,
    prefix: str = "",
) -> List[ValidationError]:
    """
    Validate *value* against *constraints*.

    Args:
        value: Parsed candidate value (document tree).
        constraints: Ordered FieldConstraint list.
        today: Reference date for past-or-present checks (defaults to today).
        prefix: Path prepended to reported fields (used for nested recursion).

    Returns:
        Ordered list of ValidationError; empty iff every constraint holds.
    """
    if today is None:
        today = date.today()

    errors: List[ValidationError] = []
    for rule in constraints:
        field_value = resolve(value, rule.path)
        errors.extend(check(field_value, rule, today, join_path(prefix, rule.path)))
    return errors


def check(
    field_value: Any,
    rule: FieldConstraint,
    today: Optional[date] = None,
    field_path: Optional[str] = None,
) -> List[ValidationError]:
    """Check one already-resolved value against one constraint."""
    if today is None:
        today = date.today()
    path = field_path if field_path is not None else rule.path
    kind = rule.kind

    if kind is ConstraintKind.REQUIRED:
        if _is_blank(field_value):
            return [_error(path, rule, None if field_value is MISSING else field_value)]
        return []

    # Non-required constraints skip absent values.
    if field_value is MISSING or field_value is None:
        return []

    if kind is ConstraintKind.NESTED:
        return _check_nested(field_value, rule, today, path)

    checker = _CHECKERS[kind]
    return checker(field_value, rule, today, path)


def find_unexpected_fields(
    value: Any,
    constraints: Sequence[FieldConstraint],
    prefix: str = "",
) -> List[ValidationWarning]:
    """Report object keys no constraint declares; they are ignored, not rejected."""
    if not isinstance(value, dict):
        return []

    declared: Set[str] = {rule.path.split(".")[0].split("[")[0] for rule in constraints}
    warnings: List[ValidationWarning] = []
    for key in value:
        if key not in declared:
            warnings.append(
                ValidationWarning(
                    field=join_path(prefix, key),
                    message="Unexpected field not declared by the schema",
                    suggestion="Field is ignored; remove it or add it to the schema",
                    kind=WARNING_UNEXPECTED_FIELD,
                )
            )

    for rule in constraints:
        if rule.kind is not ConstraintKind.NESTED:
            continue
        sub_value = resolve(value, rule.path)
        sub_prefix = join_path(prefix, rule.path)
        if rule.many and isinstance(sub_value, list):
            for i, item in enumerate(sub_value):
                warnings.extend(find_unexpected_fields(item, rule.nested, f"{sub_prefix}[{i}]"))
        elif not rule.many:
            warnings.extend(find_unexpected_fields(sub_value, rule.nested, sub_prefix))
    return warnings


def collect_advisories(value: Any, advisories: Iterable[AdvisoryRule]) -> List[ValidationWarning]:
    """Evaluate advisory rules against a (valid or recovered) value."""
    warnings: List[ValidationWarning] = []
    for rule in advisories:
        for path, field_value in expand(value, rule.path):
            if _advisory_fires(rule, field_value):
                warnings.append(
                    ValidationWarning(
                        field=path,
                        message=f"{rule.message}: {field_value}",
                        suggestion=rule.suggestion,
                        kind=WARNING_SUSPICIOUS,
                    )
                )
    return warnings


# ======================================================================
# Kind checkers
# ======================================================================

def _check_pattern(v: Any, rule: FieldConstraint, today: date, path: str) -> List[ValidationError]:  # noqa: ARG001
    if not isinstance(v, str):
        return [_type_error(path, rule, v, "string")]
    if re.fullmatch(rule.pattern, v) is None:
        return [_error(path, rule, v)]
    return []


def _check_email(v: Any, rule: FieldConstraint, today: date, path: str) -> List[ValidationError]:  # noqa: ARG001
    if not isinstance(v, str):
        return [_type_error(path, rule, v, "string")]
    if _EMAIL_RE.fullmatch(v) is None:
        return [_error(path, rule, v)]
    return []


def _check_range(v: Any, rule: FieldConstraint, today: date, path: str) -> List[ValidationError]:  # noqa: ARG001
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return [_type_error(path, rule, v, "integer" if rule.integer else "number")]
    if isinstance(v, float) and not math.isfinite(v):
        return [_type_error(path, rule, v, "finite number")]
    if rule.integer and not (isinstance(v, int) or float(v).is_integer()):
        return [_type_error(path, rule, v, "integer")]
    if rule.minimum is not None and v < rule.minimum:
        return [_error(path, rule, v)]
    if rule.maximum is not None and v > rule.maximum:
        return [_error(path, rule, v)]
    return []


def _check_size(v: Any, rule: FieldConstraint, today: date, path: str) -> List[ValidationError]:  # noqa: ARG001
    if not isinstance(v, (str, list, dict)):
        return [_type_error(path, rule, v, "string or array")]
    size = len(v)
    if rule.min_size is not None and size < rule.min_size:
        return [_error(path, rule, v)]
    if rule.max_size is not None and size > rule.max_size:
        return [_error(path, rule, v)]
    return []


def _check_enum(v: Any, rule: FieldConstraint, today: date, path: str) -> List[ValidationError]:  # noqa: ARG001
    if v not in rule.allowed:
        return [_error(path, rule, v)]
    return []


def _check_past_or_present(v: Any, rule: FieldConstraint, today: date, path: str) -> List[ValidationError]:
    if not isinstance(v, str):
        return [_type_error(path, rule, v, "ISO-8601 date string")]
    try:
        parsed = datetime.strptime(v, ISO_DATE_FORMAT).date()
    except ValueError:
        return [_type_error(path, rule, v, "ISO-8601 date string")]
    if parsed > today:
        return [_error(path, rule, v)]
    return []


def _check_nested(v: Any, rule: FieldConstraint, today: date, path: str) -> List[ValidationError]:
    if rule.many:
        if not isinstance(v, list):
            return [_type_error(path, rule, v, "array of objects")]
        errors: List[ValidationError] = []
        for i, item in enumerate(v):
            item_path = f"{path}[{i}]"
            if not isinstance(item, dict):
                errors.append(_type_error(item_path, rule, item, "object"))
                continue
            errors.extend(validate(item, rule.nested, today, item_path))
        return errors

    if not isinstance(v, dict):
        return [_type_error(path, rule, v, "object")]
    return validate(v, rule.nested, today, path)


_CHECKERS = {
    ConstraintKind.PATTERN: _check_pattern,
    ConstraintKind.EMAIL: _check_email,
    ConstraintKind.RANGE: _check_range,
    ConstraintKind.SIZE: _check_size,
    ConstraintKind.ENUM: _check_enum,
    ConstraintKind.PAST_OR_PRESENT: _check_past_or_present,
}


# ======================================================================
# Internal helpers
# ======================================================================

def _is_blank(v: Any) -> bool:
    if v is MISSING or v is None:
        return True
    return isinstance(v, str) and not v.strip()


def _error(path: str, rule: FieldConstraint, value: Any) -> ValidationError:
    return ValidationError(
        field=path,
        message=rule.render_message(value),
        value=value,
        constraint=rule.constraint_id,
        rule=rule,
    )


def _type_error(path: str, rule: FieldConstraint, value: Any, expected: str) -> ValidationError:
    return ValidationError(
        field=path,
        message=f"Expected {expected}, got {_json_type(value)}",
        value=value,
        constraint=CONSTRAINT_TYPE,
        rule=rule,
    )


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _advisory_fires(rule: AdvisoryRule, value: Any) -> bool:
    if rule.kind == "equals":
        return value == rule.threshold
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return value > rule.threshold
