"""
Error Catalog — validation error/warning kinds and fix heuristics.

The heuristics back the ``pattern_auto_correct`` recovery strategy. Each one
only reshapes a value that is already present (format repairs); none of them
invents business data such as amounts, names or identifiers without digits.
"""
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, NamedTuple, Optional

from src.config.constants import (
    CONSTRAINT_JSON_SYNTAX,
    CONSTRAINT_MAX_DEPTH,
    CONSTRAINT_NO_SPACES,
    CONSTRAINT_SYSTEM,
    CONSTRAINT_TYPE,
    FREE_TEXT_DATE_FORMATS,
    IDENTIFIER_PATTERN_SHAPE,
    ISO_DATE_FORMAT,
    WARNING_DEFAULT_APPLIED,
    WARNING_EMPTY_ARRAY,
    WARNING_NULL_VALUE,
    WARNING_PARTIAL_ACCEPT,
    WARNING_SUSPICIOUS,
    WARNING_UNEXPECTED_FIELD,
)
from src.models.constraint import ConstraintKind, FieldConstraint
from src.models.validation import ValidationError

# =============================================================================
# Kinds
# =============================================================================
ERROR_KINDS: Dict[str, str] = {
    ConstraintKind.REQUIRED.value: "Field is missing, null or blank",
    ConstraintKind.PATTERN.value: "Value does not match the required pattern",
    ConstraintKind.EMAIL.value: "Value is not a valid email address",
    ConstraintKind.RANGE.value: "Number outside the inclusive range",
    ConstraintKind.SIZE.value: "String length or collection size outside bounds",
    ConstraintKind.ENUM.value: "Value is not one of the allowed values",
    ConstraintKind.NESTED.value: "Nested value has the wrong shape",
    ConstraintKind.PAST_OR_PRESENT.value: "Date lies in the future",
    CONSTRAINT_TYPE: "Value has the wrong JSON type",
    CONSTRAINT_JSON_SYNTAX: "Text could not be repaired into JSON",
    CONSTRAINT_NO_SPACES: "Field name contains spaces",
    CONSTRAINT_MAX_DEPTH: "Document nests deeper than the configured limit",
    CONSTRAINT_SYSTEM: "Collaborator failure outside the pipeline",
}

WARNING_KINDS: Dict[str, str] = {
    WARNING_SUSPICIOUS: "Value passes constraints but looks unusual",
    WARNING_UNEXPECTED_FIELD: "Field is not declared by the schema and is ignored",
    WARNING_DEFAULT_APPLIED: "Missing field replaced by its declared default",
    WARNING_PARTIAL_ACCEPT: "Violation on a non-critical field accepted as-is",
    WARNING_NULL_VALUE: "Null value found",
    WARNING_EMPTY_ARRAY: "Empty array found",
}

# =============================================================================
# Heuristics
# =============================================================================
_IDENTIFIER_SHAPE = re.compile(IDENTIFIER_PATTERN_SHAPE)
_SPELLED_AT = re.compile(r"\s*[\(\[]?\bat\b[\)\]]?\s*")
_SPELLED_DOT = re.compile(r"\s*[\(\[]?\bdot\b[\)\]]?\s*")
_ISO_DATETIME = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ]")
_CURRENCY_WORDS = re.compile(r"\b(usd|eur|gbp|dollars?|euros?)\b", re.IGNORECASE)
_NUMBER = re.compile(r"-?\d+(\.\d+)?")


class FixHeuristic(NamedTuple):
    name: str
    description: str
    fix: Callable[[Any, FieldConstraint, date], Optional[Any]]


def fix_identifier(value: Any, rule: FieldConstraint, today: date) -> Optional[str]:  # noqa: ARG001
    """``ORDER123`` → ``ORD-000123`` for patterns shaped ``^PREFIX-\\d{N}$``."""
    shape = identifier_shape(rule)
    if shape is None:
        return None
    prefix, width = shape
    digits = re.sub(r"\D", "", str(value))
    if not digits:
        return None
    digits = digits[:width] if len(digits) >= width else digits.zfill(width)
    return f"{prefix}-{digits}"


def fix_email(value: Any, rule: FieldConstraint, today: date) -> Optional[str]:  # noqa: ARG001
    """``User at Example com`` → ``user@example.com``."""
    if not isinstance(value, str):
        return None
    text = value.strip().lower()
    if "@" not in text:
        text = _SPELLED_AT.sub("@", text, count=1)
    text = _SPELLED_DOT.sub(".", text)
    if text.count("@") != 1:
        return None
    local, domain = text.split("@")
    local = re.sub(r"\s+", "", local)
    domain = ".".join(domain.split())
    domain = re.sub(r"\.{2,}", ".", domain).strip(".")
    if not local or not domain:
        return None
    return f"{local}@{domain}"


def fix_date(value: Any, rule: FieldConstraint, today: date) -> Optional[str]:
    """Coerce a free-text date into ISO form, clamping future dates to today."""
    parsed = parse_free_text_date(value)
    if parsed is None:
        return None
    if rule.kind is ConstraintKind.PAST_OR_PRESENT and parsed > today:
        parsed = today
    return parsed.strftime(ISO_DATE_FORMAT)


def fix_amount(value: Any, rule: FieldConstraint, today: date) -> Optional[Any]:  # noqa: ARG001
    """``"$4,500.00"`` → ``4500.0``; integer constraints accept whole values only."""
    if not isinstance(value, str):
        return None
    text = _CURRENCY_WORDS.sub("", value)
    text = text.replace("$", "").replace("€", "").replace("£", "").replace(",", "").strip()
    if not _NUMBER.fullmatch(text):
        return None
    number = float(text)
    if rule.integer:
        return int(number) if number.is_integer() else None
    return number


def fix_enum_case(value: Any, rule: FieldConstraint, today: date) -> Optional[Any]:  # noqa: ARG001
    """``credit card`` → ``CREDIT_CARD`` when that spelling is allowed."""
    if not isinstance(value, str):
        return None
    key = re.sub(r"[\s\-]+", "_", value.strip()).upper()
    for allowed in rule.allowed:
        if isinstance(allowed, str) and allowed.upper() == key:
            return allowed
    return None


IDENTIFIER = FixHeuristic("identifier", "Reformatted identifier to the required pattern", fix_identifier)
EMAIL = FixHeuristic("email", "Rebuilt email address from spelled-out form", fix_email)
DATE = FixHeuristic("date", "Normalized date to ISO calendar form", fix_date)
AMOUNT = FixHeuristic("amount", "Parsed numeric value from formatted text", fix_amount)
ENUM_CASE = FixHeuristic("enum_case", "Mapped value onto an allowed spelling", fix_enum_case)


def heuristic_for(error: ValidationError) -> Optional[FixHeuristic]:
    """Return the fix heuristic applicable to *error*, if any."""
    rule = error.rule
    if rule is None or error.value is None:
        return None
    if error.constraint not in (rule.constraint_id, CONSTRAINT_TYPE):
        return None

    kind = rule.kind
    if kind is ConstraintKind.PATTERN and identifier_shape(rule) is not None:
        return IDENTIFIER
    if kind is ConstraintKind.EMAIL:
        return EMAIL
    if kind is ConstraintKind.PAST_OR_PRESENT:
        return DATE
    if kind is ConstraintKind.RANGE and error.constraint == CONSTRAINT_TYPE:
        return AMOUNT
    if kind is ConstraintKind.ENUM:
        return ENUM_CASE
    return None


def identifier_shape(rule: FieldConstraint) -> Optional[tuple]:
    """``^ORD-\\d{6}$`` → ``("ORD", 6)``; None for other patterns."""
    if rule.kind is not ConstraintKind.PATTERN or not rule.pattern:
        return None
    match = _IDENTIFIER_SHAPE.fullmatch(rule.pattern)
    if not match:
        return None
    return match.group(1), int(match.group(2))


def parse_free_text_date(value: Any) -> Optional[date]:
    if not isinstance(value, str):
        return None
    text = " ".join(value.strip().split())
    if not text:
        return None
    iso = _ISO_DATETIME.match(text)
    if iso:
        text = iso.group(1)
    for fmt in FREE_TEXT_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None
