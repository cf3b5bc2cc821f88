"""
Constants used across the validation pipeline.
Versioned and pinned for determinism.
"""
from typing import Dict, List, Tuple

# =============================================================================
# Constraint identifiers (serialized as ValidationError.constraint)
# =============================================================================
CONSTRAINT_TYPE: str = "type"
CONSTRAINT_JSON_SYNTAX: str = "json_syntax"
CONSTRAINT_SYSTEM: str = "system"
CONSTRAINT_NO_SPACES: str = "no_spaces_in_field_names"
CONSTRAINT_MAX_DEPTH: str = "max_depth"

# =============================================================================
# Recovery strategies (fixed priority order)
# =============================================================================
STRATEGY_AUTO_CORRECT: str = "pattern_auto_correct"
STRATEGY_DEFAULT_FILL: str = "default_fill"
STRATEGY_PARTIAL_ACCEPT: str = "partial_accept"
STRATEGY_UNRECOVERABLE: str = "unrecoverable"

# =============================================================================
# JSON repair steps
# =============================================================================
REPAIR_STRICT: str = "strict_parse"
REPAIR_EXTRACT: str = "extract_span"
REPAIR_NORMALIZE: str = "normalize"

# =============================================================================
# Warning kinds
# =============================================================================
WARNING_SUSPICIOUS: str = "suspicious_value"
WARNING_UNEXPECTED_FIELD: str = "unexpected_field"
WARNING_DEFAULT_APPLIED: str = "default_applied"
WARNING_PARTIAL_ACCEPT: str = "partially_accepted"
WARNING_NULL_VALUE: str = "null_value"
WARNING_EMPTY_ARRAY: str = "empty_array"

# =============================================================================
# Fault kinds for the mock response harness
# =============================================================================
FAULT_MALFORMED_JSON: str = "malformed_json"
FAULT_MISSING_REQUIRED: str = "missing_required_field"
FAULT_WRONG_TYPE: str = "wrong_type"
FAULT_EXTRA_FIELDS: str = "extra_fields"
FAULT_INVALID_VALUES: str = "invalid_values"

FAULT_KINDS: Tuple[str, ...] = (
    FAULT_MALFORMED_JSON,
    FAULT_MISSING_REQUIRED,
    FAULT_WRONG_TYPE,
    FAULT_EXTRA_FIELDS,
    FAULT_INVALID_VALUES,
)

# =============================================================================
# Formats
# =============================================================================
EMAIL_PATTERN: str = r"[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}"

# Shape of identifier patterns the auto-correct heuristic understands: ^ORD-\d{6}$
IDENTIFIER_PATTERN_SHAPE: str = r"\^?([A-Z][A-Z0-9]*)-\\d\{(\d+)\}\$?"

ISO_DATE_FORMAT: str = "%Y-%m-%d"

# Free-text date formats accepted by the date heuristic, tried in order.
FREE_TEXT_DATE_FORMATS: List[str] = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
]

# Mock harness reference date (deterministic, safely in the past).
MOCK_REFERENCE_DATE: str = "2024-01-15"

# Python literals an LLM sometimes emits instead of JSON ones.
PYTHON_LITERALS: Dict[str, str] = {
    "True": "true",
    "False": "false",
    "None": "null",
}
