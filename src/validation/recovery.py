"""
Recovery Engine — ordered recovery strategies for constraint violations.

For every error, strategies are tried in fixed priority order and one
RecoveryAttempt is recorded per strategy that applies:

    1. pattern_auto_correct  — catalog heuristic reshapes the value
    2. default_fill          — missing field gets its declared default
    3. partial_accept        — non-critical field kept as-is, error demoted

The first successful strategy's output is applied before the next error is
processed. An error no strategy applies to gets a single failed
``unrecoverable`` attempt, so every violation is accounted for.
"""
import copy
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, List, Optional, Sequence, Set, Tuple

from src.config.constants import (
    STRATEGY_AUTO_CORRECT,
    STRATEGY_DEFAULT_FILL,
    STRATEGY_PARTIAL_ACCEPT,
    STRATEGY_UNRECOVERABLE,
    WARNING_DEFAULT_APPLIED,
    WARNING_PARTIAL_ACCEPT,
)
from src.models.constraint import ConstraintKind, TargetSchema
from src.models.validation import RecoveryAttempt, ValidationError, ValidationWarning
from src.validation.constraint_validator import check
from src.validation.error_catalog import heuristic_for
from src.validation.paths import MISSING, assign, normalize_path, resolve

logger = logging.getLogger(__name__)


@dataclass
class RecoveryOutcome:
    """What recovery produced for one candidate value."""

    value: Any
    attempts: List[RecoveryAttempt] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)
    accepted: Set[Tuple[str, str]] = field(default_factory=set)   # (field, constraint) demoted
    unresolved: List[ValidationError] = field(default_factory=list)


class RecoveryEngine:
    """
    Applies recovery strategies to a violation list.

    Stateless apart from the injected clock, so one instance can serve
    concurrent pipeline runs.
    """

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self._today = today or date.today

    def recover(
        self,
        value: Any,
        errors: Sequence[ValidationError],
        schema: TargetSchema,
        today: Optional[date] = None,
    ) -> RecoveryOutcome:
        """
        Attempt to resolve *errors* on a deep copy of *value*.

        Args:
            value: Parsed candidate value; never mutated.
            errors: Violations from the constraint check, in evaluation order.
            schema: Target schema (defaults and partial-accept allow-list).
            today: Reference date; defaults to the engine clock.

        Returns:
            RecoveryOutcome with the recovered value, attempts in invocation
            order, warnings replacing resolved errors, and the errors left.
        """
        if today is None:
            today = self._today()

        outcome = RecoveryOutcome(value=copy.deepcopy(value))
        for error in errors:
            if not self._recover_one(outcome, error, schema, today):
                outcome.unresolved.append(error)

        logger.debug(
            "Recovery finished: %d attempts, %d unresolved",
            len(outcome.attempts),
            len(outcome.unresolved),
        )
        return outcome

    # ------------------------------------------------------------------
    # Per-error strategy chain
    # ------------------------------------------------------------------

    def _recover_one(
        self,
        outcome: RecoveryOutcome,
        error: ValidationError,
        schema: TargetSchema,
        today: date,
    ) -> bool:
        current = resolve(outcome.value, error.field)
        rule = error.rule

        # An earlier fix on the same field may already satisfy this rule.
        if (
            rule is not None
            and current is not MISSING
            and rule.kind is not ConstraintKind.NESTED
            and not check(current, rule, today, error.field)
        ):
            return True

        tried = False

        # 1. Pattern auto-correct
        heuristic = heuristic_for(error)
        if heuristic is not None:
            tried = True
            original = error.value if current is MISSING else current
            fixed = heuristic.fix(original, rule, today)
            if fixed is not None and not check(fixed, rule, today, error.field):
                assign(outcome.value, error.field, fixed)
                outcome.attempts.append(
                    RecoveryAttempt(
                        strategy=STRATEGY_AUTO_CORRECT,
                        success=True,
                        description=f"{heuristic.description}: {original!r} -> {fixed!r} ({error.field})",
                        result=fixed,
                    )
                )
                return True
            outcome.attempts.append(
                RecoveryAttempt(
                    strategy=STRATEGY_AUTO_CORRECT,
                    success=False,
                    description=f"{heuristic.description} failed for {error.field}: {original!r}",
                )
            )

        normalized = normalize_path(error.field)

        # 2. Default fill (missing / null / blank only)
        if error.constraint == ConstraintKind.REQUIRED.value:
            tried = True
            found, default = schema.default_for(normalized)
            if found and assign(outcome.value, error.field, copy.deepcopy(default)):
                outcome.attempts.append(
                    RecoveryAttempt(
                        strategy=STRATEGY_DEFAULT_FILL,
                        success=True,
                        description=f"Applied default value for missing field {error.field}",
                        result=default,
                    )
                )
                outcome.warnings.append(
                    ValidationWarning(
                        field=error.field,
                        message=f"{error.message}; default value {default!r} applied",
                        suggestion="Confirm the default is appropriate for this record",
                        kind=WARNING_DEFAULT_APPLIED,
                    )
                )
                return True
            reason = "no default configured" if not found else "parent object is missing"
            outcome.attempts.append(
                RecoveryAttempt(
                    strategy=STRATEGY_DEFAULT_FILL,
                    success=False,
                    description=f"Cannot fill {error.field}: {reason}",
                )
            )

        # 3. Partial accept (non-critical fields)
        if schema.is_lenient(normalized):
            outcome.accepted.add((error.field, error.constraint))
            outcome.attempts.append(
                RecoveryAttempt(
                    strategy=STRATEGY_PARTIAL_ACCEPT,
                    success=True,
                    description=f"Informational: accepted {error.field} as-is, error demoted to warning",
                    result=None if current is MISSING else current,
                )
            )
            outcome.warnings.append(
                ValidationWarning(
                    field=error.field,
                    message=error.message,
                    suggestion="Non-critical field accepted as-is; review before relying on it",
                    kind=WARNING_PARTIAL_ACCEPT,
                )
            )
            return True

        if not tried:
            outcome.attempts.append(
                RecoveryAttempt(
                    strategy=STRATEGY_UNRECOVERABLE,
                    success=False,
                    description=f"No recovery strategy applies to {error.constraint} violation on {error.field}",
                )
            )
        return False
