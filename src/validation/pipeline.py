"""
Validation Pipeline — main entry point for validating LLM structured output.

State machine:

    RECEIVED → PARSED → CONSTRAINT_CHECKED → RECOVERED → RE_CHECKED → DONE
        │                       │                             │
        └──────→ FAILED         └── no errors ──→ RE_CHECKED  └──→ FAILED

    RECEIVED → FAILED     unrepairable JSON (single json_syntax error)
    PARSED → FAILED       top-level null, or nesting beyond MAX_DOCUMENT_DEPTH
    RE_CHECKED → FAILED   errors remain after recovery

The pipeline performs no I/O: the raw text comes from the caller and the
result is returned. Runs share no mutable state.
"""
import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Union

from src.config import settings
from src.config.constants import (
    CONSTRAINT_JSON_SYNTAX,
    CONSTRAINT_MAX_DEPTH,
    CONSTRAINT_TYPE,
    REPAIR_STRICT,
)
from src.models.constraint import FieldConstraint, TargetSchema
from src.models.validation import ValidationError, ValidationResult, ValidationWarning
from src.validation import json_repair
from src.validation.constraint_validator import (
    collect_advisories,
    find_unexpected_fields,
    validate,
)
from src.validation.paths import exceeds_depth
from src.validation.recovery import RecoveryEngine

logger = logging.getLogger(__name__)

SchemaLike = Union[TargetSchema, Sequence[FieldConstraint]]


class PipelineState(str, Enum):
    RECEIVED = "RECEIVED"
    PARSED = "PARSED"
    CONSTRAINT_CHECKED = "CONSTRAINT_CHECKED"
    RECOVERED = "RECOVERED"
    RE_CHECKED = "RE_CHECKED"
    DONE = "DONE"
    FAILED = "FAILED"


class ValidationPipeline:
    """
    Drives parse → validate → recover → re-validate for one candidate text.

    Args:
        recovery_engine: RecoveryEngine instance. Defaults to a new engine
                         sharing this pipeline's clock.
        today: Callable returning the reference date for date constraints.
        clock: Callable returning the result timestamp.
    """

    def __init__(
        self,
        recovery_engine: Optional[RecoveryEngine] = None,
        today: Optional[Callable[[], date]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._today = today or date.today
        self._clock = clock or datetime.now
        self._recovery = recovery_engine or RecoveryEngine(today=self._today)

    def run(self, raw_text: str, schema: SchemaLike) -> ValidationResult:
        """
        Validate *raw_text* against *schema*.

        Args:
            raw_text: Text purporting to encode one value of the target shape.
            schema: TargetSchema, or a bare sequence of FieldConstraint
                    (no defaults, no partial-accept allow-list).

        Returns:
            ValidationResult. Never raises for malformed or invalid input.

        Raises:
            TypeError: If *schema* is neither a TargetSchema nor a sequence
                       of FieldConstraint.
        """
        target = as_target_schema(schema)
        today = self._today()
        states: List[PipelineState] = [PipelineState.RECEIVED]

        # ==================================================================
        # RECEIVED → PARSED
        # ==================================================================
        outcome = json_repair.repair(raw_text)
        if not outcome.success:
            states.append(PipelineState.FAILED)
            logger.info(
                "[%s] JSON could not be repaired: %s | raw=%r",
                target.name,
                outcome.error,
                (raw_text or "")[: settings.MAX_RAW_LOG_CHARS],
            )
            syntax_error = ValidationError(
                field="$",
                message=f"Invalid JSON: {outcome.error}",
                value=raw_text,
                constraint=CONSTRAINT_JSON_SYNTAX,
            )
            return ValidationResult(
                valid=False,
                timestamp=self._clock(),
                errors=(syntax_error,),
                final_output=None,
                metadata={
                    "schema": target.name,
                    "stage": PipelineState.FAILED.value,
                    "states": [s.value for s in states],
                    "repairAttempts": list(outcome.attempts),
                },
            )

        value: Any = outcome.value
        states.append(PipelineState.PARSED)
        if outcome.strategy != REPAIR_STRICT:
            logger.debug("[%s] JSON recovered via %s", target.name, outcome.strategy)

        document_problem = document_error(value, raw_text)
        if document_problem is not None:
            states.append(PipelineState.FAILED)
            logger.info("[%s] parsed document rejected: %s", target.name, document_problem.message)
            return ValidationResult(
                valid=False,
                timestamp=self._clock(),
                errors=(document_problem,),
                final_output=None,
                metadata={
                    "schema": target.name,
                    "stage": PipelineState.FAILED.value,
                    "states": [s.value for s in states],
                    "jsonRepair": outcome.strategy,
                },
            )

        warnings: List[ValidationWarning] = find_unexpected_fields(value, target.constraints)

        # ==================================================================
        # PARSED → CONSTRAINT_CHECKED
        # ==================================================================
        initial_errors = validate(value, target.constraints, today)
        states.append(PipelineState.CONSTRAINT_CHECKED)

        # ==================================================================
        # CONSTRAINT_CHECKED → RECOVERED → RE_CHECKED
        # ==================================================================
        attempts = []
        if initial_errors:
            logger.debug(
                "[%s] %d constraint violations, attempting recovery",
                target.name,
                len(initial_errors),
            )
            recovery = self._recovery.recover(value, initial_errors, target, today)
            states.append(PipelineState.RECOVERED)
            value = recovery.value
            attempts = recovery.attempts
            warnings.extend(recovery.warnings)

            remaining = [
                e for e in validate(value, target.constraints, today)
                if (e.field, e.constraint) not in recovery.accepted
            ]
        else:
            remaining = []
        states.append(PipelineState.RE_CHECKED)

        # ==================================================================
        # RE_CHECKED → DONE | FAILED
        # ==================================================================
        final_state = PipelineState.DONE if not remaining else PipelineState.FAILED
        states.append(final_state)
        warnings.extend(collect_advisories(value, target.advisories))

        if final_state is PipelineState.FAILED:
            logger.info(
                "[%s] validation failed: %d errors remain after %d recovery attempts",
                target.name,
                len(remaining),
                len(attempts),
            )

        return ValidationResult(
            valid=final_state is PipelineState.DONE,
            timestamp=self._clock(),
            errors=tuple(remaining),
            warnings=tuple(warnings),
            recovery_attempts=tuple(attempts),
            final_output=value,
            metadata={
                "schema": target.name,
                "stage": final_state.value,
                "states": [s.value for s in states],
                "jsonRepair": outcome.strategy,
                "initialErrorCount": len(initial_errors),
                "recoveryAttempted": bool(attempts),
            },
        )


def as_target_schema(schema: SchemaLike) -> TargetSchema:
    """Wrap a bare constraint sequence; reject anything else."""
    if isinstance(schema, TargetSchema):
        return schema
    if isinstance(schema, (str, bytes, dict)) or not isinstance(schema, Sequence):
        raise TypeError(
            f"schema must be a TargetSchema or a sequence of FieldConstraint, got {type(schema).__name__}"
        )
    constraints = tuple(schema)
    for rule in constraints:
        if not isinstance(rule, FieldConstraint):
            raise TypeError(f"expected FieldConstraint, got {type(rule).__name__}")
    return TargetSchema(name="anonymous", constraints=constraints)


def document_error(value: Any, raw_text: str) -> Optional[ValidationError]:
    """
    Reject parsed documents no constraint check can handle.

    A top-level ``null`` has nothing to validate or recover, and documents
    nested deeper than ``settings.MAX_DOCUMENT_DEPTH`` are refused before any
    recursive walk or copy touches them.
    """
    if value is None:
        return ValidationError(
            field="$",
            message="Expected object, got null",
            value=None,
            constraint=CONSTRAINT_TYPE,
        )
    if exceeds_depth(value, settings.MAX_DOCUMENT_DEPTH):
        return ValidationError(
            field="$",
            message=f"Document nests deeper than {settings.MAX_DOCUMENT_DEPTH} levels",
            value=raw_text,
            constraint=CONSTRAINT_MAX_DEPTH,
        )
    return None
