"""
Validation Service — seam between the pipeline and its collaborators.

The chat call itself is injected as a plain callable ``chat_fn(prompt) -> str``
so a real client or MockChatModel can drive the pipeline. The service adds
prompt rendering, metrics, run statistics and the schema-less raw JSON check.
"""
import json
import logging
import time
from datetime import datetime
from typing import Any, Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from src.config import settings
from src.config.constants import (
    CONSTRAINT_JSON_SYNTAX,
    CONSTRAINT_NO_SPACES,
    CONSTRAINT_SYSTEM,
    WARNING_EMPTY_ARRAY,
    WARNING_NULL_VALUE,
)
from src.models.order_io import OrderRequest
from src.models.validation import ValidationError, ValidationResult, ValidationWarning
from src.validation import json_repair
from src.validation.metrics import record_result, timed_run
from src.validation.pipeline import ValidationPipeline, document_error
from src.validation.registry import SchemaRegistry, default_registry, to_json_schema
from src.validation.stats import RunStatistics

logger = logging.getLogger(__name__)

ORDER_SCHEMA_NAME = "order_request"

ORDER_PROMPT_TEMPLATE = """Generate a complete order based on this description:
{description}

Requirements:
- Order ID must follow pattern: {prefix}-XXXXXX (6 digits)
- Include valid email address
- Order date should be today or in the past
- Include at least one item with valid details
- Calculate total amount correctly
- Provide complete shipping address with valid US format
- Select appropriate payment method

Your response must be a single JSON object conforming to this JSON Schema:
{format}
"""


class ValidationService:
    """
    Generate-and-validate entry points.

    Args:
        chat_fn: Callable taking a prompt and returning the model's raw text.
        pipeline: ValidationPipeline; a default one is created if omitted.
        registry: SchemaRegistry holding the target schemas.
        stats: RunStatistics accumulator shared across calls.
    """

    def __init__(
        self,
        chat_fn: Optional[Callable[[str], str]] = None,
        pipeline: Optional[ValidationPipeline] = None,
        registry: Optional[SchemaRegistry] = None,
        stats: Optional[RunStatistics] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._chat_fn = chat_fn
        self._pipeline = pipeline or ValidationPipeline()
        self._registry = registry or default_registry
        self._stats = stats or RunStatistics()
        self._clock = clock or datetime.now

    # ------------------------------------------------------------------
    # Generate + validate
    # ------------------------------------------------------------------

    def render_order_prompt(self, description: str) -> str:
        schema = self._registry.get(ORDER_SCHEMA_NAME)
        return ORDER_PROMPT_TEMPLATE.format(
            description=description,
            prefix=settings.ORDER_ID_PREFIX,
            format=json.dumps(to_json_schema(schema), indent=2),
        )

    def generate_and_validate_order(self, description: str) -> ValidationResult:
        """
        Ask the chat collaborator for an order and validate the answer.

        Collaborator failures are returned as an invalid result carrying a
        single ``system`` error; they are never raised.
        """
        if self._chat_fn is None:
            raise RuntimeError("ValidationService has no chat_fn configured")

        prompt = self.render_order_prompt(description)
        try:
            raw_text = self._chat_fn(prompt)
        except Exception as e:
            logger.error("Chat call failed for order generation: %s", e, exc_info=True)
            result = ValidationResult(
                valid=False,
                timestamp=self._clock(),
                errors=(
                    ValidationError(
                        field="system",
                        message=f"System error: {e}",
                        value=None,
                        constraint=CONSTRAINT_SYSTEM,
                    ),
                ),
                final_output=None,
                metadata={"schema": ORDER_SCHEMA_NAME, "error": type(e).__name__},
            )
            record_result(ORDER_SCHEMA_NAME, result)
            self._stats.record(result, 0.0)
            return result

        logger.debug("Chat response: %s", (raw_text or "")[: settings.MAX_RAW_LOG_CHARS])
        return self.validate(raw_text, ORDER_SCHEMA_NAME)

    def validate(self, raw_text: str, schema_name: str) -> ValidationResult:
        """Run the pipeline against a registered schema, recording metrics."""
        schema = self._registry.get(schema_name)
        start = time.perf_counter()
        with timed_run(schema_name):
            result = self._pipeline.run(raw_text, schema)
        duration_ms = (time.perf_counter() - start) * 1000

        record_result(schema_name, result)
        self._stats.record(result, duration_ms)
        logger.info(
            "[%s] valid=%s errors=%d warnings=%d recovery_attempts=%d (%.1f ms)",
            schema_name,
            result.valid,
            len(result.errors),
            len(result.warnings),
            len(result.recovery_attempts),
            duration_ms,
        )
        return result

    # ------------------------------------------------------------------
    # Schema-less check
    # ------------------------------------------------------------------

    def validate_raw_json(self, raw_text: str) -> ValidationResult:
        """
        Repair *raw_text* and report structural findings without a schema.

        Null values and empty arrays are warnings; keys containing spaces
        are errors.
        """
        outcome = json_repair.repair(raw_text)
        if not outcome.success:
            return ValidationResult(
                valid=False,
                timestamp=self._clock(),
                errors=(
                    ValidationError(
                        field="$",
                        message=f"Invalid JSON: {outcome.error}",
                        value=raw_text,
                        constraint=CONSTRAINT_JSON_SYNTAX,
                    ),
                ),
                final_output=None,
                metadata={"type": "raw_json_validation", "repairAttempts": list(outcome.attempts)},
            )

        document_problem = document_error(outcome.value, raw_text)
        if document_problem is not None:
            return ValidationResult(
                valid=False,
                timestamp=self._clock(),
                errors=(document_problem,),
                final_output=None,
                metadata={"type": "raw_json_validation", "jsonRepair": outcome.strategy},
            )

        errors: List[ValidationError] = []
        warnings: List[ValidationWarning] = []
        if isinstance(outcome.value, dict) and not outcome.value:
            warnings.append(
                ValidationWarning("root", "Empty JSON object", "Consider if this is intentional")
            )
        _check_structure(outcome.value, "", errors, warnings)

        return ValidationResult(
            valid=not errors,
            timestamp=self._clock(),
            errors=tuple(errors),
            warnings=tuple(warnings),
            final_output=outcome.value,
            metadata={"type": "raw_json_validation", "jsonRepair": outcome.strategy},
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def statistics(self) -> dict:
        return self._stats.summary()

    @staticmethod
    def http_status(result: ValidationResult) -> int:
        """200 for a valid result, 400 otherwise; the body is the same shape."""
        return 200 if result.valid else 400

    @staticmethod
    def to_order_request(result: ValidationResult) -> Optional[OrderRequest]:
        """Typed view of a valid order result; None when it cannot be built."""
        if not result.valid:
            return None
        try:
            return OrderRequest.model_validate(result.final_output)
        except PydanticValidationError as e:
            logger.warning("Valid result did not convert to OrderRequest: %s", e)
            return None


def _check_structure(
    node: Any,
    path: str,
    errors: List[ValidationError],
    warnings: List[ValidationWarning],
) -> None:
    if isinstance(node, dict):
        for key, value in node.items():
            field_path = f"{path}.{key}" if path else key
            if " " in key:
                errors.append(
                    ValidationError(
                        field=field_path,
                        message="Field names should not contain spaces",
                        value=key,
                        constraint=CONSTRAINT_NO_SPACES,
                    )
                )
            if value is None:
                warnings.append(
                    ValidationWarning(
                        field_path, "Null value found", "Consider providing a default value", WARNING_NULL_VALUE
                    )
                )
            elif isinstance(value, list) and not value:
                warnings.append(
                    ValidationWarning(
                        field_path, "Empty array found", "Verify if empty array is expected", WARNING_EMPTY_ARRAY
                    )
                )
            _check_structure(value, field_path, errors, warnings)
    elif isinstance(node, list):
        for i, item in enumerate(node):
            _check_structure(item, f"{path}[{i}]", errors, warnings)
