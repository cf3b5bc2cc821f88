"""
Prometheus Metrics — validation pipeline observability.

Exposes counters and histograms for:
- Pipeline runs per schema and outcome (valid / invalid)
- Validation errors remaining after recovery, per constraint id
- Recovery attempts per strategy and success
- JSON repair steps that produced the parsed value
- Run latency per schema

Usage
-----
    from src.validation.metrics import record_result, timed_run

    with timed_run("order_request"):
        result = pipeline.run(raw_text, schema)
    record_result("order_request", result)
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram

from src.models.validation import ValidationResult


# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

# Pipeline runs, labelled by schema and outcome.
PIPELINE_RUNS: Counter = Counter(
    "validation_pipeline_runs_total",
    "Total validation pipeline runs by schema and outcome",
    ["schema", "outcome"],
)

# Errors left on the final result, labelled by constraint id.
VALIDATION_ERRORS: Counter = Counter(
    "validation_errors_total",
    "Validation errors remaining after recovery by schema and constraint",
    ["schema", "constraint"],
)

# Recovery strategy invocations.
RECOVERY_ATTEMPTS: Counter = Counter(
    "validation_recovery_attempts_total",
    "Recovery attempts by strategy and success",
    ["strategy", "success"],
)

# Which repair step produced the parsed value (strict_parse when none needed).
JSON_REPAIRS: Counter = Counter(
    "validation_json_repairs_total",
    "Parsed candidates by JSON repair step",
    ["strategy"],
)

# End-to-end run latency (seconds).
RUN_LATENCY: Histogram = Histogram(
    "validation_run_seconds",
    "Validation pipeline run time in seconds",
    ["schema"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------

def record_result(schema_name: str, result: ValidationResult) -> None:
    """Update every counter from one finished run."""
    PIPELINE_RUNS.labels(schema=schema_name, outcome="valid" if result.valid else "invalid").inc()

    for error in result.errors:
        VALIDATION_ERRORS.labels(schema=schema_name, constraint=error.constraint).inc()

    for attempt in result.recovery_attempts:
        RECOVERY_ATTEMPTS.labels(
            strategy=attempt.strategy,
            success=str(attempt.success).lower(),
        ).inc()

    repair_strategy = result.metadata.get("jsonRepair")
    if repair_strategy:
        JSON_REPAIRS.labels(strategy=repair_strategy).inc()


@contextmanager
def timed_run(schema_name: str) -> Generator[None, None, None]:
    """
    Context manager that records run latency.

    Usage::

        with timed_run("order_request"):
            result = pipeline.run(raw_text, schema)
    """
    with RUN_LATENCY.labels(schema=schema_name).time():
        yield
