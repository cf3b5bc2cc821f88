"""
Run statistics — in-process aggregates over finished validation runs.

Complements the Prometheus counters with a summary the service can return
directly: success and recovery rates, the most common error constraints
and latency percentiles.
"""
import threading
from collections import Counter
from typing import Dict, List

import numpy as np

from src.models.validation import ValidationResult


class RunStatistics:
    """Thread-safe accumulator of per-run outcomes."""

    def __init__(self, max_common_errors: int = 10):
        self._lock = threading.Lock()
        self._max_common_errors = max_common_errors
        self._total = 0
        self._valid = 0
        self._recovered = 0
        self._recovery_runs = 0
        self._attempts_total = 0
        self._attempts_success = 0
        self._errors: Counter = Counter()
        self._durations_ms: List[float] = []

    def record(self, result: ValidationResult, duration_ms: float) -> None:
        with self._lock:
            self._total += 1
            if result.valid:
                self._valid += 1
            if result.recovery_attempts:
                self._recovery_runs += 1
                if result.valid:
                    self._recovered += 1
            self._attempts_total += len(result.recovery_attempts)
            self._attempts_success += sum(1 for a in result.recovery_attempts if a.success)
            self._errors.update(e.constraint for e in result.errors)
            self._durations_ms.append(float(duration_ms))

    def reset(self) -> None:
        with self._lock:
            self._total = self._valid = 0
            self._recovered = self._recovery_runs = 0
            self._attempts_total = self._attempts_success = 0
            self._errors.clear()
            self._durations_ms.clear()

    def summary(self) -> Dict[str, dict]:
        with self._lock:
            durations = np.asarray(self._durations_ms, dtype=float)
            return {
                "validation_stats": {
                    "total_runs": self._total,
                    "valid_runs": self._valid,
                    "success_rate": _ratio(self._valid, self._total),
                },
                "recovery_stats": {
                    "runs_with_recovery": self._recovery_runs,
                    "recovered_runs": self._recovered,
                    "recovery_rate": _ratio(self._recovered, self._recovery_runs),
                    "attempts": self._attempts_total,
                    "successful_attempts": self._attempts_success,
                },
                "common_errors": dict(self._errors.most_common(self._max_common_errors)),
                "performance": {
                    "mean_ms": round(float(np.mean(durations)), 3) if durations.size else 0.0,
                    "p50_ms": round(float(np.percentile(durations, 50)), 3) if durations.size else 0.0,
                    "p95_ms": round(float(np.percentile(durations, 95)), 3) if durations.size else 0.0,
                },
            }


def _ratio(part: int, whole: int) -> float:
    return round(part / whole, 4) if whole else 0.0
