"""
Runs the validation pipeline over one raw LLM output file.

Usage:
    python run_validation.py [INPUT_FILE] [SCHEMA_NAME]

Reads:
  - INPUT_FILE   raw model output (default: validation_io/llm_output.txt)

Produces:
  - validation_io/validation_result.json
"""
import logging
import sys
from pathlib import Path

from src.config import settings

# ---------------------------------------------------------------------------
# Setup logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger("run_validation")

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
ROOT = Path(__file__).parent
IO_DIR = ROOT / "validation_io"

DEFAULT_INPUT_FILE = IO_DIR / "llm_output.txt"
OUTPUT_FILE        = IO_DIR / "validation_result.json"


def main(argv=None) -> int:
    from src.validation.service import ValidationService

    argv = list(sys.argv[1:] if argv is None else argv)
    input_file = Path(argv[0]) if argv else DEFAULT_INPUT_FILE
    schema_name = argv[1] if len(argv) > 1 else "order_request"

    # -----------------------------------------------------------------------
    # Load input
    # -----------------------------------------------------------------------
    logger.info("Loading input: %s", input_file)
    raw_text = input_file.read_text(encoding="utf-8")
    logger.info("schema            : %s", schema_name)
    logger.info("raw length        : %d chars", len(raw_text))

    # -----------------------------------------------------------------------
    # Run pipeline
    # -----------------------------------------------------------------------
    service = ValidationService()
    result = service.validate(raw_text, schema_name)

    # -----------------------------------------------------------------------
    # Save output
    # -----------------------------------------------------------------------
    OUTPUT_FILE.parent.mkdir(parents=True, exist_ok=True)
    OUTPUT_FILE.write_text(result.to_json(ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Output saved to: %s", OUTPUT_FILE)

    # -----------------------------------------------------------------------
    # Print summary
    # -----------------------------------------------------------------------
    print("\n" + "=" * 70)
    print("VALIDATION RESULT — SUMMARY")
    print("=" * 70)
    print(f"schema      : {schema_name}")
    print(f"valid       : {result.valid}")
    print(f"stage       : {result.metadata.get('stage')}")
    print(f"json repair : {result.metadata.get('jsonRepair') or result.metadata.get('repairAttempts')}")

    if result.errors:
        print(f"\nErrors ({len(result.errors)}):")
        for e in result.errors:
            print(f"  [{e.constraint:16s}] {e.field}: {e.message}")

    if result.recovery_attempts:
        print(f"\nRecovery attempts ({len(result.recovery_attempts)}):")
        for a in result.recovery_attempts:
            status = "ok" if a.success else "failed"
            print(f"  {a.strategy:22s} {status:6s} {a.description}")

    if result.warnings:
        print(f"\nWarnings ({len(result.warnings)}):")
        for w in result.warnings:
            print(f"  {w.field}: {w.message}")

    print("=" * 70)
    print(f"Output: {OUTPUT_FILE}")
    print("=" * 70 + "\n")

    return 0 if service.http_status(result) == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
