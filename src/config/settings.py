"""
Environment settings loaded from .env file.
"""
import os
from dotenv import load_dotenv

load_dotenv()


# --- Logging ---
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
MAX_RAW_LOG_CHARS: int = int(os.getenv("MAX_RAW_LOG_CHARS", "500"))

# --- Input limits ---
MAX_DOCUMENT_DEPTH: int = int(os.getenv("MAX_DOCUMENT_DEPTH", "64"))

# --- Order schema ---
ORDER_ID_PREFIX: str = os.getenv("ORDER_ID_PREFIX", "ORD")
AMOUNT_WARNING_THRESHOLD: float = float(os.getenv("AMOUNT_WARNING_THRESHOLD", "10000"))
QUANTITY_WARNING_THRESHOLD: int = int(os.getenv("QUANTITY_WARNING_THRESHOLD", "100"))
