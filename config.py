# config.py

import os
import logging
from typing import Optional
from dotenv import load_dotenv

# Load environment variables (Gemini key, model overrides) from .env if present
load_dotenv()

API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")

SEARCH_MODEL = os.getenv("GEMINI_SEARCH_MODEL", "gemini-3-flash-preview")
ANALYSIS_MODEL = os.getenv("GEMINI_ANALYSIS_MODEL", "gemini-3-pro-preview")

DISCOVERY_RESULT_COUNT = 5
PHASE_INTERVAL_SECONDS = 6

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def _read_timeout(raw: Optional[str]) -> Optional[float]:
    """Unset or non-positive means the deep analysis call runs unbounded."""
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring invalid ANALYSIS_TIMEOUT_SECONDS=%r", raw)
        return None
    return value if value > 0 else None


ANALYSIS_TIMEOUT_SECONDS = _read_timeout(os.getenv("ANALYSIS_TIMEOUT_SECONDS"))


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
