"""
Configuration module for loading environment variables.

This module loads environment variables from .env file and exposes
configuration values for the ticket import pipeline.
"""

import os
from dotenv import load_dotenv
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes", "on")


# Import policy
AUTO_ACCEPT_HIGH_CONFIDENCE = _env_bool("AUTO_ACCEPT_HIGH_CONFIDENCE")
RECLASSIFY_MIN_CONFIDENCE = float(os.getenv("RECLASSIFY_MIN_CONFIDENCE", "0.7"))

# OCR layout
ROW_Y_TOLERANCE = float(os.getenv("OCR_ROW_Y_TOLERANCE", "10"))

# Orchestration
MAX_EXTRACTION_WORKERS = max(1, int(os.getenv("MAX_EXTRACTION_WORKERS", "4")))

# Validate every parsed page's rows against its column map
STRICT_ROW_VALIDATION = _env_bool("STRICT_ROW_VALIDATION")
