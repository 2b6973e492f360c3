"""Logging configuration for the Neural Reinforcement package."""

import logging
import os
import sys
from datetime import UTC, datetime
from pathlib import Path

# Determine if we're running in a test environment
# Check for pytest in multiple ways since env vars may not be set at import time
_is_testing = (
    "PYTEST_CURRENT_TEST" in os.environ
    or os.environ.get("TESTING") == "1"
    or "pytest" in sys.modules
    or (sys.argv and sys.argv[0].endswith("pytest"))
)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

if not _is_testing:
    log_dir = Path.cwd() / "logs"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)

        log_file = log_dir / f"reinforcement_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S')}.log"

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

        logging.basicConfig(
            format=LOG_FORMAT,
            handlers=[file_handler],
        )
    except OSError as exc:
        logging.basicConfig(
            format=LOG_FORMAT,
            level=logging.WARNING,
        )
        logging.getLogger(__name__).warning(
            "Failed to initialize file logging in %s: %s. Falling back to stderr logging.",
            log_dir,
            exc,
        )
else:
    # In test mode, configure basic logging without file handler
    logging.basicConfig(
        format=LOG_FORMAT,
        level=logging.WARNING,
    )

logger = logging.getLogger(__name__)
