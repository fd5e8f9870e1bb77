import os
import logging

# =====================================
# Global configuration for Clutchline
# =====================================

# TEST_MODE:
# When True, testing features are enabled.
# Example uses:
#   - Skip the world auto-seed on startup
TEST_MODE = os.getenv("CLUTCHLINE_TEST_MODE", "0") == "1"

# DB_PATH:
# SQLite file backing the save game. Overridable so tests and
# multiple saves can live side by side.
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DB_PATH = os.getenv("CLUTCHLINE_DB_PATH", os.path.join(BASE_DIR, "clutchline.db"))

# SQL_ECHO:
# Echo every statement issued by the engines.
SQL_ECHO = os.getenv("CLUTCHLINE_SQL_ECHO", "0") == "1"

# LOG_LEVEL:
# Root level for the clutchline_backend loggers.
LOG_LEVEL = os.getenv("CLUTCHLINE_LOG_LEVEL", "INFO").upper()

# START_DATE:
# In-game date a freshly seeded profile starts on (ISO format).
START_DATE = os.getenv("CLUTCHLINE_START_DATE", "2025-01-01")


def configure_logging():
    """Attach a console handler to the package logger once."""
    logger = logging.getLogger("clutchline_backend")
    if logger.handlers:
        return logger
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(LOG_LEVEL)
    return logger
