"""
Configuration for the course registration portal.
Values come from environment variables with sensible local defaults.
"""

import os
from pathlib import Path

# ===========================
# PATH CONFIGURATION
# ===========================
BASE_DIR = Path(__file__).resolve().parent.parent
DB_PATH = Path(os.getenv("PORTAL_DB_PATH", BASE_DIR / "course_portal.db"))

# ===========================
# REGISTRATION RULES
# ===========================
UNIT_CAP = int(os.getenv("PORTAL_UNIT_CAP", "24"))  # per (level, semester)

# "ignore": unknown codes are kept but not counted
# "reject": any unknown code fails the whole registration
UNKNOWN_COURSE_POLICY = os.getenv("PORTAL_UNKNOWN_COURSE_POLICY", "ignore")

LEVELS = ("100", "200", "300", "400")
SEMESTERS = ("first", "second")

# ===========================
# SESSIONS
# ===========================
SECRET_KEY = os.getenv("PORTAL_SECRET_KEY", "dev-secret-key")
SESSION_COOKIE = "session_token"
SESSION_TTL_HOURS = int(os.getenv("PORTAL_SESSION_TTL_HOURS", "24"))

# ===========================
# LOGGING
# ===========================
LOG_LEVEL = os.getenv("PORTAL_LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
