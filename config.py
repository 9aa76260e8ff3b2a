"""
config.py - Process configuration for the LearningWeb API.

Values are read from the environment once, at import time. A `.env` file in
the working directory is loaded first if present.

Required:
    MONGODB_URI - MongoDB connection string
    JWT_SECRET  - secret used to sign bearer tokens

Optional:
    MONGODB_DB                         (default: learningweb)
    JWT_EXPIRES_IN                     (default: 7d, e.g. 12h, 1.5h, 2 days, 1y)
    PORT                               (default: 3000)
    CORS_ORIGINS                       (default: *, comma separated)
    MONGO_SERVER_SELECTION_TIMEOUT_MS  (default: 5000)
"""

import os
import re
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def require_env(name: str) -> str:
    """Return the value of a required environment variable or fail startup."""
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable {name}")
    return value


_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*([a-z]*)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": "seconds",
    "ms": "milliseconds", "msec": "milliseconds", "msecs": "milliseconds",
    "millisecond": "milliseconds", "milliseconds": "milliseconds",
    "s": "seconds", "sec": "seconds", "secs": "seconds", "second": "seconds", "seconds": "seconds",
    "m": "minutes", "min": "minutes", "mins": "minutes", "minute": "minutes", "minutes": "minutes",
    "h": "hours", "hr": "hours", "hrs": "hours", "hour": "hours", "hours": "hours",
    "d": "days", "day": "days", "days": "days",
    "w": "weeks", "week": "weeks", "weeks": "weeks",
    "y": "years", "yr": "years", "yrs": "years", "year": "years", "years": "years",
}
_DAYS_PER_YEAR = 365.25


def parse_expires_in(value: str) -> timedelta:
    """Parse a token lifetime such as "7d", "1.5h", "2 days", "100ms" or "1y".

    A bare number is read as seconds. The lifetime must be positive.
    """
    match = _DURATION_RE.match(str(value))
    unit = _DURATION_UNITS.get(match.group(2).lower()) if match else None
    if unit is None:
        raise ValueError(f"Invalid token lifetime: {value!r}")
    amount = float(match.group(1))
    if unit == "years":
        unit, amount = "days", amount * _DAYS_PER_YEAR
    lifetime = timedelta(**{unit: amount})
    if lifetime <= timedelta(0):
        raise ValueError(f"Invalid token lifetime: {value!r}")
    return lifetime


def _lifetime_env(name: str, default: str) -> timedelta:
    value = os.getenv(name, default)
    try:
        return parse_expires_in(value)
    except ValueError:
        raise RuntimeError(f"Invalid {name}: {value!r}") from None


# ── Storage ──────────────────────────────────────────────────────────────────

MONGODB_URI = require_env("MONGODB_URI")
MONGODB_DB = os.getenv("MONGODB_DB", "learningweb")
MONGO_SERVER_SELECTION_TIMEOUT_MS = int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000"))

# ── Auth ─────────────────────────────────────────────────────────────────────

JWT_SECRET = require_env("JWT_SECRET")
JWT_EXPIRES_IN = _lifetime_env("JWT_EXPIRES_IN", "7d")
JWT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 10

# ── HTTP ─────────────────────────────────────────────────────────────────────

PORT = int(os.getenv("PORT", "3000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
