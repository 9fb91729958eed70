# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- In-memory SQLite
- Fast password hashing
- No throttling
- Quiet loggers (WARNING and up)
"""

from __future__ import annotations

from decimal import Decimal

from .base import *  # noqa: F403
from .base import LOGGING, REST_FRAMEWORK

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

BALANCE_DRIFT_TOLERANCE = Decimal("0.00")
LEDGER_TXN_PREFIX = "TXN"
LEDGER_TXN_PAD = 6

for _logger in LOGGING["loggers"].values():
    _logger["level"] = "WARNING"
