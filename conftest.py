"""Test environment bootstrap.

Settings are read once and cached, so the environment must be in place before
any ``libs`` or ``services`` module is imported by the test modules.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
# Limiter counters are process-global and would leak between tests
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")
