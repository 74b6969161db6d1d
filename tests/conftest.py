"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real database or deployment admin
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("ADMIN_IDENTITY", "0x00000000000000000000000000000000000000a1")
os.environ.setdefault("LOG_FORMAT", "text")
