"""Request Dependencies — engine handle, caller identity and logical time for routes.

Invariants:
    - Exactly one PlatformEngine per process, installed at startup (or by tests)
    - Caller identity is taken from X-Caller-Identity, already verified upstream
    - Logical time is the wall clock read ONCE per request; the core never reads it

Design Decisions:
    - _engine as module-level handle: deliberate exception to no-global-state rule,
      same as the single-process deployment model (one uvicorn worker owns the state)
    - Missing identity header → UnauthorizedError (403), not a validation error
"""

import time

from fastapi import Header

from twist_registry.core.domain_types import Identity
from twist_registry.core.errors import UnauthorizedError
from twist_registry.core.platform_engine import PlatformEngine

_engine: PlatformEngine | None = None


def install_engine(engine: PlatformEngine | None) -> None:
    global _engine
    _engine = engine


def get_engine() -> PlatformEngine:
    """FastAPI dependency for the process-wide engine."""
    if _engine is None:
        raise RuntimeError("Engine not initialized")
    return _engine


def get_caller(
    x_caller_identity: str | None = Header(None, alias="X-Caller-Identity"),
) -> Identity:
    """FastAPI dependency for the authenticated caller."""
    if not x_caller_identity or not x_caller_identity.strip():
        raise UnauthorizedError("Missing caller identity")
    return Identity(x_caller_identity.strip())


def get_logical_time() -> int:
    return int(time.time())
