"""Core Layer — node registry, roles, vesting and balances. No IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - Logical time and caller identity are always arguments, never ambient

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
