"""Services Layer — imperative shell around the engine: persistence and restore.

Invariants:
    - Services never re-implement core rules; they call PlatformEngine and store results
    - All DB access goes through AsyncSession supplied by the caller

Design Decisions:
    - Functional core, imperative shell (ADR: impureim sandwich)
"""
