"""Infrastructure Layer — database sessions and logging setup.

Invariants:
    - Infrastructure never imports core/ domain logic (errors excepted)
    - All driver errors mapped to DatabaseError before leaving this layer
"""
