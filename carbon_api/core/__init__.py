"""Functional core — errors, domain types, validation and estimation.

Invariants:
    - No FastAPI imports: everything here is testable without an app
"""
