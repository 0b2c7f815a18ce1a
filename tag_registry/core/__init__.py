"""Core Layer — pure registry rules, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic; mutation is limited to owned dataclasses

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
