"""Services Layer — the imperative shell around the pure registry rules.

Invariants:
    - Services own ordering of IO calls (ledger, store, counter, events)
    - Every transition is all-or-nothing from the caller's viewpoint

Design Decisions:
    - Orchestration lives here, decisions live in core/ (ADR: impureim sandwich)
"""
