"""Infrastructure Layer — concrete implementations of the core boundary protocols.

Invariants:
    - SQL implementations share the caller's AsyncSession (one transaction per transition)
    - In-memory implementations honor the same contracts as the SQL ones

Design Decisions:
    - Two backends behind one Protocol set: embeddable library + FastAPI service
"""
