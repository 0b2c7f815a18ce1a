"""Database Package — SQLAlchemy declarative base and column types.

Invariants:
    - All ORM models inherit from db.base.Base

Design Decisions:
    - asyncpg driver for PostgreSQL (ADR: native async, no thread pool overhead)
"""
