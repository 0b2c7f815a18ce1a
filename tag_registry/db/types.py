"""Column Types — unsigned 64-bit integers stored in signed BIGINT columns.

Invariants:
    - Python values are 0..2**64-1; stored values are -2**63..2**63-1
    - The mapping is order-preserving, so ORDER BY and range filters still work

Design Decisions:
    - Offset by 2**63 instead of NUMERIC(20): exact on SQLite and PostgreSQL alike
"""

from sqlalchemy import BigInteger
from sqlalchemy.types import TypeDecorator

_OFFSET = 2**63


class UnsignedBigInteger(TypeDecorator):
    """u64 <-> i64 by shifting the range down by 2**63."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(value) - _OFFSET

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value) + _OFFSET
