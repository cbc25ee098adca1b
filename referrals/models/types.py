"""
Standard type definitions for database models.

Provides consistent types for monetary and timestamp fields across all models.
"""

from datetime import UTC, datetime

from sqlalchemy import DECIMAL, DateTime
from sqlalchemy.types import TypeDecorator

# Standard money type for reward amounts
# Precision: 18 digits total, 2 after decimal point
MoneyType = DECIMAL(18, 2)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp.

    PostgreSQL returns aware values already; backends without timezone
    support (SQLite) hand back naive values, which are tagged as UTC here so
    expiry comparisons against utc_now() never mix naive and aware datetimes.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is not None and value.tzinfo is None:
            raise ValueError("UTCDateTime requires timezone-aware datetimes")
        if value is not None:
            return value.astimezone(UTC)
        return value

    def process_result_value(self, value: datetime | None, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
