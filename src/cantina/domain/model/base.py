"""Identity and clock helpers shared by the domain entities."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

INITIAL_VERSION = 1


def new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def year_month_of(moment: datetime) -> str:
    """Partition label (``YYYY-MM``) of a timestamp, taken in UTC."""

    return moment.astimezone(UTC).strftime("%Y-%m")
