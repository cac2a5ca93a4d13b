from collections.abc import Callable
from datetime import UTC, datetime

# A clock returns the current instant as naive UTC, matching the
# TIMESTAMP WITHOUT TIME ZONE columns we store.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Naive UTC now."""
    return datetime.now(UTC).replace(tzinfo=None)
