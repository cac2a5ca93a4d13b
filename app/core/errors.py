class SchedulingError(Exception):
    """Base class for every failure the scheduling engine reports.

    ``kind`` is a stable machine-readable tag; ``message`` is safe to show
    to the end user as is.
    """

    kind = "scheduling_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidSlotError(SchedulingError):
    """Past, same-day, malformed or outside business hours."""

    kind = "invalid_slot"


class SlotConflictError(SchedulingError):
    """Another active appointment already holds the slot."""

    kind = "slot_conflict"


class NoAvailabilityError(SchedulingError):
    """No free slot within the search horizon."""

    kind = "no_availability"


class NotFoundError(SchedulingError):
    kind = "not_found"


class UnauthorizedError(SchedulingError):
    kind = "unauthorized"


class CancellationWindowExpiredError(SchedulingError):
    kind = "cancellation_window_expired"


class InvalidStateError(SchedulingError):
    """The appointment's status does not allow the requested transition."""

    kind = "invalid_state"


class StorageError(SchedulingError):
    """Transient persistence failure. Safe for the caller to retry."""

    kind = "storage_unavailable"
