import logging
from datetime import datetime, timedelta
from typing import Literal

from pydantic import BaseModel

from app.core.clock import Clock, utc_now
from app.core.config import BusinessCalendar
from app.core.errors import (
    CancellationWindowExpiredError,
    InvalidSlotError,
    InvalidStateError,
    NotFoundError,
    SlotConflictError,
    UnauthorizedError,
)
from app.models.appointment import Appointment, AppointmentStatus
from app.services.appointment_store import AppointmentStore
from app.services.slot_calculus import is_past, is_same_calendar_day, is_valid_business_slot, parse_slot
from app.services.slot_service import SlotSearch

logger = logging.getLogger(__name__)


class AvailabilityResult(BaseModel):
    type: Literal["requested", "next_available"]
    available: bool | None = None
    requested_slot: datetime | None = None
    suggested_slot: datetime | None = None


class AppointmentManager:
    """Booking and cancellation lifecycle: confirmed -> cancelled.

    The only component that writes appointment rows. It holds no locks;
    concurrent bookings of one slot are settled by the store's unique index.
    """

    def __init__(
        self,
        store: AppointmentStore,
        search: SlotSearch,
        calendar: BusinessCalendar,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.search = search
        self.calendar = calendar
        self.clock = clock

    def _validated_slot(self, requested: datetime | str, now: datetime) -> datetime:
        # Order matters: a same-day slot that already passed reports "past".
        slot = parse_slot(requested)
        if is_past(slot, now):
            raise InvalidSlotError("Cannot book past time")
        if is_same_calendar_day(slot, now):
            raise InvalidSlotError("Same-day booking not allowed")
        if not is_valid_business_slot(slot, self.calendar):
            raise InvalidSlotError(
                f"Invalid time slot: appointments start every {self.calendar.slot_interval_minutes} minutes "
                f"between {self.calendar.open_hour:02d}:00 and {self.calendar.close_hour:02d}:00 UTC"
            )
        return slot

    async def book(self, user_id: int, requested_slot: datetime | str, via_chat: bool = False) -> Appointment:
        now = self.clock()
        slot = self._validated_slot(requested_slot, now)
        if await self.store.is_slot_occupied(slot):
            raise SlotConflictError("Slot not available")
        appointment = await self.store.insert(
            Appointment(
                user_id=user_id,
                appointment_date=slot,
                booked_via_chat=via_chat,
                status=AppointmentStatus.confirmed.value,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "Booked appointment %s for user %s at %s (via_chat=%s)",
            appointment.id, user_id, slot.isoformat(), via_chat,
        )
        return appointment

    async def check_availability(self, requested_slot: datetime | str | None = None) -> AvailabilityResult:
        if requested_slot is None:
            return AvailabilityResult(
                type="next_available",
                suggested_slot=await self.search.find_next_available_slot(),
            )
        slot = self._validated_slot(requested_slot, self.clock())
        if not await self.store.is_slot_occupied(slot):
            return AvailabilityResult(type="requested", available=True, requested_slot=slot)
        return AvailabilityResult(
            type="next_available",
            available=False,
            requested_slot=slot,
            suggested_slot=await self.search.find_next_available_slot(),
        )

    async def find_next_available_slot(self) -> datetime:
        return await self.search.find_next_available_slot()

    async def cancel(self, user_id: int, appointment_id: int) -> Appointment:
        appointment = await self.store.get(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        if appointment.user_id != user_id:
            raise UnauthorizedError("Unauthorized")
        now = self.clock()
        window = timedelta(hours=self.calendar.modification_window_hours)
        if now - appointment.created_at > window:
            raise CancellationWindowExpiredError("Cancellation window expired")
        if appointment.is_cancelled:
            raise InvalidStateError("Appointment is already cancelled")
        appointment.status = AppointmentStatus.cancelled.value
        appointment.updated_at = now
        appointment = await self.store.save(appointment)
        logger.info("Cancelled appointment %s for user %s", appointment_id, user_id)
        return appointment

    async def list_for_user(self, user_id: int) -> list[Appointment]:
        return await self.store.list_for_user(user_id)
