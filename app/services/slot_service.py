import logging
from datetime import date, datetime, timedelta

from app.core.clock import Clock, utc_now
from app.core.config import BusinessCalendar
from app.core.errors import NoAvailabilityError
from app.services.appointment_store import AppointmentStore
from app.services.slot_calculus import business_slots_for_day, search_origin

logger = logging.getLogger(__name__)


class SlotSearch:
    """Forward scan for the earliest free slot, bounded by the search horizon.

    Candidates are enumerated by ascending day, then hour, then minute, and
    the first free one wins. Occupancy is read once per day instead of once
    per slot; the enumeration order alone decides the result.
    """

    def __init__(self, store: AppointmentStore, calendar: BusinessCalendar, clock: Clock = utc_now) -> None:
        self.store = store
        self.calendar = calendar
        self.clock = clock

    async def find_next_available_slot(self) -> datetime:
        origin = search_origin(self.clock(), self.calendar)
        for day_offset in range(self.calendar.search_horizon_days):
            day = origin.date() + timedelta(days=day_offset)
            slots = business_slots_for_day(day, self.calendar)
            booked = await self._occupied_on(slots)
            for slot in slots:
                if slot not in booked:
                    return slot
        logger.warning(
            "No free slot within %d days from %s", self.calendar.search_horizon_days, origin.isoformat()
        )
        raise NoAvailabilityError(
            f"No available slots found within {self.calendar.search_horizon_days} days"
        )

    async def day_availability(self, d: date) -> list[tuple[datetime, bool]]:
        """Returns list of (slot_start, available) for every business slot of the date."""
        slots = business_slots_for_day(d, self.calendar)
        booked = await self._occupied_on(slots)
        return [(s, s not in booked) for s in slots]

    async def _occupied_on(self, slots: list[datetime]) -> set[datetime]:
        if not slots:
            return set()
        end_exclusive = slots[-1] + timedelta(minutes=self.calendar.slot_interval_minutes)
        return await self.store.occupied_slots_between(slots[0], end_exclusive)
