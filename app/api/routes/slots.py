from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_appointment_manager, get_current_user_id, get_slot_search
from app.api.schemas.appointment import AvailableSlotsResponse, NextSlotResponse, SlotInfo
from app.services.appointment_service import AppointmentManager, AvailabilityResult
from app.services.slot_service import SlotSearch

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=AvailableSlotsResponse)
async def available_slots(
    date_param: date = Query(..., alias="date"),
    search: SlotSearch = Depends(get_slot_search),
) -> AvailableSlotsResponse:
    """Return all slots for the given date (UTC). Each slot has start_utc, end_utc, and available (bool)."""
    slots_with_availability = await search.day_availability(date_param)
    interval = timedelta(minutes=search.calendar.slot_interval_minutes)
    slot_infos = [
        SlotInfo(start_utc=s, end_utc=s + interval, available=avail)
        for s, avail in slots_with_availability
    ]
    return AvailableSlotsResponse(
        date=date_param.isoformat(),
        slots=slot_infos,
    )


@router.get("/next", response_model=NextSlotResponse)
async def next_available_slot(
    manager: AppointmentManager = Depends(get_appointment_manager),
    _user_id: int = Depends(get_current_user_id),
) -> NextSlotResponse:
    return NextSlotResponse(suggested_slot=await manager.find_next_available_slot())


@router.get("/check", response_model=AvailabilityResult, response_model_exclude_none=True)
async def check_availability(
    slot: datetime | None = Query(None),
    manager: AppointmentManager = Depends(get_appointment_manager),
    _user_id: int = Depends(get_current_user_id),
) -> AvailabilityResult:
    """Check a specific slot, or suggest the next free one when no slot is given."""
    return await manager.check_availability(slot)
