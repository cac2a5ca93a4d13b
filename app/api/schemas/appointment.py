from datetime import datetime
from pydantic import BaseModel


class SlotInfo(BaseModel):
    start_utc: datetime
    end_utc: datetime
    available: bool


class AvailableSlotsResponse(BaseModel):
    date: str  # YYYY-MM-DD
    slots: list[SlotInfo]


class NextSlotResponse(BaseModel):
    suggested_slot: datetime


class BookAppointmentRequest(BaseModel):
    appointment_date: datetime
    booked_via_chat: bool = False
