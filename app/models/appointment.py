from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, Index, String, text
from sqlmodel import Field, SQLModel

from app.core.clock import utc_now

# Only one non-cancelled appointment per slot. This index is the real
# conflict guard; application-level checks are a fast path on top of it.
ACTIVE_SLOT_INDEX = "uq_appointments_active_slot"
_ACTIVE_ONLY = text("status <> 'cancelled'")


class AppointmentStatus(str, Enum):
    confirmed = "confirmed"
    cancelled = "cancelled"


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            ACTIVE_SLOT_INDEX,
            "appointment_date",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
        CheckConstraint("status IN ('confirmed', 'cancelled')", name="ck_appointments_status"),
    )

    # Timestamps are naive UTC (TIMESTAMP WITHOUT TIME ZONE); the column type
    # is declared so SQLModel does not demand tz-aware values.
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    appointment_date: datetime = Field(index=True, sa_type=DateTime())  # naive UTC slot start
    booked_via_chat: bool = False
    status: str = Field(default=AppointmentStatus.confirmed.value, sa_type=String(16))
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime())

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.cancelled.value


class AppointmentPublic(SQLModel):
    id: int
    user_id: int
    appointment_date: datetime
    booked_via_chat: bool
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime
