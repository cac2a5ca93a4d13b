import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import SlotConflictError, StorageError
from app.models.appointment import ACTIVE_SLOT_INDEX, Appointment, AppointmentStatus

logger = logging.getLogger(__name__)


def _is_active_slot_violation(e: IntegrityError) -> bool:
    """PostgreSQL names the violated index; SQLite names the indexed column."""
    message = str(e.orig)
    return ACTIVE_SLOT_INDEX in message or "appointments.appointment_date" in message


class AppointmentStore:
    """Persistence boundary for appointments.

    Every public method runs in its own session: committed on success,
    rolled back on any error. Database and connection failures surface as
    StorageError so callers can tell them apart from business rejections.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_maker() as session:
            try:
                yield session
                await session.commit()
            except IntegrityError:
                # Constraint violations other than the slot guard are bugs, not outages.
                await session.rollback()
                raise
            except (SQLAlchemyError, OSError) as e:
                await session.rollback()
                logger.warning("Appointment store failure: %s", e)
                raise StorageError("Appointment storage is temporarily unavailable") from e
            except Exception:
                await session.rollback()
                raise

    async def is_slot_occupied(self, slot: datetime) -> bool:
        async with self.session() as session:
            result = await session.execute(
                select(Appointment.id)
                .where(
                    Appointment.appointment_date == slot,
                    Appointment.status != AppointmentStatus.cancelled.value,
                )
                .limit(1)
            )
            return result.first() is not None

    async def occupied_slots_between(self, start_inclusive: datetime, end_exclusive: datetime) -> set[datetime]:
        async with self.session() as session:
            result = await session.execute(
                select(Appointment.appointment_date).where(
                    Appointment.appointment_date >= start_inclusive,
                    Appointment.appointment_date < end_exclusive,
                    Appointment.status != AppointmentStatus.cancelled.value,
                )
            )
            return {row[0] for row in result.all()}

    async def insert(self, appointment: Appointment) -> Appointment:
        async with self.session() as session:
            session.add(appointment)
            try:
                await session.flush()
            except IntegrityError as e:
                if not _is_active_slot_violation(e):
                    raise
                logger.info("Slot %s lost to a concurrent booking", appointment.appointment_date)
                raise SlotConflictError("This slot has just been booked by someone else") from e
            await session.refresh(appointment)
            return appointment

    async def get(self, appointment_id: int) -> Appointment | None:
        async with self.session() as session:
            return await session.get(Appointment, appointment_id)

    async def save(self, appointment: Appointment) -> Appointment:
        async with self.session() as session:
            appointment = await session.merge(appointment)
            await session.flush()
            await session.refresh(appointment)
            return appointment

    async def list_for_user(self, user_id: int) -> list[Appointment]:
        async with self.session() as session:
            result = await session.execute(
                select(Appointment)
                .where(Appointment.user_id == user_id)
                .order_by(Appointment.appointment_date, Appointment.id)
            )
            return list(result.scalars().all())
