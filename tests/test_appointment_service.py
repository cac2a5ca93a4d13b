from datetime import datetime

import pytest

from app.core.errors import (
    CancellationWindowExpiredError,
    InvalidSlotError,
    InvalidStateError,
    NotFoundError,
    SlotConflictError,
    UnauthorizedError,
)
from app.models.appointment import AppointmentStatus

TOMORROW_9 = datetime(2024, 1, 2, 9, 0)


@pytest.mark.asyncio
async def test_booking_scenario_end_to_end(manager, clock):
    with pytest.raises(InvalidSlotError, match="Same-day"):
        await manager.book(1, "2024-01-01T11:00:00Z")

    appointment = await manager.book(1, "2024-01-02T09:00:00Z")
    assert appointment.id is not None
    assert appointment.appointment_date == TOMORROW_9
    assert appointment.status == AppointmentStatus.confirmed

    with pytest.raises(SlotConflictError):
        await manager.book(2, "2024-01-02T09:00:00Z")

    clock.advance(hours=1)
    cancelled = await manager.cancel(1, appointment.id)
    assert cancelled.status == AppointmentStatus.cancelled
    assert cancelled.updated_at == clock()

    clock.advance(hours=2)
    with pytest.raises(CancellationWindowExpiredError):
        await manager.cancel(1, appointment.id)


@pytest.mark.asyncio
async def test_past_is_reported_before_same_day(manager):
    with pytest.raises(InvalidSlotError, match="past"):
        await manager.book(1, datetime(2024, 1, 1, 9, 0))


@pytest.mark.asyncio
async def test_past_is_reported_before_business_hours(manager):
    with pytest.raises(InvalidSlotError, match="past"):
        await manager.book(1, datetime(2023, 12, 31, 20, 0))


@pytest.mark.parametrize(
    "slot",
    [datetime(2024, 1, 2, 17, 0), datetime(2024, 1, 2, 8, 30), datetime(2024, 1, 2, 9, 15)],
)
@pytest.mark.asyncio
async def test_outside_business_rules_is_invalid(manager, slot):
    with pytest.raises(InvalidSlotError, match="Invalid time slot"):
        await manager.book(1, slot)


@pytest.mark.asyncio
async def test_booking_normalizes_seconds_and_keeps_chat_flag(manager, clock):
    appointment = await manager.book(1, "2024-01-02T14:30:42Z", via_chat=True)

    assert appointment.appointment_date == datetime(2024, 1, 2, 14, 30)
    assert appointment.booked_via_chat is True
    assert appointment.created_at == clock()


@pytest.mark.asyncio
async def test_slot_can_be_rebooked_after_cancellation(manager):
    first = await manager.book(1, TOMORROW_9)
    await manager.cancel(1, first.id)

    second = await manager.book(2, TOMORROW_9)

    assert second.id != first.id
    assert second.user_id == 2


@pytest.mark.asyncio
async def test_racing_bookings_both_past_the_pre_check_yield_one_winner(manager, store, monkeypatch):
    # Both callers see the slot free before either inserts.
    async def stale_check(slot):
        return False

    monkeypatch.setattr(store, "is_slot_occupied", stale_check)

    winner = await manager.book(1, TOMORROW_9)
    with pytest.raises(SlotConflictError):
        await manager.book(2, TOMORROW_9)

    monkeypatch.undo()
    assert await store.is_slot_occupied(TOMORROW_9)
    assert [a.id for a in await manager.list_for_user(1)] == [winner.id]
    assert await manager.list_for_user(2) == []


@pytest.mark.asyncio
async def test_out_of_range_slot_is_invalid_not_a_crash(manager):
    with pytest.raises(InvalidSlotError):
        await manager.book(1, "9999-12-31T23:30:00-01:00")


@pytest.mark.asyncio
async def test_cancel_exactly_at_window_edge_succeeds(manager, clock):
    appointment = await manager.book(1, TOMORROW_9)
    clock.advance(hours=2)

    cancelled = await manager.cancel(1, appointment.id)

    assert cancelled.status == AppointmentStatus.cancelled


@pytest.mark.asyncio
async def test_cancel_unknown_appointment(manager):
    with pytest.raises(NotFoundError):
        await manager.cancel(1, 12345)


@pytest.mark.asyncio
async def test_cancel_by_other_user_is_unauthorized_regardless_of_window(manager, clock):
    appointment = await manager.book(1, TOMORROW_9)

    with pytest.raises(UnauthorizedError):
        await manager.cancel(2, appointment.id)

    clock.advance(hours=5)
    with pytest.raises(UnauthorizedError):
        await manager.cancel(2, appointment.id)


@pytest.mark.asyncio
async def test_cancel_twice_within_window_is_invalid_state(manager, clock):
    appointment = await manager.book(1, TOMORROW_9)
    cancelled = await manager.cancel(1, appointment.id)
    clock.advance(minutes=10)

    with pytest.raises(InvalidStateError):
        await manager.cancel(1, appointment.id)

    listed = await manager.list_for_user(1)
    assert listed[0].updated_at == cancelled.updated_at


@pytest.mark.asyncio
async def test_list_for_user_orders_by_slot_and_keeps_cancelled(manager):
    late = await manager.book(1, datetime(2024, 1, 3, 15, 0))
    early = await manager.book(1, datetime(2024, 1, 2, 10, 0))
    await manager.book(2, datetime(2024, 1, 2, 11, 0))
    await manager.cancel(1, early.id)

    listed = await manager.list_for_user(1)

    assert [a.id for a in listed] == [early.id, late.id]
    assert [a.status for a in listed] == ["cancelled", "confirmed"]


@pytest.mark.asyncio
async def test_check_availability_without_slot_suggests_next(manager):
    await manager.book(1, TOMORROW_9)

    result = await manager.check_availability()

    assert result.type == "next_available"
    assert result.suggested_slot == datetime(2024, 1, 2, 9, 30)


@pytest.mark.asyncio
async def test_check_availability_for_free_slot(manager):
    result = await manager.check_availability("2024-01-04T13:00:00Z")

    assert result.type == "requested"
    assert result.available is True
    assert result.requested_slot == datetime(2024, 1, 4, 13, 0)


@pytest.mark.asyncio
async def test_check_availability_for_taken_slot_falls_back_to_search(manager):
    await manager.book(1, datetime(2024, 1, 4, 13, 0))

    result = await manager.check_availability(datetime(2024, 1, 4, 13, 0))

    assert result.type == "next_available"
    assert result.available is False
    assert result.suggested_slot == await manager.find_next_available_slot()
    assert result.suggested_slot == TOMORROW_9


@pytest.mark.asyncio
async def test_check_availability_validates_like_booking(manager):
    with pytest.raises(InvalidSlotError, match="Same-day"):
        await manager.check_availability(datetime(2024, 1, 1, 15, 0))
