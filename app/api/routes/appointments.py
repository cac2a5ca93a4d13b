from fastapi import APIRouter, Depends, status

from app.api.deps import get_appointment_manager, get_current_user_id
from app.api.schemas.appointment import BookAppointmentRequest
from app.models.appointment import Appointment, AppointmentPublic
from app.services.appointment_service import AppointmentManager

router = APIRouter(prefix="/appointments", tags=["appointments"])


def _to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic(
        id=a.id,
        user_id=a.user_id,
        appointment_date=a.appointment_date,
        booked_via_chat=a.booked_via_chat,
        status=a.status,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    body: BookAppointmentRequest,
    manager: AppointmentManager = Depends(get_appointment_manager),
    user_id: int = Depends(get_current_user_id),
) -> AppointmentPublic:
    appointment = await manager.book(user_id, body.appointment_date, via_chat=body.booked_via_chat)
    return _to_public(appointment)


@router.get("", response_model=list[AppointmentPublic])
async def list_my_appointments(
    manager: AppointmentManager = Depends(get_appointment_manager),
    user_id: int = Depends(get_current_user_id),
) -> list[AppointmentPublic]:
    appointments = await manager.list_for_user(user_id)
    return [_to_public(a) for a in appointments]


@router.put("/{appointment_id}/cancel", response_model=AppointmentPublic)
async def cancel_my_appointment(
    appointment_id: int,
    manager: AppointmentManager = Depends(get_appointment_manager),
    user_id: int = Depends(get_current_user_id),
) -> AppointmentPublic:
    appointment = await manager.cancel(user_id, appointment_id)
    return _to_public(appointment)
