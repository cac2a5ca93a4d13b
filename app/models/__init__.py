from app.models.appointment import Appointment, AppointmentPublic, AppointmentStatus

__all__ = [
    "Appointment",
    "AppointmentPublic",
    "AppointmentStatus",
]
