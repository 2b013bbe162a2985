from .user import User
from .department import Department
from .doctor import Doctor
from .patient import Patient
from .appointment import Appointment, AppointmentStatus, AppointmentType

__all__ = [
    "User",
    "Department",
    "Doctor",
    "Patient",
    "Appointment",
    "AppointmentStatus",
    "AppointmentType",
]
