from sqlalchemy import (
    Column, Integer, String, ForeignKey, Date, DateTime, Text, Index, text,
    Enum as SQLEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
import uuid

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

class AppointmentType(str, enum.Enum):
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow_up"
    EMERGENCY = "emergency"
    SURGERY = "surgery"
    CHECKUP = "checkup"

# Statuses that hold a doctor's slot
SLOT_HOLDING_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)

def _enum_values(enum_cls):
    return [member.value for member in enum_cls]

_slot_holding_clause = text(
    "status IN ({})".format(", ".join(f"'{s.value}'" for s in SLOT_HOLDING_STATUSES))
)

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # References
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    department_id = Column(String(36), ForeignKey("departments.id"), nullable=True)

    # Appointment details
    appointment_date = Column(Date, nullable=False, index=True)
    appointment_time = Column(String(5), nullable=False)  # "HH:MM", 24-hour
    appointment_type = Column(
        SQLEnum(AppointmentType, name="appointment_type", values_callable=_enum_values),
        nullable=False,
        default=AppointmentType.CONSULTATION,
    )
    status = Column(
        SQLEnum(AppointmentStatus, name="appointment_status", values_callable=_enum_values),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )
    reason_for_visit = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    duration = Column(Integer, default=30)  # Minutes, informational

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")
    department = relationship("Department", back_populates="appointments")

    __table_args__ = (
        # One active booking per doctor, date and time
        Index(
            "uq_appointments_active_slot",
            "doctor_id", "appointment_date", "appointment_time",
            unique=True,
            postgresql_where=_slot_holding_clause,
            sqlite_where=_slot_holding_clause,
        ),
    )

    def __repr__(self):
        return f"<Appointment(id={self.id}, doctor_id={self.doctor_id}, date='{self.appointment_date}', time='{self.appointment_time}')>"
