from datetime import date, datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.appointment import AppointmentStatus, AppointmentType

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"

T = TypeVar("T")

class AppointmentCreate(BaseModel):
    patient_id: str
    doctor_id: str
    department_id: Optional[str] = None
    appointment_date: date
    appointment_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN)
    appointment_type: AppointmentType = AppointmentType.CONSULTATION
    reason_for_visit: Optional[str] = None

    @field_validator("reason_for_visit")
    @classmethod
    def blank_reason_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

class AppointmentReschedule(BaseModel):
    appointment_date: date
    appointment_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN)

class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus

class AppointmentFilters(BaseModel):
    patient_id: Optional[str] = None
    doctor_id: Optional[str] = None
    department_id: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    appointment_date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def cache_key(self) -> str:
        return self.model_dump_json(exclude_none=True)

class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    doctor_id: str
    department_id: Optional[str] = None
    appointment_date: date
    appointment_time: str
    appointment_type: AppointmentType
    status: AppointmentStatus
    reason_for_visit: Optional[str] = None
    notes: Optional[str] = None
    duration: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class AppointmentDetail(AppointmentResponse):
    patient_name: Optional[str] = None
    doctor_name: Optional[str] = None
    department_name: Optional[str] = None

class ActionResult(BaseModel, Generic[T]):
    """Outcome of a mutating operation; recoverable failures are data, not errors."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "ActionResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ActionResult[T]":
        return cls(success=False, error=error)

AppointmentResult = ActionResult[AppointmentResponse]

