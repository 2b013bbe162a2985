from fastapi import APIRouter, Depends, Query
from datetime import date
from typing import List, Optional

from ...api.deps import require_capability, get_appointment_service
from ...core.permissions import Capability
from ...core.security import Principal
from ...models.appointment import AppointmentStatus
from ...services.appointment_service import AppointmentService
from ...schemas.appointment import (
    AppointmentCreate, AppointmentReschedule, AppointmentStatusUpdate,
    AppointmentFilters, AppointmentDetail, AppointmentResult,
)

router = APIRouter(tags=["Appointments"])

@router.get("/doctors/{doctor_id}/slots", response_model=List[str])
async def get_available_slots(
    doctor_id: str,
    on_date: date = Query(..., alias="date", description="Day to list slots for (YYYY-MM-DD)"),
    principal: Principal = Depends(require_capability(Capability.VIEW_SLOTS)),
    service: AppointmentService = Depends(get_appointment_service)
):
    """List a doctor's free slots on a day."""
    return service.get_available_slots(doctor_id, on_date)

@router.post("/appointments", response_model=AppointmentResult)
async def create_appointment(
    data: AppointmentCreate,
    principal: Principal = Depends(require_capability(Capability.BOOK_APPOINTMENT)),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Book a new appointment."""
    return service.create_appointment(data, principal)

@router.get("/appointments", response_model=List[AppointmentDetail])
async def list_appointments(
    patient_id: Optional[str] = None,
    doctor_id: Optional[str] = None,
    department_id: Optional[str] = None,
    status: Optional[AppointmentStatus] = None,
    appointment_date: Optional[date] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    principal: Principal = Depends(require_capability(Capability.VIEW_APPOINTMENTS)),
    service: AppointmentService = Depends(get_appointment_service)
):
    """List appointments visible to the caller."""
    filters = AppointmentFilters(
        patient_id=patient_id,
        doctor_id=doctor_id,
        department_id=department_id,
        status=status,
        appointment_date=appointment_date,
        start_date=start_date,
        end_date=end_date,
    )
    return service.list_appointments(principal, filters)

@router.get("/appointments/{appointment_id}", response_model=AppointmentDetail)
async def get_appointment(
    appointment_id: str,
    principal: Principal = Depends(require_capability(Capability.VIEW_APPOINTMENTS)),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Get a single appointment."""
    return service.get_appointment(appointment_id, principal)

@router.patch("/appointments/{appointment_id}/reschedule", response_model=AppointmentResult)
async def reschedule_appointment(
    appointment_id: str,
    data: AppointmentReschedule,
    principal: Principal = Depends(require_capability(Capability.RESCHEDULE_APPOINTMENT)),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Move an appointment to another date and time."""
    return service.reschedule_appointment(appointment_id, data, principal)

@router.patch("/appointments/{appointment_id}/status", response_model=AppointmentResult)
async def update_appointment_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    principal: Principal = Depends(require_capability(Capability.UPDATE_APPOINTMENT_STATUS)),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Change an appointment's status."""
    return service.update_appointment_status(appointment_id, data.status, principal)

@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentResult)
async def cancel_appointment(
    appointment_id: str,
    principal: Principal = Depends(require_capability(Capability.CANCEL_APPOINTMENT)),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Cancel an appointment."""
    return service.cancel_appointment(appointment_id, principal)
