from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from fastapi import HTTPException, status
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional
import logging

from ..core.config import settings
from ..core.security import AuthorizationError, Principal, UserRole
from ..models.appointment import Appointment, AppointmentStatus, SLOT_HOLDING_STATUSES
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.user import User
from ..schemas.appointment import (
    AppointmentCreate, AppointmentReschedule, AppointmentFilters,
    AppointmentResponse, AppointmentDetail, AppointmentResult,
)
from .appointment_cache import AppointmentViewCache
from .availability import generate_time_slots, free_slots
from .status_lifecycle import InvalidTransition, check_transition

logger = logging.getLogger(__name__)

SLOT_TAKEN = "This time slot is already booked. Please choose another time."
SLOT_TAKEN_ON_RESCHEDULE = "This time slot is already booked"

class AppointmentService:
    def __init__(self, db: Session, cache: AppointmentViewCache):
        self.db = db
        self.cache = cache

    # Availability

    def get_available_slots(self, doctor_id: str, on_date: date) -> List[str]:
        """Bookable ``HH:MM`` slots for a doctor on a date.

        Never raises: a missing doctor, a missing working window or a failed
        lookup all produce an empty list so the booking screen keeps working.
        """
        try:
            doctor = self.db.query(Doctor).filter(Doctor.id == doctor_id).first()
            if not doctor or not doctor.has_working_window:
                return []

            candidates = generate_time_slots(
                doctor.available_from,
                doctor.available_to,
                settings.SLOT_INTERVAL_MINUTES,
            )
            booked = self.db.query(Appointment.appointment_time).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_date == on_date,
                Appointment.status.in_(SLOT_HOLDING_STATUSES)
            ).all()

            return free_slots(candidates, (row.appointment_time for row in booked))
        except (SQLAlchemyError, ValueError):
            logger.exception(f"Error fetching time slots for doctor {doctor_id} on {on_date}")
            return []

    # Booking

    def create_appointment(self, data: AppointmentCreate, principal: Principal) -> AppointmentResult:
        """Validate and book a new appointment."""
        try:
            patient = self.db.query(Patient).filter(Patient.id == data.patient_id).first()
            if not patient:
                return AppointmentResult.fail("Patient not found")

            doctor = self.db.query(Doctor).filter(
                Doctor.id == data.doctor_id,
                Doctor.is_active == True
            ).first()
            if not doctor:
                return AppointmentResult.fail("Doctor not found or inactive")

            # Patients may only book for themselves
            if principal.role == UserRole.PATIENT and patient.user_id != principal.user_id:
                return AppointmentResult.fail("You can only book appointments for yourself")

            if self._find_conflict(doctor.id, data.appointment_date, data.appointment_time):
                logger.info(
                    f"Rejected booking for doctor {doctor.id} at "
                    f"{data.appointment_date} {data.appointment_time}: slot taken"
                )
                return AppointmentResult.fail(SLOT_TAKEN)

            appointment = Appointment(
                patient_id=patient.id,
                doctor_id=doctor.id,
                department_id=data.department_id or doctor.department_id,
                appointment_date=data.appointment_date,
                appointment_time=data.appointment_time,
                appointment_type=data.appointment_type,
                reason_for_visit=data.reason_for_visit,
                status=AppointmentStatus.SCHEDULED,
                duration=settings.DEFAULT_APPOINTMENT_DURATION,
            )

            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
            result = AppointmentResponse.model_validate(appointment)

        except IntegrityError:
            self.db.rollback()
            return self._lost_booking_race(data)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Error creating appointment")
            return AppointmentResult.fail("Failed to create appointment")

        logger.info(f"Appointment {result.id} booked for doctor {result.doctor_id}")
        self.cache.invalidate_all()
        return AppointmentResult.ok(result)

    def reschedule_appointment(
        self,
        appointment_id: str,
        data: AppointmentReschedule,
        principal: Principal
    ) -> AppointmentResult:
        """Move an appointment to a new date and time."""
        try:
            appointment = self._get(appointment_id)
            if not appointment:
                return AppointmentResult.fail("Appointment not found")

            # Its own current slot never counts as a conflict
            if self._find_conflict(
                appointment.doctor_id,
                data.appointment_date,
                data.appointment_time,
                exclude_id=appointment.id
            ):
                return AppointmentResult.fail(SLOT_TAKEN_ON_RESCHEDULE)

            appointment.appointment_date = data.appointment_date
            appointment.appointment_time = data.appointment_time
            appointment.updated_at = datetime.utcnow()

            self.db.commit()
            self.db.refresh(appointment)
            result = AppointmentResponse.model_validate(appointment)

        except IntegrityError:
            self.db.rollback()
            return AppointmentResult.fail(SLOT_TAKEN_ON_RESCHEDULE)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Error rescheduling appointment {appointment_id}")
            return AppointmentResult.fail("Failed to reschedule appointment")

        logger.info(
            f"Appointment {appointment_id} rescheduled to "
            f"{result.appointment_date} {result.appointment_time} by {principal.user_id}"
        )
        self.cache.invalidate_all()
        return AppointmentResult.ok(result)

    # Status lifecycle

    def update_appointment_status(
        self,
        appointment_id: str,
        new_status: AppointmentStatus,
        principal: Principal
    ) -> AppointmentResult:
        """Move an appointment along its status lifecycle."""
        try:
            appointment = self._get(appointment_id)
            if not appointment:
                return AppointmentResult.fail("Appointment not found")

            return self._transition(appointment, new_status, principal)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Error updating status of appointment {appointment_id}")
            return AppointmentResult.fail("Failed to update appointment status")

    def cancel_appointment(self, appointment_id: str, principal: Principal) -> AppointmentResult:
        """Cancel an appointment. Patients may only cancel their own."""
        try:
            appointment = self._get(appointment_id)
            if not appointment:
                return AppointmentResult.fail("Appointment not found")

            if principal.role == UserRole.PATIENT:
                patient = self._patient_for(principal)
                if not patient or appointment.patient_id != patient.id:
                    return AppointmentResult.fail("Unauthorized")

            return self._transition(appointment, AppointmentStatus.CANCELLED, principal)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Error cancelling appointment {appointment_id}")
            return AppointmentResult.fail("Failed to cancel appointment")

    def _transition(
        self,
        appointment: Appointment,
        new_status: AppointmentStatus,
        principal: Principal
    ) -> AppointmentResult:
        if appointment.status == new_status:
            return AppointmentResult.ok(AppointmentResponse.model_validate(appointment))

        try:
            check_transition(appointment.status, new_status)
        except InvalidTransition as e:
            return AppointmentResult.fail(str(e))

        previous = appointment.status
        appointment.status = new_status
        appointment.updated_at = datetime.utcnow()

        # No allowed move re-enters a slot-holding status, so the slot index
        # cannot reject this commit
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(
            f"Appointment {appointment.id} moved from {previous.value} to "
            f"{new_status.value} by {principal.user_id}"
        )
        self.cache.invalidate_all()
        return AppointmentResult.ok(AppointmentResponse.model_validate(appointment))

    # Queries

    def list_appointments(
        self,
        principal: Principal,
        filters: Optional[AppointmentFilters] = None
    ) -> List[AppointmentDetail]:
        """Appointments visible to the caller, newest first."""
        filters = filters or AppointmentFilters()
        cache_key = filters.cache_key()
        # Pinned before querying so a mutation committed meanwhile is not
        # stored under the newer generation
        generation = self.cache.current_generation(principal.role)

        cached = self.cache.get(principal.role, generation, principal.user_id, cache_key)
        if cached is not None:
            return [AppointmentDetail(**row) for row in cached]

        try:
            query = self.db.query(Appointment).options(
                joinedload(Appointment.patient),
                joinedload(Appointment.doctor),
                joinedload(Appointment.department),
            )

            # Patients and doctors only see their own appointments
            if principal.role == UserRole.PATIENT:
                patient = self._patient_for(principal)
                if not patient:
                    return []
                query = query.filter(Appointment.patient_id == patient.id)
            elif principal.role == UserRole.DOCTOR:
                doctor = self._doctor_for(principal)
                if not doctor:
                    return []
                query = query.filter(Appointment.doctor_id == doctor.id)

            if filters.patient_id:
                query = query.filter(Appointment.patient_id == filters.patient_id)
            if filters.doctor_id:
                query = query.filter(Appointment.doctor_id == filters.doctor_id)
            if filters.department_id:
                query = query.filter(Appointment.department_id == filters.department_id)
            if filters.status:
                query = query.filter(Appointment.status == filters.status)
            if filters.appointment_date:
                query = query.filter(Appointment.appointment_date == filters.appointment_date)
            if filters.start_date and filters.end_date:
                query = query.filter(
                    Appointment.appointment_date >= filters.start_date,
                    Appointment.appointment_date <= filters.end_date
                )

            appointments = query.order_by(
                Appointment.appointment_date.desc(),
                Appointment.appointment_time.desc()
            ).all()

            rows = self._with_names(appointments)
        except SQLAlchemyError:
            logger.exception("Error fetching appointments")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch appointments"
            )

        self.cache.set(
            principal.role,
            generation,
            principal.user_id,
            cache_key,
            [row.model_dump(mode="json") for row in rows]
        )
        return rows

    def get_appointment(self, appointment_id: str, principal: Principal) -> AppointmentDetail:
        """A single appointment, if the caller may see it."""
        try:
            appointment = self.db.query(Appointment).options(
                joinedload(Appointment.patient),
                joinedload(Appointment.doctor),
                joinedload(Appointment.department),
            ).filter(Appointment.id == appointment_id).first()

            if not appointment:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Appointment not found"
                )

            if principal.role == UserRole.PATIENT:
                patient = self._patient_for(principal)
                if not patient or appointment.patient_id != patient.id:
                    raise AuthorizationError("Unauthorized access")
            elif principal.role == UserRole.DOCTOR:
                doctor = self._doctor_for(principal)
                if not doctor or appointment.doctor_id != doctor.id:
                    raise AuthorizationError("Unauthorized access")

            return self._with_names([appointment])[0]
        except SQLAlchemyError:
            logger.exception(f"Error fetching appointment {appointment_id}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch appointment details"
            )

    # Helpers

    def _get(self, appointment_id: str) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()

    def _find_conflict(
        self,
        doctor_id: str,
        on_date: date,
        at_time: str,
        exclude_id: Optional[str] = None
    ) -> Optional[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == on_date,
            Appointment.appointment_time == at_time,
            Appointment.status.in_(SLOT_HOLDING_STATUSES)
        )
        if exclude_id:
            query = query.filter(Appointment.id != exclude_id)
        return query.first()

    def _lost_booking_race(self, data: AppointmentCreate) -> AppointmentResult:
        """Report a booking the slot index rejected at commit time."""
        try:
            taken = self._find_conflict(data.doctor_id, data.appointment_date, data.appointment_time)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Error creating appointment")
            return AppointmentResult.fail("Failed to create appointment")

        if taken:
            logger.info(f"Concurrent booking for doctor {data.doctor_id} rejected by slot index")
            return AppointmentResult.fail(SLOT_TAKEN)
        logger.error(f"Booking for doctor {data.doctor_id} violated a constraint other than the slot index")
        return AppointmentResult.fail("Failed to create appointment")

    def _patient_for(self, principal: Principal) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.user_id == principal.user_id).first()

    def _doctor_for(self, principal: Principal) -> Optional[Doctor]:
        return self.db.query(Doctor).filter(Doctor.user_id == principal.user_id).first()

    def _user_names(self, user_ids: Iterable[str]) -> Dict[str, str]:
        """Resolve display names for a set of users in one query."""
        ids = {user_id for user_id in user_ids if user_id}
        if not ids:
            return {}
        return {
            row.id: row.name
            for row in self.db.query(User.id, User.name).filter(User.id.in_(ids)).all()
        }

    def _with_names(self, appointments: List[Appointment]) -> List[AppointmentDetail]:
        user_ids = set()
        for appointment in appointments:
            if appointment.patient:
                user_ids.add(appointment.patient.user_id)
            if appointment.doctor:
                user_ids.add(appointment.doctor.user_id)
        names = self._user_names(user_ids)

        details = []
        for appointment in appointments:
            detail = AppointmentDetail.model_validate(appointment)
            if appointment.patient:
                detail.patient_name = names.get(appointment.patient.user_id)
            if appointment.doctor:
                detail.doctor_name = names.get(appointment.doctor.user_id)
            if appointment.department:
                detail.department_name = appointment.department.name
            details.append(detail)
        return details
