from enum import Enum
from typing import Dict, FrozenSet

from .security import UserRole

class Capability(str, Enum):
    VIEW_SLOTS = "view_slots"
    BOOK_APPOINTMENT = "book_appointment"
    VIEW_APPOINTMENTS = "view_appointments"
    RESCHEDULE_APPOINTMENT = "reschedule_appointment"
    UPDATE_APPOINTMENT_STATUS = "update_appointment_status"
    CANCEL_APPOINTMENT = "cancel_appointment"

_EVERYONE = frozenset({
    Capability.VIEW_SLOTS,
    Capability.BOOK_APPOINTMENT,
    Capability.VIEW_APPOINTMENTS,
    Capability.CANCEL_APPOINTMENT,
})

_SCHEDULING_STAFF = _EVERYONE | {
    Capability.RESCHEDULE_APPOINTMENT,
    Capability.UPDATE_APPOINTMENT_STATUS,
}

ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.ADMIN: _SCHEDULING_STAFF,
    UserRole.RECEPTIONIST: _SCHEDULING_STAFF,
    UserRole.DOCTOR: _SCHEDULING_STAFF,
    UserRole.NURSE: _EVERYONE,
    # Patients are further limited to their own records by the service layer
    UserRole.PATIENT: _EVERYONE,
}

def has_capability(role: UserRole, capability: Capability) -> bool:
    """Check whether a role grants a capability."""
    return capability in ROLE_CAPABILITIES.get(role, frozenset())

def roles_with(capability: Capability) -> list:
    """Roles granting a capability, for error messages."""
    return [role.value for role, caps in ROLE_CAPABILITIES.items() if capability in caps]
