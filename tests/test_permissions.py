import pytest

from hospital_booking.core.permissions import Capability, has_capability, roles_with
from hospital_booking.core.security import UserRole

@pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.RECEPTIONIST, UserRole.DOCTOR])
def test_scheduling_staff_can_reschedule_and_change_status(role):
    assert has_capability(role, Capability.RESCHEDULE_APPOINTMENT)
    assert has_capability(role, Capability.UPDATE_APPOINTMENT_STATUS)

@pytest.mark.parametrize("role", [UserRole.PATIENT, UserRole.NURSE])
def test_other_roles_cannot_reschedule_or_change_status(role):
    assert not has_capability(role, Capability.RESCHEDULE_APPOINTMENT)
    assert not has_capability(role, Capability.UPDATE_APPOINTMENT_STATUS)

@pytest.mark.parametrize("role", list(UserRole))
def test_every_role_can_book_view_and_cancel(role):
    assert has_capability(role, Capability.BOOK_APPOINTMENT)
    assert has_capability(role, Capability.VIEW_SLOTS)
    assert has_capability(role, Capability.CANCEL_APPOINTMENT)

def test_roles_with_lists_granting_roles():
    assert sorted(roles_with(Capability.UPDATE_APPOINTMENT_STATUS)) == ["admin", "doctor", "receptionist"]
