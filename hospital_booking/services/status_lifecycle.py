from typing import Dict, FrozenSet

from ..models.appointment import AppointmentStatus

S = AppointmentStatus

# current status -> statuses it may move to
ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    S.SCHEDULED: frozenset({S.CONFIRMED, S.IN_PROGRESS, S.CANCELLED, S.NO_SHOW}),
    S.CONFIRMED: frozenset({S.IN_PROGRESS, S.CANCELLED, S.NO_SHOW}),
    S.IN_PROGRESS: frozenset({S.COMPLETED, S.CANCELLED, S.NO_SHOW}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
}

def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Whether an appointment may move from ``current`` to ``target``.

    Re-applying the current status is always allowed and is a no-op.
    """
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]

class InvalidTransition(ValueError):
    def __init__(self, current: AppointmentStatus, target: AppointmentStatus):
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot change appointment status from '{current.value}' to '{target.value}'"
        )

def check_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    """Raise InvalidTransition if the move is not in the transition table."""
    if not can_transition(current, target):
        raise InvalidTransition(current, target)
