"""
Booking state machine.

Primary status: pending -> confirmed | rejected | cancelled, confirmed -> cancelled.
completed is reached only when the service status track completes.

Service status (active while confirmed) is monotonic:
not-started < on-the-way < in-progress < completed, with cancelled
reachable from any non-terminal service status.
"""

from ...exceptions import InvalidTransitionError

PENDING = "pending"
CONFIRMED = "confirmed"
REJECTED = "rejected"
CANCELLED = "cancelled"
COMPLETED = "completed"

PRIMARY_STATUSES = (PENDING, CONFIRMED, REJECTED, CANCELLED, COMPLETED)

BOOKING_TRANSITIONS = {
    PENDING: {CONFIRMED, REJECTED, CANCELLED},
    CONFIRMED: {CANCELLED},
    REJECTED: set(),
    CANCELLED: set(),
    COMPLETED: set(),
}

TERMINAL_STATUSES = {status for status, targets in BOOKING_TRANSITIONS.items() if not targets}

NOT_STARTED = "not-started"
ON_THE_WAY = "on-the-way"
IN_PROGRESS = "in-progress"
SERVICE_COMPLETED = "completed"
SERVICE_CANCELLED = "cancelled"

SERVICE_STATUSES = (NOT_STARTED, ON_THE_WAY, IN_PROGRESS, SERVICE_COMPLETED, SERVICE_CANCELLED)

SERVICE_STATUS_RANK = {
    NOT_STARTED: 0,
    ON_THE_WAY: 1,
    IN_PROGRESS: 2,
    SERVICE_COMPLETED: 3,
}

SERVICE_TERMINAL_STATUSES = {SERVICE_COMPLETED, SERVICE_CANCELLED}

TIME_SLOTS = (
    "09:00 AM",
    "10:00 AM",
    "11:00 AM",
    "12:00 PM",
    "01:00 PM",
    "02:00 PM",
    "03:00 PM",
    "04:00 PM",
    "05:00 PM",
    "06:00 PM",
)


def can_transition(current: str, target: str) -> bool:
    return target in BOOKING_TRANSITIONS.get(current, set())


def assert_booking_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)


def can_transition_service(current: str, target: str) -> bool:
    if current in SERVICE_TERMINAL_STATUSES:
        return False
    if target == SERVICE_CANCELLED:
        return True
    if target not in SERVICE_STATUS_RANK or current not in SERVICE_STATUS_RANK:
        return False
    return SERVICE_STATUS_RANK[target] > SERVICE_STATUS_RANK[current]


def assert_service_transition(current: str, target: str) -> None:
    if not can_transition_service(current, target):
        raise InvalidTransitionError(current, target, kind="service status")
