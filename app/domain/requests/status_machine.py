"""
Request status machine

    Submitted → Under Review → Pending Dean Approval → Approved → Ready for Pickup → Released
    Approved → Released
    Submitted | Under Review | Pending Dean Approval → Appointment Scheduled  (booking only)
    Appointment Scheduled → Completed | Under Review
    any non-terminal → Rejected

Writing the current status again is allowed and changes nothing but the
comment. Admins can bypass the table with an explicit, audited override.
"""

from typing import Union

from ...exceptions import InvalidStateError, ValidationError
from ...models import RequestStatus

S = RequestStatus

TERMINAL_STATUSES = frozenset({S.REJECTED, S.RELEASED, S.COMPLETED})

# Entering one of these mints the pickup token (once)
TOKEN_STATUSES = frozenset({S.APPROVED, S.READY_FOR_PICKUP})

# A pickup token verifies only while the request is in one of these
PICKUP_VALID_STATUSES = frozenset({S.APPROVED, S.READY_FOR_PICKUP, S.RELEASED})
RELEASABLE_STATUSES = frozenset({S.APPROVED, S.READY_FOR_PICKUP})

# An appointment can be booked from these
BOOKABLE_STATUSES = frozenset({S.SUBMITTED, S.UNDER_REVIEW, S.PENDING_DEAN_APPROVAL})

TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    S.SUBMITTED: frozenset({S.UNDER_REVIEW, S.APPOINTMENT_SCHEDULED, S.REJECTED}),
    S.UNDER_REVIEW: frozenset({S.PENDING_DEAN_APPROVAL, S.APPOINTMENT_SCHEDULED, S.REJECTED}),
    S.PENDING_DEAN_APPROVAL: frozenset({S.APPROVED, S.APPOINTMENT_SCHEDULED, S.REJECTED}),
    # Approved requests may also be released straight from the counter
    S.APPROVED: frozenset({S.READY_FOR_PICKUP, S.RELEASED, S.REJECTED}),
    S.READY_FOR_PICKUP: frozenset({S.RELEASED, S.REJECTED}),
    S.APPOINTMENT_SCHEDULED: frozenset({S.COMPLETED, S.UNDER_REVIEW, S.REJECTED}),
    S.REJECTED: frozenset(),
    S.RELEASED: frozenset(),
    S.COMPLETED: frozenset(),
}


def parse_status(value: Union[str, RequestStatus]) -> RequestStatus:
    try:
        return RequestStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}") from None


def is_terminal(status: Union[str, RequestStatus]) -> bool:
    return parse_status(status) in TERMINAL_STATUSES


def can_transition(current: Union[str, RequestStatus], target: Union[str, RequestStatus]) -> bool:
    current, target = parse_status(current), parse_status(target)
    return current == target or target in TRANSITIONS[current]


def check_transition(
    current: Union[str, RequestStatus],
    target: Union[str, RequestStatus],
    via_booking: bool = False,
) -> None:
    """Raise InvalidStateError unless current → target is a documented edge.

    Appointment Scheduled is only entered by booking an appointment, which
    creates the appointment alongside the status change.
    """
    current, target = parse_status(current), parse_status(target)
    if target == S.APPOINTMENT_SCHEDULED and current != target and not via_booking:
        raise InvalidStateError(
            "Requests move to Appointment Scheduled by booking an appointment"
        )
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Cannot change status from {current.value} to {target.value}"
        )
