import pytest

from app.domain.appointments.service import AppointmentService
from app.domain.requests.service import NO_SHOW_COMMENT
from app.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from app.models import DocumentRequest, RequestStatus

from .conftest import make_request

SLOT = "9:00 AM - 9:30 AM"
OTHER_SLOT = "2:00 PM - 2:30 PM"


@pytest.fixture
def service(db, catalog):
    return AppointmentService(db, catalog)


@pytest.fixture
def petition(db, student):
    return make_request(db, student, "Petition for Subject")


def test_slots_for_empty_day(service, appointment_day, catalog):
    slots = service.list_slots(appointment_day)

    assert slots["allSlots"] == list(catalog.time_slots)
    assert slots["availableSlots"] == list(catalog.time_slots)
    assert slots["bookedSlots"] == []


def test_book_moves_request_to_appointment_scheduled(service, db, petition, admin, appointment_day):
    appointment = service.book(petition.id, appointment_day, SLOT, notes=" Bring ID ", actor=admin)

    db.refresh(petition)
    assert appointment.status == "Scheduled"
    assert appointment.purpose == "Petition for Subject"
    assert appointment.notes == "Bring ID"
    assert appointment.student_id == petition.student_id
    assert petition.status == RequestStatus.APPOINTMENT_SCHEDULED.value
    assert petition.appointment_id == appointment.id

    slots = service.list_slots(appointment_day)
    assert SLOT in slots["bookedSlots"]
    assert SLOT not in slots["availableSlots"]
    assert len(slots["availableSlots"]) == 15


def test_booked_slot_is_kept_for_the_appointment_being_edited(service, petition, appointment_day):
    appointment = service.book(petition.id, appointment_day, SLOT)

    slots = service.list_slots(appointment_day, exclude_appointment_id=appointment.id)

    assert SLOT in slots["availableSlots"]


def test_second_booking_for_same_slot_conflicts(service, db, student, petition, appointment_day):
    other = make_request(db, student, "Document Submission")
    service.book(petition.id, appointment_day, SLOT)

    with pytest.raises(ConflictError):
        service.book(other.id, appointment_day, SLOT)

    db.refresh(other)
    assert other.status == "Submitted"
    assert other.appointment_id is None


def test_one_appointment_per_request(service, petition, appointment_day):
    service.book(petition.id, appointment_day, SLOT)

    with pytest.raises(ConflictError):
        service.book(petition.id, appointment_day, OTHER_SLOT)


def test_book_rejects_unknown_slot(service, petition, appointment_day):
    with pytest.raises(ValidationError):
        service.book(petition.id, appointment_day, "12:00 PM - 12:30 PM")


def test_book_rejects_digital_request_types(service, db, student, appointment_day):
    tor = make_request(db, student, "TOR")
    with pytest.raises(InvalidStateError):
        service.book(tor.id, appointment_day, SLOT)


def test_book_rejects_requests_past_review(service, db, student, appointment_day):
    approved = make_request(db, student, "Document Submission", RequestStatus.APPROVED)
    with pytest.raises(InvalidStateError):
        service.book(approved.id, appointment_day, SLOT)


def test_book_unknown_request(service, appointment_day):
    with pytest.raises(NotFoundError):
        service.book(999, appointment_day, SLOT)


def test_cancelled_appointment_frees_its_slot(service, db, student, petition, admin, appointment_day):
    appointment = service.book(petition.id, appointment_day, SLOT)
    service.set_status(appointment.id, "Cancelled", actor=admin)

    assert SLOT in service.list_available_slots(appointment_day)

    other = make_request(db, student, "Irregular Enrollment")
    service.book(other.id, appointment_day, SLOT)


def test_reschedule_changes_only_date_and_slot(service, db, petition, appointment_day):
    appointment = service.book(petition.id, appointment_day, SLOT, notes="Bring ID")

    moved = service.reschedule(appointment.id, appointment_day, OTHER_SLOT)

    assert moved.time_slot == OTHER_SLOT
    assert moved.status == "Scheduled"
    assert moved.notes == "Bring ID"
    assert SLOT in service.list_available_slots(appointment_day)
    db.refresh(petition)
    assert petition.status == "Appointment Scheduled"


def test_reschedule_to_own_slot_is_a_no_op(service, petition, appointment_day):
    appointment = service.book(petition.id, appointment_day, SLOT)
    assert service.reschedule(appointment.id, appointment_day, SLOT).time_slot == SLOT


def test_reschedule_into_held_slot_conflicts(service, db, student, petition, appointment_day):
    other = make_request(db, student, "Document Submission")
    first = service.book(petition.id, appointment_day, SLOT)
    service.book(other.id, appointment_day, OTHER_SLOT)

    with pytest.raises(ConflictError):
        service.reschedule(first.id, appointment_day, OTHER_SLOT)

    assert service.get_appointment(first.id).time_slot == SLOT


def test_completed_cascades_to_request(service, db, petition, admin, appointment_day):
    appointment = service.book(petition.id, appointment_day, SLOT)

    service.set_status(appointment.id, "Completed", actor=admin)

    db.refresh(petition)
    assert petition.status == "Completed"


def test_no_show_sends_request_back_to_review(service, db, petition, admin, appointment_day):
    appointment = service.book(petition.id, appointment_day, SLOT)

    service.set_status(appointment.id, "No-Show", actor=admin)

    db.refresh(petition)
    assert petition.status == "Under Review"
    assert petition.admin_comment == NO_SHOW_COMMENT


def test_cancel_does_not_touch_request(service, db, petition, admin, appointment_day):
    appointment = service.book(petition.id, appointment_day, SLOT)

    service.set_status(appointment.id, "Cancelled", actor=admin)

    db.refresh(petition)
    assert petition.status == "Appointment Scheduled"


def test_outcome_not_cascaded_when_request_already_moved(
    service, db, petition, admin, appointment_day
):
    appointment = service.book(petition.id, appointment_day, SLOT)
    petition.status = RequestStatus.REJECTED.value
    petition.admin_comment = "Incomplete requirements"
    db.commit()

    service.set_status(appointment.id, "Completed", actor=admin)

    assert db.get(DocumentRequest, petition.id).status == "Rejected"


def test_set_status_rejects_scheduled_and_unknown(service, petition, appointment_day):
    appointment = service.book(petition.id, appointment_day, SLOT)

    with pytest.raises(ValidationError):
        service.set_status(appointment.id, "Scheduled")
    with pytest.raises(ValidationError):
        service.set_status(appointment.id, "Postponed")


def test_update_reschedules_and_records_outcome(service, db, petition, admin, appointment_day):
    appointment = service.book(petition.id, appointment_day, SLOT)

    updated = service.update(
        appointment.id, slot=OTHER_SLOT, status="Completed", notes="Signed", actor=admin
    )

    assert updated.time_slot == OTHER_SLOT
    assert updated.status == "Completed"
    assert updated.notes == "Signed"
    db.refresh(petition)
    assert petition.status == "Completed"


def test_list_appointments_sorted_by_slot(service, db, student, petition, appointment_day):
    other = make_request(db, student, "Document Submission")
    service.book(petition.id, appointment_day, "1:00 PM - 1:30 PM")
    service.book(other.id, appointment_day, "10:00 AM - 10:30 AM")

    listed = service.list_appointments(day=appointment_day)

    assert [a.time_slot for a in listed] == ["10:00 AM - 10:30 AM", "1:00 PM - 1:30 PM"]
    assert service.list_appointments(status="Completed") == []


def test_cancelled_appointment_cannot_reclaim_a_rebooked_slot(
    service, db, student, petition, admin, appointment_day
):
    appointment = service.book(petition.id, appointment_day, SLOT)
    service.set_status(appointment.id, "Cancelled", actor=admin)
    other = make_request(db, student, "Document Submission")
    service.book(other.id, appointment_day, SLOT)

    with pytest.raises(ConflictError):
        service.set_status(appointment.id, "Completed", actor=admin)

    assert service.get_appointment(appointment.id).status == "Cancelled"
    db.refresh(petition)
    assert petition.status == "Appointment Scheduled"


def test_cancelled_appointment_can_be_completed_while_slot_is_free(
    service, db, petition, admin, appointment_day
):
    appointment = service.book(petition.id, appointment_day, SLOT)
    service.set_status(appointment.id, "Cancelled", actor=admin)

    assert service.set_status(appointment.id, "Completed", actor=admin).status == "Completed"
    db.refresh(petition)
    assert petition.status == "Completed"


def test_update_with_invalid_status_keeps_original_slot(service, petition, appointment_day):
    appointment = service.book(petition.id, appointment_day, SLOT)

    with pytest.raises(ValidationError):
        service.update(appointment.id, slot=OTHER_SLOT, status="Scheduled")

    assert service.get_appointment(appointment.id).time_slot == SLOT
