from .conftest import make_request
from app.models import RequestStatus

SLOT = "9:00 AM - 9:30 AM"


def submit(client, headers, request_type="TOR", files=None, reason="For scholarship"):
    return client.post(
        "/requests",
        data={"requestType": request_type, "reason": reason},
        files=files,
        headers=headers,
    )


def test_request_types(client, student_headers):
    response = client.get("/requests/types", headers=student_headers)

    assert response.status_code == 200
    types = response.json()["types"]
    assert types["TOR"]["requiresAppointment"] is False
    assert types["Irregular Enrollment"]["requiredDocuments"]


def test_submit_with_documents(client, student_headers):
    files = [
        ("documents", ("grades.pdf", b"%PDF-1.4 grades", "application/pdf")),
        ("documents", ("id.jpg", b"\xff\xd8\xff id", "image/jpeg")),
    ]

    response = submit(client, student_headers, "Shifting", files=files)

    assert response.status_code == 201
    request = response.json()["request"]
    assert request["status"] == "Submitted"
    assert len(request["documents"]) == 2
    assert request["documentUrls"][0].startswith("/uploads/documents/")
    assert request["qrCode"] is None


def test_submit_unknown_type(client, student_headers):
    response = submit(client, student_headers, "Diploma")

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_submit_bad_file(client, student_headers):
    files = [("documents", ("script.sh", b"echo hi", "text/x-shellscript"))]

    response = submit(client, student_headers, "TOR", files=files)

    assert response.status_code == 400


def test_student_sees_only_own_requests(client, db, student_headers, other_student):
    submit(client, student_headers)
    foreign = make_request(db, other_student)

    response = client.get("/requests", headers=student_headers)
    assert response.status_code == 200
    assert len(response.json()["requests"]) == 1

    assert client.get(f"/requests/{foreign.id}", headers=student_headers).status_code == 404


def test_admin_status_flow(client, student_headers, admin_headers):
    request_id = submit(client, student_headers).json()["request"]["id"]

    for status in ("Under Review", "Pending Dean Approval", "Approved"):
        response = client.put(
            f"/admin/requests/{request_id}", json={"status": status}, headers=admin_headers
        )
        assert response.status_code == 200

    request = response.json()["request"]
    assert request["status"] == "Approved"
    assert request["qrCode"].startswith("SELYO-")

    history = client.get(f"/admin/requests/{request_id}/history", headers=admin_headers).json()
    assert [h["toStatus"] for h in history] == [
        "Submitted",
        "Under Review",
        "Pending Dean Approval",
        "Approved",
    ]


def test_admin_illegal_transition(client, student_headers, admin_headers):
    request_id = submit(client, student_headers).json()["request"]["id"]

    response = client.put(
        f"/admin/requests/{request_id}", json={"status": "Released"}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_state"


def test_admin_reject_requires_comment(client, student_headers, admin_headers):
    request_id = submit(client, student_headers).json()["request"]["id"]

    response = client.put(
        f"/admin/requests/{request_id}", json={"status": "Rejected"}, headers=admin_headers
    )
    assert response.status_code == 400

    response = client.put(
        f"/admin/requests/{request_id}",
        json={"status": "Rejected", "adminComment": "Missing clearance"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["request"]["adminComment"] == "Missing clearance"


def test_admin_filters_and_stats(client, db, student, admin_headers):
    make_request(db, student, "TOR")
    make_request(db, student, "Shifting", RequestStatus.READY_FOR_PICKUP)

    response = client.get("/admin/requests?status=Ready for Pickup", headers=admin_headers)
    assert [r["requestType"] for r in response.json()["requests"]] == ["Shifting"]

    response = client.get("/admin/requests?requestType=TOR", headers=admin_headers)
    assert len(response.json()["requests"]) == 1

    response = client.get("/admin/requests?status=Bogus", headers=admin_headers)
    assert response.status_code == 400

    stats = client.get("/admin/stats", headers=admin_headers).json()
    assert stats["total"] == 2
    assert stats["readyForPickup"] == 1


def test_admin_delete_request(client, student_headers, admin_headers):
    files = [("documents", ("grades.pdf", b"%PDF-1.4", "application/pdf"))]
    request_id = submit(client, student_headers, files=files).json()["request"]["id"]

    response = client.delete(f"/admin/requests/{request_id}", headers=admin_headers)

    assert response.status_code == 200
    assert client.get(f"/admin/requests/{request_id}", headers=admin_headers).status_code == 404


def test_appointment_booking_flow(client, db, student, admin_headers, appointment_day):
    request = make_request(db, student, "Irregular Enrollment")
    day = appointment_day.isoformat()

    response = client.post(
        "/admin/appointments",
        json={"requestId": request.id, "date": day, "timeSlot": SLOT, "notes": "Bring originals"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    appointment = response.json()["appointment"]
    assert appointment["student"]["studentId"] == student.student_id

    slots = client.get(f"/admin/slots?date={day}", headers=admin_headers).json()
    assert SLOT in slots["bookedSlots"]

    slots = client.get(
        f"/admin/slots?date={day}&appointmentId={appointment['id']}", headers=admin_headers
    ).json()
    assert SLOT in slots["availableSlots"]

    detail = client.get(f"/admin/requests/{request.id}", headers=admin_headers).json()["request"]
    assert detail["status"] == "Appointment Scheduled"
    assert detail["appointment"]["timeSlot"] == SLOT

    response = client.put(
        f"/admin/appointments/{appointment['id']}",
        json={"status": "Completed"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    detail = client.get(f"/admin/requests/{request.id}", headers=admin_headers).json()["request"]
    assert detail["status"] == "Completed"

    listed = client.get(f"/admin/appointments?date={day}", headers=admin_headers).json()
    assert len(listed["appointments"]) == 1


def test_double_booking_returns_conflict(client, db, student, admin_headers, appointment_day):
    first = make_request(db, student, "Irregular Enrollment")
    second = make_request(db, student, "Document Submission")
    payload = {"date": appointment_day.isoformat(), "timeSlot": SLOT}

    assert client.post(
        "/admin/appointments", json={**payload, "requestId": first.id}, headers=admin_headers
    ).status_code == 201

    response = client.post(
        "/admin/appointments", json={**payload, "requestId": second.id}, headers=admin_headers
    )
    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


def test_appointment_not_found(client, admin_headers):
    assert client.get("/admin/appointments/404", headers=admin_headers).status_code == 404


def test_pickup_endpoints(client, db, student, student_headers, admin_headers):
    request = make_request(db, student, "TOR", RequestStatus.PENDING_DEAN_APPROVAL)
    approved = client.put(
        f"/admin/requests/{request.id}", json={"status": "Approved"}, headers=admin_headers
    ).json()["request"]
    token = approved["qrCode"]

    qr = client.get(f"/requests/{request.id}/qr", headers=student_headers)
    assert qr.status_code == 200
    assert qr.headers["content-type"] == "image/png"

    response = client.get(f"/admin/verify/{token}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["valid"] is True
    assert response.json()["student"]["studentId"] == student.student_id

    response = client.get("/admin/verify/SELYO-DEADBEEF-000000", headers=admin_headers)
    assert response.status_code == 404
    assert response.json() == {
        "valid": False,
        "reason": "not_found",
        "message": "Invalid QR code",
    }

    response = client.put(f"/admin/release/{request.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["request"]["status"] == "Released"


def test_verify_not_ready(client, db, student, admin_headers):
    request = make_request(db, student, "TOR", RequestStatus.REJECTED)
    request.pickup_token = "SELYO-ABCDEF12-345678"
    db.commit()

    response = client.get(f"/admin/verify/{request.pickup_token}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["reason"] == "not_ready"
    assert response.json()["status"] == "Rejected"


def test_release_not_approved(client, db, student, admin_headers):
    request = make_request(db, student, "TOR", RequestStatus.UNDER_REVIEW)

    response = client.put(f"/admin/release/{request.id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Only approved requests can be marked as released"


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
