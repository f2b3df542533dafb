from datetime import datetime, timedelta

from app.models import Announcement


def create(client, headers, **overrides):
    payload = {"title": "Enrollment", "message": "Enrollment opens Monday", "type": "info"}
    payload.update(overrides)
    return client.post("/admin/announcements", json=payload, headers=headers)


def test_admin_creates_announcement(client, admin, admin_headers):
    response = create(client, admin_headers, type="urgent")

    assert response.status_code == 201
    announcement = response.json()["announcement"]
    assert announcement["type"] == "urgent"
    assert announcement["isActive"] is True
    assert announcement["createdBy"] == admin.id


def test_announcement_validation(client, admin_headers):
    assert create(client, admin_headers, title="x" * 101).status_code == 422
    assert create(client, admin_headers, type="party").status_code == 422
    assert create(client, admin_headers, message="").status_code == 422


def test_students_see_active_unexpired_only(client, db, admin, admin_headers, student_headers):
    visible = create(client, admin_headers, title="Visible").json()["announcement"]
    hidden = create(client, admin_headers, title="Hidden").json()["announcement"]
    client.put(
        f"/admin/announcements/{hidden['id']}", json={"isActive": False}, headers=admin_headers
    )
    db.add(
        Announcement(
            title="Expired",
            message="Old news",
            type="info",
            created_by=admin.id,
            expires_at=datetime.utcnow() - timedelta(days=1),
        )
    )
    db.commit()

    response = client.get("/requests/announcements", headers=student_headers)

    assert response.status_code == 200
    assert [a["id"] for a in response.json()["announcements"]] == [visible["id"]]

    everything = client.get("/admin/announcements", headers=admin_headers).json()
    assert len(everything["announcements"]) == 3


def test_update_clears_expiry(client, admin_headers):
    expires = (datetime.utcnow() + timedelta(days=3)).isoformat()
    announcement = create(client, admin_headers, expiresAt=expires).json()["announcement"]
    assert announcement["expiresAt"] is not None

    response = client.put(
        f"/admin/announcements/{announcement['id']}",
        json={"expiresAt": None},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["announcement"]["expiresAt"] is None


def test_delete_announcement(client, admin_headers):
    announcement = create(client, admin_headers).json()["announcement"]

    response = client.delete(f"/admin/announcements/{announcement['id']}", headers=admin_headers)
    assert response.status_code == 200

    response = client.delete(f"/admin/announcements/{announcement['id']}", headers=admin_headers)
    assert response.status_code == 404
