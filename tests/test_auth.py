from .conftest import ADMIN_PASSWORD, STUDENT_PASSWORD

REGISTRATION = {
    "studentId": "2022-12345",
    "name": "Juan Dela Cruz",
    "email": "Juan.DelaCruz@Student.Selyo.edu",
    "password": "secret123",
    "program": "BS Information Technology",
    "yearLevel": 2,
}


def test_register_student(client):
    response = client.post("/auth/register", json=REGISTRATION)

    assert response.status_code == 201
    data = response.json()
    assert data["token"]
    assert data["user"]["email"] == "juan.delacruz@student.selyo.edu"
    assert data["user"]["role"] == "student"


def test_register_duplicate(client):
    client.post("/auth/register", json=REGISTRATION)

    response = client.post("/auth/register", json=REGISTRATION)

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


def test_register_validates_input(client):
    response = client.post("/auth/register", json={**REGISTRATION, "yearLevel": 9})
    assert response.status_code == 422

    response = client.post("/auth/register", json={**REGISTRATION, "email": "not-an-email"})
    assert response.status_code == 422

    response = client.post("/auth/register", json={**REGISTRATION, "password": "123"})
    assert response.status_code == 422


def test_login_with_email_or_student_id(client, student):
    response = client.post(
        "/auth/login", json={"email": student.email.upper(), "password": STUDENT_PASSWORD}
    )
    assert response.status_code == 200
    assert response.json()["user"]["studentId"] == student.student_id

    response = client.post(
        "/auth/login", json={"studentId": student.student_id, "password": STUDENT_PASSWORD}
    )
    assert response.status_code == 200


def test_login_wrong_password(client, student):
    response = client.post("/auth/login", json={"email": student.email, "password": "wrong"})
    assert response.status_code == 401


def test_login_role_mismatch(client, admin):
    response = client.post(
        "/auth/login",
        json={"email": admin.email, "password": ADMIN_PASSWORD, "role": "student"},
    )
    assert response.status_code == 401


def test_me(client, student, student_headers):
    response = client.get("/auth/me", headers=student_headers)

    assert response.status_code == 200
    assert response.json()["id"] == student.id


def test_missing_or_bad_token(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_role_guards(client, student_headers, admin_headers):
    assert client.get("/admin/requests", headers=student_headers).status_code == 403
    assert client.get("/requests", headers=admin_headers).status_code == 403
