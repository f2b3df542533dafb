"""
SELYO - Test Configuration and Fixtures
"""
import os
from datetime import date, timedelta

import pytest

# Set testing environment before the app reads its configuration
os.environ["DATABASE_URL"] = "sqlite:///./test_selyo.db"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["SECURITY_HEADERS_ENABLED"] = "true"

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.auth import create_access_token
from app.catalog import load_catalog
from app.database import Base, build_engine, get_db
from app.main import app
from app.models import DocumentRequest, RequestStatus, User, UserRole
from app.security_utils import hash_password_bcrypt
from app.services.document_storage import LocalDocumentStorage, get_document_storage

STUDENT_PASSWORD = "studentpass123"
ADMIN_PASSWORD = "adminpass123"


@pytest.fixture
def engine(tmp_path):
    """A fresh SQLite file database per test"""
    engine = build_engine(f"sqlite:///{tmp_path / 'selyo.db'}", log_slow_queries=False)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def catalog():
    return load_catalog()


@pytest.fixture
def storage(tmp_path):
    return LocalDocumentStorage(root=tmp_path / "uploads")


@pytest.fixture
def client(session_factory, storage):
    """Test client with database and storage overrides"""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_storage] = lambda: storage

    yield TestClient(app)

    app.dependency_overrides.clear()


def make_user(db, role=UserRole.STUDENT, student_id="2021-00001", email=None, password=STUDENT_PASSWORD):
    user = User(
        role=role.value,
        student_id=student_id,
        name=f"User {student_id}",
        email=email or f"{student_id.lower()}@student.selyo.edu",
        hashed_password=hash_password_bcrypt(password),
        program="BS Computer Science",
        year_level=3,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_request(db, student, request_type="TOR", status=RequestStatus.SUBMITTED):
    """Insert a request directly in the given status"""
    request = DocumentRequest(
        student_id=student.id,
        request_type=request_type,
        documents=[],
        status=status.value,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    return request


@pytest.fixture
def student(db):
    return make_user(db)


@pytest.fixture
def other_student(db):
    return make_user(db, student_id="2021-00002")


@pytest.fixture
def admin(db):
    return make_user(
        db,
        role=UserRole.ADMIN,
        student_id="ADMIN-001",
        email="admin@selyo.edu",
        password=ADMIN_PASSWORD,
    )


@pytest.fixture
def student_headers(student) -> dict:
    return {"Authorization": f"Bearer {create_access_token(student)}"}


@pytest.fixture
def admin_headers(admin) -> dict:
    return {"Authorization": f"Bearer {create_access_token(admin)}"}


@pytest.fixture
def appointment_day() -> date:
    return date.today() + timedelta(days=7)
