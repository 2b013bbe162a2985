import os
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set testing environment before the application is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

from hospital_booking.main import app  # noqa: E402
from hospital_booking.core.database import get_db, Base, redis_client  # noqa: E402
from hospital_booking.core.security import UserRole, create_user_token  # noqa: E402
from hospital_booking.models import Department, Doctor, Patient, User  # noqa: E402

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

BOOKING_DATE = date(2030, 1, 7)

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    redis_client.data.clear()
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def hospital(db_session):
    """Seed users, a department, doctors and patients."""
    users = [
        User(id="admin-1", name="Ada Admin", email="admin@hospital.test", role=UserRole.ADMIN),
        User(id="recep-1", name="Rita Desk", email="desk@hospital.test", role=UserRole.RECEPTIONIST),
        User(id="nurse-1", name="Nina Ward", email="nurse@hospital.test", role=UserRole.NURSE),
        User(id="doc-user-1", name="Dr. Grey", email="grey@hospital.test", role=UserRole.DOCTOR),
        User(id="doc-user-2", name="Dr. Shepherd", email="shepherd@hospital.test", role=UserRole.DOCTOR),
        User(id="doc-user-3", name="Dr. Retired", email="retired@hospital.test", role=UserRole.DOCTOR),
        User(id="doc-user-4", name="Dr. Oncall", email="oncall@hospital.test", role=UserRole.DOCTOR),
        User(id="pat-user-1", name="Pat One", email="pat1@hospital.test", role=UserRole.PATIENT),
        User(id="pat-user-2", name="Pat Two", email="pat2@hospital.test", role=UserRole.PATIENT),
        User(id="banned-1", name="Ben Banned", email="banned@hospital.test",
             role=UserRole.ADMIN, is_active=False),
    ]
    db_session.add_all(users)

    cardiology = Department(id="dept-cardio", name="Cardiology", floor=2)
    db_session.add(cardiology)

    db_session.add_all([
        Doctor(id="doctor-1", user_id="doc-user-1", specialization="Cardiology",
               qualification="MD", department_id="dept-cardio",
               available_from="09:00", available_to="17:00"),
        Doctor(id="doctor-2", user_id="doc-user-2", specialization="Neurology",
               qualification="MD", available_from="10:00", available_to="12:00"),
        Doctor(id="doctor-3", user_id="doc-user-3", specialization="Surgery",
               qualification="MD", available_from="09:00", available_to="17:00",
               is_active=False),
        Doctor(id="doctor-4", user_id="doc-user-4", specialization="Emergency",
               qualification="MD"),
    ])
    db_session.add_all([
        Patient(id="patient-1", user_id="pat-user-1"),
        Patient(id="patient-2", user_id="pat-user-2"),
    ])
    db_session.commit()

    return {
        "department_id": "dept-cardio",
        "doctor_id": "doctor-1",
        "other_doctor_id": "doctor-2",
        "inactive_doctor_id": "doctor-3",
        "windowless_doctor_id": "doctor-4",
        "patient_id": "patient-1",
        "other_patient_id": "patient-2",
    }

def auth_headers(user_id: str, role: UserRole) -> dict:
    token = create_user_token(user_id, role)
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def admin_headers():
    return auth_headers("admin-1", UserRole.ADMIN)

@pytest.fixture
def receptionist_headers():
    return auth_headers("recep-1", UserRole.RECEPTIONIST)

@pytest.fixture
def nurse_headers():
    return auth_headers("nurse-1", UserRole.NURSE)

@pytest.fixture
def doctor_headers():
    return auth_headers("doc-user-1", UserRole.DOCTOR)

@pytest.fixture
def other_doctor_headers():
    return auth_headers("doc-user-2", UserRole.DOCTOR)

@pytest.fixture
def patient_headers():
    return auth_headers("pat-user-1", UserRole.PATIENT)

@pytest.fixture
def other_patient_headers():
    return auth_headers("pat-user-2", UserRole.PATIENT)

@pytest.fixture
def book(client, hospital, admin_headers):
    """Book an appointment through the API and return the response body."""
    def _book(appointment_time="10:00", headers=None, **overrides):
        payload = {
            "patient_id": hospital["patient_id"],
            "doctor_id": hospital["doctor_id"],
            "appointment_date": BOOKING_DATE.isoformat(),
            "appointment_time": appointment_time,
            "appointment_type": "consultation",
        }
        payload.update(overrides)
        response = client.post(
            "/api/v1/appointments",
            json=payload,
            headers=headers or admin_headers
        )
        assert response.status_code == 200
        return response.json()

    return _book
