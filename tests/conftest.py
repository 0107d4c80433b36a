"""Shared fixtures: in-memory SQLite store, API client, application factory, tokens."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.database import create_tables, get_db
from app.models.application import VehiclePassApplication
from app.utils.security import create_access_token


def make_application(**overrides) -> VehiclePassApplication:
    """Unsaved application with valid applicant/vehicle fields."""
    fields = dict(
        family_name="Dela Cruz",
        given_name="Juan",
        home_address="12 Mabini St",
        school_affiliation="student",
        id_number="2021-00001",
        employment_status="n/a",
        vehicle_user_type="owner",
        vehicle_type="car",
        plate_number="ABC123",
        or_number="OR001",
        cr_number="CR001",
        linked_user_id="user-1",
        status="pending",
        rfid_is_active=False,
        created_at=datetime.utcnow(),
    )
    fields.update(overrides)
    return VehiclePassApplication(**fields)


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    create_tables(bind=engine)
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
def seed(db):
    def _seed(**overrides) -> VehiclePassApplication:
        application = make_application(**overrides)
        db.add(application)
        db.commit()
        db.refresh(application)
        return application
    return _seed


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {create_access_token('admin-1', 'admin')}"}


@pytest.fixture
def user_headers():
    return {"Authorization": f"Bearer {create_access_token('user-1', 'user')}"}
