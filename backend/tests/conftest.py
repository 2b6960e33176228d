"""Shared fixtures: in-memory database, API client and authenticated callers."""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENTRA_TENANT_ID"] = "11111111-2222-3333-4444-555555555555"
os.environ["ENTRA_API_AUDIENCE"] = "api://fleet-api"

import itertools
from datetime import date, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from fleet_api.core.database import Base, SessionLocal, engine
from fleet_api.core.security import AuthenticatedUser, get_current_user
from fleet_api.main import app
from fleet_api.models import (
    Maintenance, MaintenanceCategory, MaintenanceRequirement, User, UserRole,
    Vehicle, VehicleBrand, VehicleModel,
)

_cuits = itertools.count(20_000_000_001)
_plates = itertools.count(100)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory: a persisted user, optionally holding an active role."""

    def _make(role=None, active=True, **fields):
        cuit = next(_cuits)
        user = User(
            first_name=fields.pop("first_name", "Ana"),
            last_name=fields.pop("last_name", f"Gomez{cuit}"),
            cuit=cuit,
            email=fields.pop("email", f"user{cuit}@example.com"),
            active=active,
            entra_id=fields.pop("entra_id", f"oid-{cuit}"),
        )
        db.add(user)
        db.commit()
        if role:
            db.add(UserRole(user_id=user.id, role=role, start_time=datetime.now() - timedelta(days=1)))
            db.commit()
        return user

    return _make


@pytest.fixture
def login():
    """Make the API see ``user`` as the bearer of the request."""

    def _login(user):
        identity = AuthenticatedUser(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            entra_id=user.entra_id,
        )
        app.dependency_overrides[get_current_user] = lambda: identity
        return user

    return _login


@pytest.fixture
def admin(make_user, login):
    return login(make_user(role="admin"))


@pytest.fixture
def model(db):
    brand = VehicleBrand(name="Toyota")
    db.add(brand)
    db.commit()
    vehicle_model = VehicleModel(brand_id=brand.id, name="Hilux", vehicle_type="Pickup")
    db.add(vehicle_model)
    db.commit()
    return vehicle_model


@pytest.fixture
def make_vehicle(db, model):
    """Factory: a persisted vehicle of the default model."""

    def _make(plate=None, registration_date=None, vehicle_model=None):
        vehicle = Vehicle(
            license_plate=plate or f"AB{next(_plates)}CD",
            model_id=(vehicle_model or model).id,
            year=2022,
            registration_date=registration_date,
        )
        db.add(vehicle)
        db.commit()
        return vehicle

    return _make


@pytest.fixture
def vehicle(make_vehicle):
    return make_vehicle("AA123BB")


@pytest.fixture
def oil_change(db):
    category = MaintenanceCategory(name="Motor")
    db.add(category)
    db.commit()
    definition = Maintenance(
        category_id=category.id, name="Cambio de aceite", kilometers_frequency=10000, days_frequency=180
    )
    db.add(definition)
    db.commit()
    return definition


@pytest.fixture
def make_requirement(db, model, oil_change):
    def _make(start_date=date(2020, 1, 1), end_date=None, **frequencies):
        requirement = MaintenanceRequirement(
            model_id=model.id,
            maintenance_id=oil_change.id,
            start_date=start_date,
            end_date=end_date,
            **frequencies,
        )
        db.add(requirement)
        db.commit()
        return requirement

    return _make
