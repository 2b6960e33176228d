"""Tests for maintenance requirements and records."""
from datetime import date, datetime, timedelta

import pytest

from fleet_api.core.errors import AppError
from fleet_api.models import MaintenanceRecord, VehicleAcl, VehicleKilometers
from fleet_api.schemas.maintenance import RecordCreate, RecordUpdate, RequirementCreate, RequirementUpdate
from fleet_api.services import maintenance as service


def requirement_data(model, oil_change, **overrides):
    data = {
        "model_id": model.id,
        "maintenance_id": oil_change.id,
        "kilometers_frequency": 5000,
        "start_date": date(2024, 1, 1),
    }
    data.update(overrides)
    return RequirementCreate(**data)


class TestCreateRequirement:
    """Tests for create_requirement."""

    def test_creates(self, db, model, oil_change):
        requirement = service.create_requirement(db, requirement_data(model, oil_change))
        assert requirement.kilometers_frequency == 5000
        assert requirement.end_date is None

    def test_needs_a_frequency(self, db, model, oil_change):
        with pytest.raises(AppError) as exc:
            service.create_requirement(db, requirement_data(model, oil_change, kilometers_frequency=None))
        assert exc.value.status_code == 400

    def test_end_before_start(self, db, model, oil_change):
        with pytest.raises(AppError) as exc:
            service.create_requirement(
                db, requirement_data(model, oil_change, end_date=date(2023, 12, 31))
            )
        assert exc.value.status_code == 400

    def test_open_ended_overlap(self, db, model, oil_change, make_requirement):
        make_requirement(start_date=date(2020, 1, 1))
        with pytest.raises(AppError) as exc:
            service.create_requirement(db, requirement_data(model, oil_change))
        assert exc.value.status_code == 409

    def test_consecutive_ranges_are_allowed(self, db, model, oil_change, make_requirement):
        make_requirement(start_date=date(2020, 1, 1), end_date=date(2023, 12, 31), kilometers_frequency=8000)
        requirement = service.create_requirement(db, requirement_data(model, oil_change))
        assert requirement.start_date == date(2024, 1, 1)

    def test_touching_ranges_overlap(self, db, model, oil_change, make_requirement):
        make_requirement(start_date=date(2020, 1, 1), end_date=date(2024, 1, 1), kilometers_frequency=8000)
        with pytest.raises(AppError) as exc:
            service.create_requirement(db, requirement_data(model, oil_change))
        assert exc.value.status_code == 409


class TestUpdateRequirement:
    """Tests for update_requirement."""

    def test_update_does_not_conflict_with_itself(self, db, make_requirement):
        requirement = make_requirement(kilometers_frequency=8000)
        updated = service.update_requirement(db, requirement, RequirementUpdate(kilometers_frequency=9000))
        assert updated.kilometers_frequency == 9000

    def test_clearing_last_frequency(self, db, make_requirement):
        requirement = make_requirement(kilometers_frequency=8000)
        with pytest.raises(AppError) as exc:
            service.update_requirement(db, requirement, RequirementUpdate(kilometers_frequency=None))
        assert exc.value.status_code == 400

    def test_extending_into_another_range(self, db, make_requirement):
        make_requirement(start_date=date(2024, 1, 1), kilometers_frequency=5000)
        older = make_requirement(start_date=date(2020, 1, 1), end_date=date(2023, 12, 31), kilometers_frequency=8000)
        with pytest.raises(AppError) as exc:
            service.update_requirement(db, older, RequirementUpdate(end_date=date(2024, 6, 30)))
        assert exc.value.status_code == 409


class TestCreateRecord:
    """Tests for create_record."""

    def test_logs_kilometers(self, db, admin, vehicle, oil_change):
        when = datetime(2025, 4, 1, 10, 0)
        record = service.create_record(
            db,
            RecordCreate(vehicle_id=vehicle.id, maintenance_id=oil_change.id, date=when, kilometers=12000),
            admin.id,
        )
        reading = db.get(VehicleKilometers, record.kilometers_log_id)
        assert reading.kilometers == 12000
        assert reading.date == when
        assert record.user_id == admin.id

    def test_rejects_regression(self, db, admin, vehicle, oil_change):
        db.add(VehicleKilometers(vehicle_id=vehicle.id, user_id=admin.id, date=datetime(2025, 3, 1), kilometers=20000))
        db.commit()
        with pytest.raises(AppError) as exc:
            service.create_record(
                db,
                RecordCreate(
                    vehicle_id=vehicle.id, maintenance_id=oil_change.id,
                    date=datetime(2025, 4, 1), kilometers=15000,
                ),
                admin.id,
            )
        assert exc.value.status_code == 422
        db.rollback()
        assert db.query(MaintenanceRecord).count() == 0


class TestUpdateRecord:
    """Tests for update_record."""

    @pytest.fixture
    def record(self, db, admin, vehicle, oil_change):
        return service.create_record(
            db,
            RecordCreate(vehicle_id=vehicle.id, maintenance_id=oil_change.id, date=datetime(2025, 4, 1), kilometers=12000),
            admin.id,
        )

    def test_moves_linked_reading(self, db, record):
        service.update_record(db, record, RecordUpdate(date=datetime(2025, 4, 5), kilometers=12500))
        reading = db.get(VehicleKilometers, record.kilometers_log_id)
        assert reading.date == datetime(2025, 4, 5)
        assert reading.kilometers == 12500
        assert db.query(VehicleKilometers).count() == 1

    def test_kilometers_only(self, db, record):
        service.update_record(db, record, RecordUpdate(kilometers=11000))
        reading = db.get(VehicleKilometers, record.kilometers_log_id)
        assert reading.kilometers == 11000
        assert reading.date == datetime(2025, 4, 1)

    def test_notes_leave_reading_alone(self, db, record):
        service.update_record(db, record, RecordUpdate(notes="Filtro incluido"))
        assert record.notes == "Filtro incluido"
        assert db.get(VehicleKilometers, record.kilometers_log_id).kilometers == 12000

    def test_rejects_regression(self, db, admin, vehicle, record):
        db.add(VehicleKilometers(vehicle_id=vehicle.id, user_id=admin.id, date=datetime(2025, 5, 1), kilometers=13000))
        db.commit()
        with pytest.raises(AppError) as exc:
            service.update_record(db, record, RecordUpdate(kilometers=14000))
        assert exc.value.status_code == 422
        db.rollback()
        assert record.kilometers == 12000
        assert db.get(VehicleKilometers, record.kilometers_log_id).kilometers == 12000

    def test_duplicate_timestamp(self, db, admin, vehicle, record):
        db.add(VehicleKilometers(vehicle_id=vehicle.id, user_id=admin.id, date=datetime(2025, 5, 1), kilometers=13000))
        db.commit()
        with pytest.raises(AppError) as exc:
            service.update_record(db, record, RecordUpdate(date=datetime(2025, 5, 1)))
        assert exc.value.status_code == 409

    def test_relinks_when_reading_was_removed(self, db, record):
        reading = db.get(VehicleKilometers, record.kilometers_log_id)
        record.kilometers_log_id = None
        db.delete(reading)
        db.commit()

        service.update_record(db, record, RecordUpdate(kilometers=12100))
        reading = db.get(VehicleKilometers, record.kilometers_log_id)
        assert reading.kilometers == 12100
        assert reading.date == datetime(2025, 4, 1)

    def test_endpoint_reports_regression(self, client, db, admin, vehicle, record):
        db.add(VehicleKilometers(vehicle_id=vehicle.id, user_id=admin.id, date=datetime(2025, 3, 1), kilometers=11000))
        db.commit()
        response = client.patch(f"/maintenance/records/{record.id}", json={"kilometers": 10000})
        assert response.status_code == 422
        db.expire_all()
        assert db.get(MaintenanceRecord, record.id).kilometers == 12000


class TestLastRecords:
    """Tests for last_records."""

    def test_latest_per_pair(self, db, admin, vehicle, oil_change):
        for day, km in ((1, 1000), (20, 2000)):
            service.create_record(
                db,
                RecordCreate(
                    vehicle_id=vehicle.id, maintenance_id=oil_change.id,
                    date=datetime(2025, 1, day), kilometers=km,
                ),
                admin.id,
            )
        latest = service.last_records(db, [vehicle.id], [oil_change.id])
        assert latest[(vehicle.id, oil_change.id)].kilometers == 2000

    def test_empty_inputs(self, db):
        assert service.last_records(db, [], []) == {}


class TestMaintenanceEndpoints:
    """Tests for /maintenance routes."""

    def test_requirement_overlap_is_409(self, client, admin, model, oil_change, make_requirement):
        make_requirement()
        response = client.post(
            "/maintenance/requirements",
            json={
                "model_id": str(model.id),
                "maintenance_id": str(oil_change.id),
                "days_frequency": 90,
                "start_date": "2025-01-01",
            },
        )
        assert response.status_code == 409
        assert response.json()["title"] == "Overlapping Maintenance Requirement"

    def test_requirements_active_at(self, client, admin, make_requirement):
        make_requirement(start_date=date(2020, 1, 1), end_date=date(2022, 12, 31), kilometers_frequency=8000)
        make_requirement(start_date=date(2023, 1, 1), kilometers_frequency=5000)
        body = client.get("/maintenance/requirements", params={"active_at": "2021-06-01"}).json()
        assert [r["kilometers_frequency"] for r in body["data"]] == [8000]

    def test_record_needs_maintainer(self, client, db, make_user, login, vehicle, oil_change):
        user = login(make_user(role="user"))
        db.add(VehicleAcl(
            user_id=user.id, vehicle_id=vehicle.id, permission="Read",
            start_time=datetime.now() - timedelta(days=1),
        ))
        db.commit()
        payload = {
            "vehicle_id": str(vehicle.id),
            "maintenance_id": str(oil_change.id),
            "date": "2025-04-01T10:00:00",
            "kilometers": 100,
        }
        assert client.post("/maintenance/records", json=payload).status_code == 403

    def test_record_by_maintainer(self, client, db, make_user, login, vehicle, oil_change):
        user = login(make_user(role="user"))
        db.add(VehicleAcl(
            user_id=user.id, vehicle_id=vehicle.id, permission="Maintainer",
            start_time=datetime.now() - timedelta(days=1),
        ))
        db.commit()
        response = client.post(
            "/maintenance/records",
            json={
                "vehicle_id": str(vehicle.id),
                "maintenance_id": str(oil_change.id),
                "date": "2025-04-01T10:00:00",
                "kilometers": 100,
            },
        )
        assert response.status_code == 201
        body = response.json()
        assert body["kilometers_log_id"] is not None
        assert body["maintenance"]["name"] == "Cambio de aceite"
