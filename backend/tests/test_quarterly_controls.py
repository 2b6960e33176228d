"""Tests for quarterly vehicle controls."""
import uuid
from datetime import date, datetime

import pytest

from fleet_api.core.errors import AppError
from fleet_api.models import QuarterlyControl, QuarterlyControlItem, VehicleKilometers
from fleet_api.schemas.quarterly_control import ControlWithItemsCreate, ItemInput
from fleet_api.services.quarterly_controls import (
    DEFAULT_CHECKLIST, create_with_items, generate, quarter_end, quarter_of,
)


@pytest.fixture
def make_control(db):
    def _make(vehicle, year=2025, quarter=2, items=None):
        return create_with_items(db, ControlWithItemsCreate(
            vehicle_id=vehicle.id,
            year=year,
            quarter=quarter,
            intended_delivery_date=quarter_end(year, quarter),
            items=items,
        ))

    return _make


def fill_payload(control, kilometers=15000, status="APROBADO"):
    return {
        "kilometers": kilometers,
        "items": [{"id": str(item.id), "status": status, "observations": "ok"} for item in control.items],
    }


class TestQuarterDates:
    """Tests for quarter_of and quarter_end."""

    @pytest.mark.parametrize("day, quarter", [
        (date(2025, 1, 1), 1),
        (date(2025, 3, 31), 1),
        (date(2025, 4, 1), 2),
        (date(2025, 12, 31), 4),
    ])
    def test_quarter_of(self, day, quarter):
        assert quarter_of(day) == quarter

    @pytest.mark.parametrize("quarter, last_day", [
        (1, date(2024, 3, 31)),
        (2, date(2024, 6, 30)),
        (3, date(2024, 9, 30)),
        (4, date(2024, 12, 31)),
    ])
    def test_quarter_end(self, quarter, last_day):
        assert quarter_end(2024, quarter) == last_day


class TestCreateWithItems:
    """Tests for create_with_items."""

    def test_default_checklist(self, make_control, vehicle):
        control = make_control(vehicle)
        assert len(control.items) == sum(len(titles) for titles in DEFAULT_CHECKLIST.values()) == 19
        assert {item.status for item in control.items} == {"PENDIENTE"}
        assert {item.category for item in control.items} == set(DEFAULT_CHECKLIST)

    def test_custom_items(self, make_control, vehicle):
        control = make_control(vehicle, items=[ItemInput(category="Extra", title="Gato hidráulico")])
        assert [item.title for item in control.items] == ["Gato hidráulico"]

    def test_duplicate_period(self, make_control, vehicle):
        make_control(vehicle)
        with pytest.raises(AppError) as exc:
            make_control(vehicle)
        assert exc.value.status_code == 409

    def test_same_quarter_other_year(self, make_control, vehicle):
        make_control(vehicle, year=2024)
        assert make_control(vehicle, year=2025).year == 2025


class TestGenerate:
    """Tests for generate."""

    def test_creates_missing_controls(self, db, make_vehicle, make_control):
        first, second, third = make_vehicle(), make_vehicle(), make_vehicle()
        make_control(second, year=2025, quarter=3)

        result = generate(db, today=date(2025, 8, 15))

        assert result == {
            "year": 2025,
            "quarter": 3,
            "intended_delivery_date": date(2025, 9, 30),
            "created": 2,
            "skipped": 1,
        }
        controls = db.query(QuarterlyControl).filter(QuarterlyControl.quarter == 3).all()
        assert {c.vehicle_id for c in controls} == {first.id, second.id, third.id}

    def test_is_idempotent(self, db, vehicle):
        generate(db, 2025, 1)
        result = generate(db, 2025, 1)
        assert result["created"] == 0
        assert result["skipped"] == 1
        assert db.query(QuarterlyControlItem).count() == 19


class TestFillControl:
    """Tests for PATCH /quarterly-controls/{id}/with-items."""

    def test_fill(self, client, db, admin, vehicle, make_control):
        control = make_control(vehicle)
        response = client.patch(f"/quarterly-controls/{control.id}/with-items", json=fill_payload(control))
        assert response.status_code == 200
        body = response.json()
        assert body["filled_by"] == str(admin.id)
        assert body["filled_at"] == date.today().isoformat()
        assert {item["status"] for item in body["items"]} == {"APROBADO"}

        reading = db.get(VehicleKilometers, uuid.UUID(body["kilometers_log_id"]))
        assert reading.kilometers == 15000
        assert reading.user_id == admin.id

    def test_item_from_another_control(self, client, db, admin, vehicle, make_vehicle, make_control):
        control = make_control(vehicle)
        other = make_control(make_vehicle())
        payload = fill_payload(control)
        payload["items"].append({"id": str(other.items[0].id), "status": "RECHAZADO"})

        response = client.patch(f"/quarterly-controls/{control.id}/with-items", json=payload)

        assert response.status_code == 400
        db.expire_all()
        assert db.get(QuarterlyControl, control.id).filled_by is None
        assert {item.status for item in db.get(QuarterlyControl, control.id).items} == {"PENDIENTE"}
        assert db.query(VehicleKilometers).count() == 0

    def test_unknown_item(self, client, admin, vehicle, make_control):
        control = make_control(vehicle)
        payload = {"kilometers": 100, "items": [{"id": str(uuid.uuid4()), "status": "APROBADO"}]}
        response = client.patch(f"/quarterly-controls/{control.id}/with-items", json=payload)
        assert response.status_code == 404

    def test_kilometer_regression_leaves_control_untouched(self, client, db, admin, vehicle, make_control):
        db.add(VehicleKilometers(vehicle_id=vehicle.id, user_id=admin.id, date=datetime(2020, 1, 1), kilometers=50000))
        db.commit()
        control = make_control(vehicle)

        response = client.patch(f"/quarterly-controls/{control.id}/with-items", json=fill_payload(control, 100))

        assert response.status_code == 422
        db.expire_all()
        assert db.get(QuarterlyControl, control.id).kilometers_log_id is None
        assert db.query(VehicleKilometers).count() == 1

    def test_invalid_status(self, client, admin, vehicle, make_control):
        control = make_control(vehicle)
        response = client.patch(
            f"/quarterly-controls/{control.id}/with-items", json=fill_payload(control, status="MAYBE")
        )
        assert response.status_code == 400

    def test_driver_permission_required(self, client, make_user, login, vehicle, make_control):
        control = make_control(vehicle)
        login(make_user(role="user"))
        response = client.patch(f"/quarterly-controls/{control.id}/with-items", json=fill_payload(control))
        assert response.status_code == 403


class TestControlEndpoints:
    """Tests for the remaining /quarterly-controls routes."""

    def test_generate_endpoint(self, client, admin, vehicle):
        response = client.post("/quarterly-controls/generate", json={"year": 2025, "quarter": 4})
        assert response.status_code == 200
        assert response.json()["created"] == 1
        assert response.json()["intended_delivery_date"] == "2025-12-31"

    def test_create_with_items_endpoint(self, client, admin, vehicle):
        response = client.post(
            "/quarterly-controls/with-items",
            json={
                "vehicle_id": str(vehicle.id),
                "year": 2025,
                "quarter": 1,
                "intended_delivery_date": "2025-03-31",
            },
        )
        assert response.status_code == 201
        assert len(response.json()["items"]) == 19

    def test_filter_unfilled(self, client, admin, vehicle, make_control):
        make_control(vehicle, quarter=1)
        body = client.get("/quarterly-controls", params={"filled": False}).json()
        assert body["pagination"]["total"] == 1
        assert client.get("/quarterly-controls", params={"filled": True}).json()["pagination"]["total"] == 0

    def test_delete_removes_items(self, client, db, admin, vehicle, make_control):
        control = make_control(vehicle)
        assert client.delete(f"/quarterly-controls/{control.id}").status_code == 204
        db.expire_all()
        assert db.query(QuarterlyControlItem).count() == 0
