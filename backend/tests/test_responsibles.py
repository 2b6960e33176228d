"""Tests for vehicle responsibility periods."""
from datetime import date

import pytest

from fleet_api.core.errors import AppError
from fleet_api.models import VehicleResponsible
from fleet_api.schemas.vehicle import ResponsibleCreate, ResponsibleUpdate
from fleet_api.services.responsibles import add_responsible, update_responsible


def assign(db, vehicle, user, start, end=None, **fields):
    return add_responsible(
        db, ResponsibleCreate(vehicle_id=vehicle.id, user_id=user.id, start_date=start, end_date=end, **fields)
    )


class TestAddResponsible:
    """Tests for add_responsible."""

    def test_default_ceco(self, db, make_user, vehicle):
        responsible = assign(db, vehicle, make_user(), date(2025, 1, 1))
        assert responsible.ceco == "99999999"

    def test_open_period_closes_previous(self, db, make_user, vehicle):
        first = assign(db, vehicle, make_user(), date(2024, 1, 1))
        second = assign(db, vehicle, make_user(), date(2025, 3, 1))

        db.refresh(first)
        assert first.end_date == date(2025, 2, 28)
        assert second.end_date is None

    def test_open_period_starting_too_early(self, db, make_user, vehicle):
        assign(db, vehicle, make_user(), date(2025, 3, 1))
        with pytest.raises(AppError) as exc:
            assign(db, vehicle, make_user(), date(2025, 3, 1))
        assert exc.value.status_code == 409

    def test_bounded_overlap(self, db, make_user, vehicle):
        assign(db, vehicle, make_user(), date(2025, 1, 1), date(2025, 6, 30))
        with pytest.raises(AppError) as exc:
            assign(db, vehicle, make_user(), date(2025, 6, 1), date(2025, 12, 31))
        assert exc.value.status_code == 409
        assert exc.value.title == "Vehicle Responsibility Overlap"

    def test_bounded_overlapping_open_period(self, db, make_user, vehicle):
        assign(db, vehicle, make_user(), date(2025, 1, 1))
        with pytest.raises(AppError):
            assign(db, vehicle, make_user(), date(2025, 2, 1), date(2025, 3, 1))

    def test_adjacent_bounded_periods(self, db, make_user, vehicle):
        assign(db, vehicle, make_user(), date(2025, 1, 1), date(2025, 6, 30))
        second = assign(db, vehicle, make_user(), date(2025, 6, 30), date(2025, 12, 31))
        assert second.start_date == date(2025, 6, 30)

    def test_other_vehicle_is_independent(self, db, make_user, vehicle, make_vehicle):
        user = make_user()
        assign(db, vehicle, user, date(2025, 1, 1), date(2025, 6, 30))
        assert assign(db, make_vehicle(), user, date(2025, 1, 1), date(2025, 6, 30)).id


class TestUpdateResponsible:
    """Tests for update_responsible."""

    def test_reopening_closes_the_other_open_period(self, db, make_user, vehicle):
        old = assign(db, vehicle, make_user(), date(2024, 1, 1), date(2024, 12, 31))
        current = assign(db, vehicle, make_user(), date(2025, 1, 1))

        update_responsible(db, old, ResponsibleUpdate(start_date=date(2025, 6, 1), end_date=None))

        db.refresh(current)
        assert current.end_date == date(2025, 5, 31)

    def test_moving_into_another_period(self, db, make_user, vehicle):
        assign(db, vehicle, make_user(), date(2025, 1, 1), date(2025, 6, 30))
        later = assign(db, vehicle, make_user(), date(2025, 7, 1), date(2025, 12, 31))
        with pytest.raises(AppError):
            update_responsible(db, later, ResponsibleUpdate(start_date=date(2025, 5, 1)))


class TestResponsibleEndpoints:
    """Tests for /vehicle-responsibles."""

    def test_invalid_ceco(self, client, admin, vehicle):
        response = client.post(
            "/vehicle-responsibles",
            json={"vehicle_id": str(vehicle.id), "user_id": str(admin.id), "ceco": "12AB", "start_date": "2025-01-01"},
        )
        assert response.status_code == 400

    def test_end_before_start(self, client, admin, vehicle):
        response = client.post(
            "/vehicle-responsibles",
            json={
                "vehicle_id": str(vehicle.id),
                "user_id": str(admin.id),
                "start_date": "2025-01-01",
                "end_date": "2024-01-01",
            },
        )
        assert response.status_code == 400

    def test_active_at_filter(self, client, db, admin, make_user, vehicle):
        assign(db, vehicle, make_user(), date(2024, 1, 1))
        assign(db, vehicle, make_user(), date(2025, 1, 1))
        body = client.get("/vehicle-responsibles", params={"active_at": "2024-06-01"}).json()
        assert [r["start_date"] for r in body["data"]] == ["2024-01-01"]
        assert db.query(VehicleResponsible).count() == 2
