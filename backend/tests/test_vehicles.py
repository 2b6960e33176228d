"""Tests for the vehicle catalog endpoints."""
import uuid
from datetime import datetime, timedelta

from fleet_api.models import VehicleAcl, VehicleBrand, VehicleModel


def grant(db, user, vehicle, permission):
    db.add(VehicleAcl(
        user_id=user.id,
        vehicle_id=vehicle.id,
        permission=permission,
        start_time=datetime.now() - timedelta(days=1),
    ))
    db.commit()


class TestCreateVehicle:
    """Tests for POST /vehicles."""

    def test_plate_is_normalized(self, client, admin, model):
        response = client.post("/vehicles", json={"license_plate": " ab123cd ", "model_id": str(model.id), "year": 2023})
        assert response.status_code == 201
        body = response.json()
        assert body["license_plate"] == "AB123CD"
        assert body["model"]["name"] == "Hilux"
        assert body["model"]["brand"]["name"] == "Toyota"

    def test_legacy_plate(self, client, admin):
        response = client.post("/vehicles", json={"license_plate": "abc123", "year": 2010})
        assert response.status_code == 201
        assert response.json()["license_plate"] == "ABC123"

    def test_invalid_plate(self, client, admin):
        response = client.post("/vehicles", json={"license_plate": "123-XYZ", "year": 2023})
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "license_plate"

    def test_duplicate_plate(self, client, admin, vehicle):
        response = client.post("/vehicles", json={"license_plate": "aa123bb", "year": 2023})
        assert response.status_code == 409

    def test_unknown_model(self, client, admin):
        response = client.post("/vehicles", json={"license_plate": "AC456DE", "model_id": str(uuid.uuid4()), "year": 2023})
        assert response.status_code == 404

    def test_requires_admin(self, client, make_user, login):
        login(make_user(role="user"))
        response = client.post("/vehicles", json={"license_plate": "AC456DE", "year": 2023})
        assert response.status_code == 403


class TestListVehicles:
    """Tests for GET /vehicles."""

    def test_envelope(self, client, admin, make_vehicle):
        for plate in ("AC100AA", "AC200AA", "AC300AA"):
            make_vehicle(plate)
        body = client.get("/vehicles", params={"limit": 2}).json()
        assert [v["license_plate"] for v in body["data"]] == ["AC100AA", "AC200AA"]
        assert body["pagination"] == {"page": 1, "limit": 2, "offset": 0, "total": 3, "pages": 2}

    def test_search_matches_brand(self, client, admin, db, make_vehicle):
        ford = VehicleBrand(name="Ford")
        db.add(ford)
        db.commit()
        ranger = VehicleModel(brand_id=ford.id, name="Ranger")
        db.add(ranger)
        db.commit()
        make_vehicle("AD100AA", vehicle_model=ranger)
        make_vehicle("AD200AA")

        body = client.get("/vehicles", params={"search": "ford"}).json()
        assert [v["license_plate"] for v in body["data"]] == ["AD100AA"]

    def test_filter_by_model(self, client, admin, db, make_vehicle, model):
        make_vehicle("AE100AA")
        body = client.get("/vehicles", params={"model_id": str(model.id)}).json()
        assert body["pagination"]["total"] == 1


class TestGetVehicle:
    """Tests for GET /vehicles/{id}."""

    def test_read_permission_required(self, client, make_user, login, vehicle):
        login(make_user(role="user"))
        assert client.get(f"/vehicles/{vehicle.id}").status_code == 403

    def test_acl_grants_read(self, client, db, make_user, login, vehicle):
        user = login(make_user(role="user"))
        grant(db, user, vehicle, "Read")
        response = client.get(f"/vehicles/{vehicle.id}")
        assert response.status_code == 200
        assert response.json()["license_plate"] == "AA123BB"

    def test_unknown_vehicle(self, client, admin):
        assert client.get(f"/vehicles/{uuid.uuid4()}").status_code == 404


class TestUpdateVehicle:
    """Tests for PATCH and DELETE /vehicles/{id}."""

    def test_partial_update(self, client, admin, vehicle):
        response = client.patch(f"/vehicles/{vehicle.id}", json={"fuel_type": "Diesel"})
        assert response.status_code == 200
        assert response.json()["fuel_type"] == "Diesel"
        assert response.json()["year"] == 2022

    def test_plate_taken_by_another(self, client, admin, vehicle, make_vehicle):
        other = make_vehicle("AF100AA")
        response = client.patch(f"/vehicles/{other.id}", json={"license_plate": "AA123BB"})
        assert response.status_code == 409

    def test_keeping_own_plate(self, client, admin, vehicle):
        response = client.patch(f"/vehicles/{vehicle.id}", json={"license_plate": "aa123bb"})
        assert response.status_code == 200

    def test_delete(self, client, admin, vehicle):
        assert client.delete(f"/vehicles/{vehicle.id}").status_code == 204
        assert client.get(f"/vehicles/{vehicle.id}").status_code == 404
