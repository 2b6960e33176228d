"""Tests for brands, models, maintenance definitions and checklist items."""
from datetime import date


class TestBrandsAndModels:
    """Tests for /vehicle-brands and /vehicle-models."""

    def test_duplicate_brand(self, client, admin):
        assert client.post("/vehicle-brands", json={"name": "Fiat"}).status_code == 201
        assert client.post("/vehicle-brands", json={"name": "Fiat"}).status_code == 409

    def test_model_needs_brand(self, client, admin):
        response = client.post("/vehicle-models", json={"brand_id": "00000000-0000-0000-0000-000000000000", "name": "Uno"})
        assert response.status_code == 404

    def test_model_embeds_brand(self, client, admin):
        brand_id = client.post("/vehicle-brands", json={"name": "Fiat"}).json()["id"]
        response = client.post("/vehicle-models", json={"brand_id": brand_id, "name": "Cronos", "vehicle_type": "Sedan"})
        assert response.status_code == 201
        assert response.json()["brand"]["name"] == "Fiat"

    def test_brand_list_search(self, client, admin):
        for name in ("Fiat", "Ford", "Renault"):
            client.post("/vehicle-brands", json={"name": name})
        body = client.get("/vehicle-brands", params={"search": "f"}).json()
        assert [b["name"] for b in body["data"]] == ["Fiat", "Ford"]

    def test_search_wildcards_are_literal(self, client, admin):
        for name in ("Fiat", "Great_Wall", "100% Eléctrica"):
            client.post("/vehicle-brands", json={"name": name})

        def names(term):
            body = client.get("/vehicle-brands", params={"search": term}).json()
            return [b["name"] for b in body["data"]]

        assert names("_") == ["Great_Wall"]
        assert names("%") == ["100% Eléctrica"]
        assert names("t_w") == ["Great_Wall"]
        assert names("f_at") == []

    def test_any_user_can_read(self, client, make_user, login, model):
        login(make_user(role="user"))
        assert client.get(f"/vehicle-models/{model.id}").json()["name"] == "Hilux"


class TestMaintenanceDefinitions:
    """Tests for /maintenance/categories and /maintenance/maintenances."""

    def test_zero_frequency_rejected(self, client, admin, oil_change):
        response = client.post(
            "/maintenance/maintenances",
            json={"category_id": str(oil_change.category_id), "name": "Frenos", "days_frequency": 0},
        )
        assert response.status_code == 400

    def test_filter_by_category(self, client, admin, oil_change):
        other = client.post("/maintenance/categories", json={"name": "Carrocería"}).json()["id"]
        client.post("/maintenance/maintenances", json={"category_id": other, "name": "Pulido"})
        body = client.get("/maintenance/maintenances", params={"category_id": other}).json()
        assert [m["name"] for m in body["data"]] == ["Pulido"]


class TestChecklistItems:
    """Tests for /quarterly-control-items."""

    def test_add_and_filter(self, client, admin, vehicle):
        control_id = client.post(
            "/quarterly-controls",
            json={"vehicle_id": str(vehicle.id), "year": 2025, "quarter": 2, "intended_delivery_date": "2025-06-30"},
        ).json()["id"]
        created = client.post(
            "/quarterly-control-items",
            json={"quarterly_control_id": control_id, "category": "Extra", "title": "Gato", "status": "RECHAZADO"},
        )
        assert created.status_code == 201
        assert created.json()["observations"] == ""

        body = client.get(
            "/quarterly-control-items", params={"quarterly_control_id": control_id, "status": "RECHAZADO"}
        ).json()
        assert body["pagination"]["total"] == 1

    def test_unknown_control(self, client, admin):
        response = client.post(
            "/quarterly-control-items",
            json={"quarterly_control_id": "00000000-0000-0000-0000-000000000000", "category": "A", "title": "B"},
        )
        assert response.status_code == 404

    def test_duplicate_period_via_update(self, client, admin, vehicle):
        payload = {"vehicle_id": str(vehicle.id), "year": 2025, "quarter": 1, "intended_delivery_date": str(date(2025, 3, 31))}
        client.post("/quarterly-controls", json=payload)
        second = client.post("/quarterly-controls", json={**payload, "quarter": 2}).json()["id"]
        assert client.patch(f"/quarterly-controls/{second}", json={"quarter": 1}).status_code == 409
