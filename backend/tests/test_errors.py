"""Tests for problem+json error responses."""
import uuid


class TestProblemResponses:
    """Errors are rendered as RFC 7807 documents."""

    def test_not_found(self, client, admin):
        missing = uuid.uuid4()
        response = client.get(f"/vehicle-brands/{missing}")
        assert response.status_code == 404
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["status"] == 404
        assert body["title"] == "Resource Not Found"
        assert str(missing) in body["detail"]
        assert body["instance"] == f"/vehicle-brands/{missing}"

    def test_malformed_id_is_validation_error(self, client, admin):
        response = client.get("/vehicle-brands/not-a-uuid")
        assert response.status_code == 400
        body = response.json()
        assert body["title"] == "Validation Failed"
        assert body["errors"][0]["field"] == "path.brand_id"

    def test_body_validation_lists_fields(self, client, admin):
        response = client.post("/users", json={"first_name": "Ana"})
        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"last_name", "cuit", "email"} <= fields

    def test_unauthenticated(self, client):
        response = client.get("/vehicles")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    def test_forbidden_for_non_admin_write(self, client, make_user, login):
        login(make_user(role="user"))
        response = client.post("/vehicle-brands", json={"name": "Ford"})
        assert response.status_code == 403
        assert response.json()["title"] == "Forbidden"

    def test_user_without_role_is_forbidden(self, client, make_user, login):
        login(make_user())
        assert client.get("/vehicles").status_code == 403


class TestRootEndpoints:
    """Tests for / and /health."""

    def test_root(self, client):
        assert client.get("/").json()["message"] == "Fleet Management API"

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["database"]["connected"] is True
