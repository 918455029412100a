"""Integration tests for the audit log and survey admin routes."""
import pytest


@pytest.mark.integration
class TestAuditLogApi:
    def _record(self, admin_client, target_id, **extra):
        body = {
            "action": "update",
            "target_type": "participant",
            "target_id": target_id,
            "target_name": f"Participant {target_id}",
        }
        body.update(extra)
        return admin_client.post("/api/v1/admin/audit-logs", json=body)

    def test_record_and_page(self, admin_client):
        for i in range(5):
            assert self._record(admin_client, f"p{i}").status_code == 201

        first = admin_client.get("/api/v1/admin/audit-logs", params={"page_size": 2}).json()
        assert [e["target_id"] for e in first["entries"]] == ["p4", "p3"]
        assert first["has_more"] is True

        second = admin_client.get(
            "/api/v1/admin/audit-logs", params={"page_size": 2, "cursor": first["next_cursor"]}
        ).json()
        assert [e["target_id"] for e in second["entries"]] == ["p2", "p1"]

        third = admin_client.get(
            "/api/v1/admin/audit-logs", params={"page_size": 2, "cursor": second["next_cursor"]}
        ).json()
        assert [e["target_id"] for e in third["entries"]] == ["p0"]
        assert third["has_more"] is False
        assert third["next_cursor"] is None

    def test_actor_from_token(self, admin_client):
        entry = self._record(admin_client, "p1").json()
        assert entry["actor_name"] == "Front Desk"

    def test_correction(self, admin_client):
        original = self._record(admin_client, "p1").json()
        correction = self._record(admin_client, "p1", amends_id=original["id"])
        assert correction.status_code == 201
        assert correction.json()["amends_id"] == original["id"]

        missing = self._record(admin_client, "p1", amends_id=9999)
        assert missing.status_code == 404

    def test_invalid_action(self, admin_client):
        response = self._record(admin_client, "p1", action="explode")
        assert response.status_code == 422

    def test_page_size_bounds(self, admin_client):
        assert admin_client.get("/api/v1/admin/audit-logs", params={"page_size": 0}).status_code == 422
        assert admin_client.get("/api/v1/admin/audit-logs", params={"page_size": 201}).status_code == 422

    def test_bad_cursor(self, admin_client):
        response = admin_client.get("/api/v1/admin/audit-logs", params={"cursor": "garbage!"})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    def test_clear(self, admin_client):
        for i in range(3):
            self._record(admin_client, f"p{i}")
        response = admin_client.delete("/api/v1/admin/audit-logs")
        assert response.json() == {"deleted": 3}
        assert admin_client.get("/api/v1/admin/audit-logs").json()["entries"] == []


@pytest.mark.integration
class TestSurveyAdmin:
    def test_create_and_close(self, admin_client):
        created = admin_client.post("/api/v1/admin/surveys", json={"title": "Summer Conference"})
        assert created.status_code == 201
        survey = created.json()
        assert survey["is_active"] is True

        closed = admin_client.patch(f"/api/v1/admin/surveys/{survey['id']}", json={"is_active": False})
        assert closed.json()["is_active"] is False

        response = admin_client.post(
            f"/api/v1/registrations/{survey['id']}",
            json={"participant": {"name": "Jane Doe"}},
        )
        assert response.status_code == 404

    def test_patch_unknown(self, admin_client):
        response = admin_client.patch("/api/v1/admin/surveys/missing", json={"is_active": False})
        assert response.status_code == 404
