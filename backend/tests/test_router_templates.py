"""Tests for the template router."""
import pytest
from fastapi.testclient import TestClient

from studio.services.store import InMemoryRecordStore
from studio.services.templates import TemplateService

PROMPT = "artistic portrait, oil painting, warm lighting"
BODY = {"name": "Artistic Portrait", "prompt": PROMPT, "category": "artistic"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client(store: InMemoryRecordStore):
    from studio.main import app

    app.state.template_service = TemplateService(store)
    # No context manager: the lifespan would replace the injected service.
    yield TestClient(app)
    if hasattr(app.state, "template_service"):
        del app.state.template_service


# ---------------------------------------------------------------------------
# Create / validate
# ---------------------------------------------------------------------------


class TestCreateTemplate:
    def test_returns_201_with_camel_case_fields(self, client: TestClient) -> None:
        resp = client.post("/api/templates", json={**BODY, "exampleImage": "https://x.test/a.png"})
        assert resp.status_code == 201
        data = resp.json()
        assert data["name"] == "Artistic Portrait"
        assert data["exampleImage"] == "https://x.test/a.png"
        assert data["status"] == "active"
        assert "createdAt" in data

    def test_rejected_returns_422_with_violations(self, client: TestClient) -> None:
        resp = client.post(
            "/api/templates", json={"name": "ab", "prompt": "short", "category": "bogus"}
        )
        assert resp.status_code == 422
        assert len(resp.json()["detail"]["violations"]) == 3

    def test_validate_is_dry_run(self, client: TestClient) -> None:
        resp = client.post("/api/templates/validate", json={**BODY, "category": " Portrait "})
        assert resp.status_code == 200
        assert resp.json() == {"valid": True, "violations": []}
        assert client.get("/api/templates").json() == []

    def test_validate_reports_violations(self, client: TestClient) -> None:
        resp = client.post("/api/templates/validate", json={"name": "", "prompt": "", "category": ""})
        assert resp.json()["valid"] is False
        assert resp.json()["violations"][0] == "Name is required"


class TestReadUpdateDelete:
    def test_get_and_404(self, client: TestClient) -> None:
        created = client.post("/api/templates", json=BODY).json()
        assert client.get(f"/api/templates/{created['id']}").json()["id"] == created["id"]
        assert client.get("/api/templates/nope").status_code == 404

    def test_patch(self, client: TestClient) -> None:
        created = client.post("/api/templates", json=BODY).json()
        resp = client.patch(f"/api/templates/{created['id']}", json={"category": "VINTAGE"})
        assert resp.status_code == 200
        assert resp.json()["category"] == "vintage"

    def test_patch_invalid(self, client: TestClient) -> None:
        created = client.post("/api/templates", json=BODY).json()
        resp = client.patch(f"/api/templates/{created['id']}", json={"name": "x"})
        assert resp.status_code == 422

    @pytest.mark.parametrize("field", ["name", "prompt", "category"])
    def test_patch_null_field_leaves_it_unchanged(self, client: TestClient, field: str) -> None:
        created = client.post("/api/templates", json=BODY).json()
        resp = client.patch(f"/api/templates/{created['id']}", json={field: None})
        assert resp.status_code == 200
        assert resp.json()[field] == created[field]

    def test_patch_null_example_image_clears_it(self, client: TestClient) -> None:
        created = client.post(
            "/api/templates", json={**BODY, "exampleImage": "https://x.test/a.png"}
        ).json()
        resp = client.patch(f"/api/templates/{created['id']}", json={"exampleImage": None})
        assert resp.status_code == 200
        assert resp.json()["exampleImage"] is None

    def test_patch_missing(self, client: TestClient) -> None:
        assert client.patch("/api/templates/nope", json={"name": "Valid Name"}).status_code == 404

    def test_soft_delete(self, client: TestClient) -> None:
        created = client.post("/api/templates", json=BODY).json()
        assert client.delete(f"/api/templates/{created['id']}").status_code == 204
        assert client.get("/api/templates").json() == []
        listed = client.get("/api/templates", params={"include_inactive": True}).json()
        assert listed[0]["status"] == "inactive"

    def test_permanent_delete(self, client: TestClient) -> None:
        created = client.post("/api/templates", json=BODY).json()
        assert client.delete(f"/api/templates/{created['id']}/permanent").status_code == 204
        assert client.get(f"/api/templates/{created['id']}").status_code == 404
        assert client.delete(f"/api/templates/{created['id']}/permanent").status_code == 404


def test_returns_503_when_service_missing() -> None:
    from studio.main import app

    if hasattr(app.state, "template_service"):
        del app.state.template_service
    resp = TestClient(app).get("/api/templates")
    assert resp.status_code == 503
