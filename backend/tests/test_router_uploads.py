"""Tests for the upload gate router."""
from fastapi.testclient import TestClient


def _post(data: bytes, content_type: str):
    from studio.main import app

    return TestClient(app).post(
        "/api/uploads/validate", files={"file": ("photo", data, content_type)}
    )


def test_accepted_upload_returns_data_uri(make_image_bytes) -> None:
    resp = _post(make_image_bytes(width=512, height=512, pattern="noise"), "image/png")
    assert resp.status_code == 200
    data = resp.json()
    assert data["valid"] is True
    assert data["dataUri"].startswith("data:image/png;base64,")


def test_rejected_upload_has_no_data_uri(make_image_bytes) -> None:
    resp = _post(make_image_bytes(width=100, height=100, pattern="noise"), "image/png")
    data = resp.json()
    assert data["valid"] is False
    assert len(data["violations"]) == 1
    assert data["dataUri"] is None


def test_unsupported_type() -> None:
    resp = _post(b"GIF89a" + b"\x00" * 2048, "image/gif")
    assert resp.json()["violations"] == ["Unsupported format. Use JPG, PNG or WEBP."]


def test_missing_file_is_422() -> None:
    from studio.main import app

    assert TestClient(app).post("/api/uploads/validate").status_code == 422
