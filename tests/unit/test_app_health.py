from fastapi.testclient import TestClient

from ollachat.app.api.app import create_app


def test_health_returns_ok() -> None:
    with TestClient(create_app()) as client:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"ok": True}


def test_root_reports_app_identity(monkeypatch) -> None:
    monkeypatch.setenv("APP_ENV", "test")

    with TestClient(create_app()) as client:
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["environment"] == "test"
        assert response.json()["docs"] == "/docs"
