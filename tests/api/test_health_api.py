import pytest
from fastapi.testclient import TestClient

from pagelens.api.main import create_app
from pagelens.api.dependencies.engines import get_model_manager
from pagelens.models.manager import ModelManager


def client_with_env(environ):
    app = create_app()
    manager = ModelManager(environ=environ)
    app.dependency_overrides[get_model_manager] = lambda: manager
    return TestClient(app)


class TestHealthEndpoints:
    def test_healthy_with_credentials(self):
        response = client_with_env({"MISTRAL_API_KEY": "k"}).get("/health/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert set(data["dependencies"]) == {"mistral_ocr", "mistral_chat"}
        assert data["stats"] == {}

    def test_degraded_without_credentials(self):
        data = client_with_env({}).get("/health/").json()
        assert data["status"] == "degraded"
        assert "MISTRAL_API_KEY" in data["dependencies"]["mistral_ocr"]

    def test_ready(self):
        response = client_with_env({"MISTRAL_API_KEY": "k"}).get("/health/ready")
        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_not_ready_without_credentials(self):
        response = client_with_env({}).get("/health/ready")
        assert response.status_code == 503
        assert response.json()["ready"] is False


class TestStartupValidation:
    def test_refuses_to_start_without_credential(self, monkeypatch):
        monkeypatch.delenv("MISTRAL_API_KEY", raising=False)
        monkeypatch.setattr("pagelens.api.main.load_dotenv", lambda: False)

        with pytest.raises(RuntimeError, match="MISTRAL_API_KEY"):
            with TestClient(create_app()):
                pass

    def test_starts_with_credential(self, monkeypatch):
        monkeypatch.setenv("MISTRAL_API_KEY", "test-key")

        with TestClient(create_app()) as client:
            assert client.get("/health/ready").json()["ready"] is True
