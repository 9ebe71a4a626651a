import json
import logging

import pytest
from fastapi.testclient import TestClient

import config
from services.storage import settings_store
from services.storage.defaults import default_settings
from services.storage.settings_store import StoreWriteError, get_config_store
from services.webapp.dependencies import reset_dependencies
from services.webapp.main import app


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "MODEL_CACHE_PATH", tmp_path / "model-cache.json")
    reset_dependencies()
    path = tmp_path / "config.json"
    get_config_store(path)
    yield path
    reset_dependencies()


@pytest.fixture
def client(config_path):
    with TestClient(app) as test_client:
        yield test_client


def test_get_config_returns_defaults_and_creates_file(client, config_path):
    response = client.get("/api/config")

    assert response.status_code == 200
    body = response.json()
    assert body == default_settings(body["machineId"])
    assert json.loads(config_path.read_text(encoding="utf-8")) == body


def test_put_config_merges_and_returns_full_document(client):
    response = client.put(
        "/api/config",
        json={"serverPort": 4000, "interface": {"colorScheme": "dark"}, "experimental": {"beta": True}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["serverPort"] == 4000
    assert body["interface"]["colorScheme"] == "dark"
    assert body["interface"]["language"] == "en"
    assert body["interface"]["notifications"]["showOnError"] is True
    assert body["experimental"] == {"beta": True}
    assert client.get("/api/config").json() == body


def test_put_config_applies_log_level(client):
    response = client.put("/api/config", json={"logLevel": "debug"})

    assert response.status_code == 200
    assert logging.getLogger("services").level == logging.DEBUG
    client.put("/api/config", json={"logLevel": "info"})
    assert logging.getLogger("services").level == logging.INFO


def test_put_interface_preserves_notification_flags(client):
    before = client.get("/api/config/interface").json()

    response = client.put("/api/config/interface", json={"notifications": {"enabled": False}})

    assert response.status_code == 200
    notifications = response.json()["notifications"]
    assert notifications["enabled"] is False
    for key in ("showOnSuccess", "showOnError", "showOnStart"):
        assert notifications[key] == before["notifications"][key]


def test_put_interface_normalizes_language(client):
    response = client.put("/api/config/interface", json={"language": "FR"})

    assert response.status_code == 200
    assert response.json()["language"] == "fr"
    assert response.json()["colorScheme"] == "auto"


@pytest.mark.parametrize(
    "payload",
    [{"colorScheme": "purple"}, {"language": "english"}, {"notifications": {"enabled": "sometimes"}}],
)
def test_put_interface_rejects_invalid_values(client, payload):
    before = client.get("/api/config/interface").json()

    response = client.put("/api/config/interface", json=payload)

    assert response.status_code == 422
    assert client.get("/api/config/interface").json() == before


def test_put_config_rejects_out_of_range_port(client):
    response = client.put("/api/config", json={"serverPort": 70000})

    assert response.status_code == 422


def test_write_failure_returns_500_and_keeps_state(client, config_path, mocker):
    before = client.get("/api/config").json()
    mocker.patch.object(
        settings_store,
        "write_settings",
        side_effect=StoreWriteError("read-only file system", path=config_path),
    )

    response = client.put("/api/config/interface", json={"colorScheme": "dark"})

    assert response.status_code == 500
    assert client.get("/api/config").json() == before


def test_routes_report_uninitialized_store(config_path):
    test_client = TestClient(app)

    response = test_client.get("/api/config")

    assert response.status_code == 503
    assert not config_path.exists()


def test_system_status_exposes_machine_id(client, config_path, mocker):
    mocker.patch("services.webapp.routes.shutil.which", return_value=None)
    machine_id = client.get("/api/config").json()["machineId"]

    response = client.get("/api/system/status")

    assert response.status_code == 200
    assert response.json() == {
        "claudeVersion": "unknown",
        "claudePath": "unknown",
        "configPath": str(config_path),
        "machineId": machine_id,
    }


def test_system_models_falls_back_without_configuration(client):
    response = client.get("/api/system/models")

    assert response.status_code == 200
    body = response.json()
    assert body["fromCache"] is True
    assert body["defaultModel"] == "sonnet"
    assert [model["value"] for model in body["models"]] == ["default", "sonnet", "opus", "haiku"]


def test_refresh_models_picks_up_configured_models(client):
    models = [{"value": "opus", "label": "Opus", "description": "Most capable"}]
    client.put("/api/config", json={"models": {"claude-code": models}})

    response = client.post("/api/system/models/refresh")

    assert response.status_code == 200
    assert response.json()["models"] == models
    assert response.json()["defaultModel"] == "opus"
    assert response.json()["fromCache"] is False


def test_health_and_hello(client):
    assert client.get("/api/health").json() == {"status": "ok"}
    assert client.get("/api/hello").json() == {"message": "Hello from CUI!"}
