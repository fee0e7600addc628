import pytest

from microwave import create_app


def _make_app(tmp_path, **overrides):
    settings = {
        "TESTING": True,
        "ASYNC_MODE": "threading",
        "DATA_DIR": str(tmp_path),
        "CUSTOM_PROGRAMS_FILE": str(tmp_path / "custom_programs.json"),
        "AUTH_SETTINGS_FILE": str(tmp_path / "auth_settings.json"),
        "AUDIT_LOG_FILE": str(tmp_path / "audit.csv"),
        "SECRET_KEY": "test-secret",
        "AUTH_REQUIRED": False,
    }
    settings.update(overrides)
    app, _ = create_app(settings)
    return app


@pytest.fixture
def client(tmp_path):
    return _make_app(tmp_path).test_client()


@pytest.fixture
def secured_client(tmp_path):
    return _make_app(tmp_path, AUTH_REQUIRED=True).test_client()


CHA = {"name": "Chá", "food": "Água", "powerLevel": 6, "timeInSeconds": 600, "character": "♨", "instructions": "Mexa."}

# --- Health and heating ---


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "healthy"


def test_heating_cycle_over_http(client):
    response = client.post("/api/microwave/heating/start", json={"timeInSeconds": 90, "powerLevel": 8})
    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert "1:30" in body["message"]

    status = client.get("/api/microwave/heating/status").get_json()
    assert status["isRunning"] is True
    assert status["currentState"] == "HEATING"
    assert status["powerLevel"] == 8

    assert client.post("/api/microwave/heating/add-time", json={"additionalSeconds": 10}).status_code == 200

    paused = client.post("/api/microwave/heating/pause").get_json()
    assert paused["message"].startswith("Aquecimento pausado.")
    assert client.get("/api/microwave/heating/status").get_json()["currentState"] == "PAUSED"

    cancelled = client.post("/api/microwave/heating/cancel").get_json()
    assert cancelled["message"] == "Aquecimento cancelado. Todas as configurações foram limpas."


def test_failed_operation_is_400(client):
    response = client.post("/api/microwave/heating/pause")
    assert response.status_code == 400
    assert response.get_json() == {
        "success": False,
        "message": "Micro-ondas já está parado.",
        "errorCode": "NOT_RUNNING",
        "data": None,
    }


def test_invalid_body_is_validation_error(client):
    response = client.post("/api/microwave/heating/start", json={"timeInSeconds": "soon"})
    assert response.status_code == 400
    body = response.get_json()
    assert body["errorCode"] == "VALIDATION_ERROR"
    assert body["validationErrors"]
    assert body["requestId"] == response.headers["X-Request-ID"]


def test_quick_heat(client):
    assert client.post("/api/microwave/heating/quick").get_json()["success"]
    assert client.get("/api/microwave/heating/status").get_json()["powerLevel"] == 10


def test_predefined_program_start_and_time_increase(client):
    response = client.post("/api/microwave/programs/predefined/Feijão/start")
    assert response.status_code == 200

    response = client.post("/api/microwave/heating/add-time", json={"additionalSeconds": 30})
    assert response.status_code == 400
    assert response.get_json()["errorCode"] == "PREDEFINED_PROGRAM"


def test_unknown_predefined_program_is_404(client):
    response = client.post("/api/microwave/programs/predefined/Lasanha/start")
    assert response.status_code == 404
    assert response.get_json()["errorCode"] == "PROGRAM_NOT_FOUND"


# --- Programs ---


def test_program_lists(client):
    predefined = client.get("/api/microwave/programs/predefined").get_json()
    assert [p["name"] for p in predefined][0] == "Pipoca"
    assert predefined[0]["durationSeconds"] == 180

    client.post("/api/microwave/programs/custom", json=CHA)
    programs = client.get("/api/microwave/programs").get_json()
    assert len(programs) == 6
    assert programs[-1]["displayName"] == "Chá (Personalizado)"


def test_custom_program_crud(client):
    response = client.post("/api/microwave/programs/custom", json=CHA)
    assert response.status_code == 201
    program = response.get_json()["data"]
    program_id = program["id"]
    assert program["durationSeconds"] == 600

    assert client.get(f"/api/microwave/programs/custom/{program_id}").get_json()["name"] == "Chá"
    assert len(client.get("/api/microwave/programs/custom").get_json()) == 1

    updated = client.put(f"/api/microwave/programs/custom/{program_id}", json={**CHA, "name": "Chá verde"})
    assert updated.status_code == 200
    assert updated.get_json()["data"]["name"] == "Chá verde"

    started = client.post(f"/api/microwave/programs/custom/{program_id}/start")
    assert started.get_json()["message"].startswith("Programa 'Chá verde' iniciado")
    assert client.get("/api/microwave/heating/status").get_json()["heatingChar"] == "♨"

    assert client.delete(f"/api/microwave/programs/custom/{program_id}").status_code == 200
    assert client.get(f"/api/microwave/programs/custom/{program_id}").status_code == 404
    assert client.delete(f"/api/microwave/programs/custom/{program_id}").status_code == 404


def test_custom_program_with_duplicate_character(client):
    response = client.post("/api/microwave/programs/custom", json={**CHA, "character": "∩"})
    assert response.status_code == 400
    body = response.get_json()
    assert body["errorCode"] == "VALIDATION_FAILED"
    assert "'∩'" in body["message"]


def test_start_missing_custom_program_is_404(client):
    response = client.post("/api/microwave/programs/custom/ghost/start")
    assert response.status_code == 404
    assert response.get_json()["errorCode"] == "CUSTOM_PROGRAM_NOT_FOUND"


def test_characters(client):
    client.post("/api/microwave/programs/custom", json=CHA)
    assert client.get("/api/microwave/characters/used").get_json()["characters"][-2:] == ["♨", "."]
    assert client.get("/api/microwave/characters/♨/unique").get_json()["isUnique"] is False
    assert client.get("/api/microwave/characters/*/unique").get_json()["isUnique"] is True


def test_unhandled_error_is_500(tmp_path, mocker):
    app = _make_app(tmp_path)
    mocker.patch("program_catalog.ProgramCatalog.get_used_characters", side_effect=RuntimeError("boom"))

    response = app.test_client().get("/api/microwave/characters/used")
    assert response.status_code == 500
    body = response.get_json()
    assert body["message"] == "Erro interno do servidor"
    assert body["errorCode"] == "INTERNAL_ERROR"
    assert body["requestId"]


# --- Authentication ---


def test_microwave_endpoints_require_token(secured_client):
    response = secured_client.get("/api/microwave/heating/status")
    assert response.status_code == 401
    assert secured_client.get("/health").status_code == 200


def test_auth_flow(secured_client):
    assert secured_client.get("/api/auth/status").get_json()["isConfigured"] is False

    assert secured_client.post("/api/auth/login", json={"username": "admin", "password": "secret1"}).status_code == 401

    configured = secured_client.post("/api/auth/configure", json={"username": "admin", "password": "secret1"})
    assert configured.status_code == 200

    # Reconfiguring now needs a token.
    assert secured_client.post("/api/auth/configure", json={"username": "other", "password": "secret2"}).status_code == 401

    login = secured_client.post("/api/auth/login", json={"username": "Admin", "password": "secret1"})
    assert login.status_code == 200
    token = login.get_json()["data"]["token"]

    headers = {"Authorization": f"Bearer {token}"}
    assert secured_client.get("/api/microwave/heating/status", headers=headers).status_code == 200
    assert secured_client.get(f"/api/microwave/heating/status?token={token}").status_code == 200
    assert secured_client.post("/api/auth/validate", json={"token": token}).get_json() == {"valid": True, "username": "admin"}
    assert secured_client.get("/api/auth/status", headers=headers).get_json()["isAuthenticated"] is True

    assert secured_client.post("/api/auth/configure", json={"username": "other", "password": "secret2"}, headers=headers).status_code == 200
    assert secured_client.post("/api/auth/validate", json={"token": token}).status_code == 401


def test_login_with_wrong_password(secured_client):
    secured_client.post("/api/auth/configure", json={"username": "admin", "password": "secret1"})
    response = secured_client.post("/api/auth/login", json={"username": "admin", "password": "nope123"})
    assert response.status_code == 401
    assert response.get_json()["errorCode"] == "INVALID_CREDENTIALS"


def test_configure_validates_lengths(secured_client):
    response = secured_client.post("/api/auth/configure", json={"username": "ab", "password": "1"})
    assert response.status_code == 400
    assert len(response.get_json()["validationErrors"]) == 2


def test_audit_trail_records_operations(tmp_path):
    client = _make_app(tmp_path).test_client()
    client.post("/api/microwave/heating/quick")

    content = (tmp_path / "audit.csv").read_text(encoding="utf-8")
    assert "quick_heat" in content
