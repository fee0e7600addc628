"""
Defines the HTTP API of the microwave service as a Flask blueprint.

Every heating endpoint reads and writes the caller's heating session through
the signed Flask session cookie. Request bodies are parsed with the pydantic
request models; a body that fails validation surfaces as a 400
VALIDATION_ERROR through the error handlers registered here. Microwave
endpoints require a token (Bearer header or `?token=`) while
`AUTH_REQUIRED` is on; auth and health endpoints are public.
"""
import functools
import logging
import uuid
from typing import Optional

from flask import Blueprint, Flask, current_app, g, jsonify, request, session
from pydantic import BaseModel, ValidationError
from werkzeug.exceptions import HTTPException

from audit_logger import audit_log
from data_models import (
    AddTimeRequest,
    AuthConfigRequest,
    AuthCredentials,
    CustomProgram,
    CustomProgramRequest,
    ErrorResponse,
    OperationResult,
    StartHeatingRequest,
)
from errors import AuthenticationError
from session_store import FlaskSessionStore
from utils import get_timestamp

NOT_FOUND_CODES = {"PROGRAM_NOT_FOUND", "CUSTOM_PROGRAM_NOT_FOUND"}


# --- Helpers ---

def _dump(value):
    """Serializes a model (or list of models) to camelCase JSON-ready data."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


def _result_response(result: OperationResult, success_status: int = 200):
    if result.success:
        status = success_status
    elif result.error_code in NOT_FOUND_CODES:
        status = 404
    else:
        status = 400
    return jsonify(_dump(result)), status


def _unauthorized(message: str, error_code: str = "AUTHENTICATION_FAILED"):
    return jsonify(_dump(OperationResult.error(message, error_code))), 401


def get_request_token() -> Optional[str]:
    """Reads the token from an `Authorization: Bearer` header, falling back to `?token=`."""
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return request.args.get("token")


def _audit(event: str, result: Optional[OperationResult] = None, details=None):
    audit_log.log_event(
        event,
        session_id=g.get("request_id"),
        source="http",
        error_code=result.error_code if result is not None else None,
        details=details if details is not None else (result.message if result is not None else None),
    )


# --- Blueprint ---

def create_api(heating_service, catalog, program_service, auth_service) -> Blueprint:
    """
    Builds the blueprint holding every HTTP endpoint.

    Args:
        heating_service: Runs heating commands against the caller's session.
        catalog: Answers program list and display-character questions.
        program_service: Creates, updates and deletes custom programs.
        auth_service: Configures the credential and validates tokens.
    """
    api = Blueprint("api", __name__)

    def token_required(view):
        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            if current_app.config.get("AUTH_REQUIRED", True):
                username = auth_service.get_username_from_token(get_request_token())
                if username is None:
                    return _unauthorized("Token de acesso inválido ou expirado.")
                g.username = username
            return view(*args, **kwargs)

        return wrapper

    def store():
        return FlaskSessionStore(session)

    # --- Health ---

    @api.get("/health")
    def health():
        return jsonify({"status": "healthy", "timestamp": get_timestamp()})

    # --- Authentication ---

    @api.post("/api/auth/configure")
    def configure_auth():
        """First-time setup is open; replacing the credential needs a valid token."""
        if auth_service.is_configured() and not auth_service.validate_token(get_request_token()):
            return _unauthorized("Autenticação já configurada. Faça login para alterá-la.")
        body = AuthConfigRequest.model_validate(request.get_json(silent=True) or {})
        result = auth_service.configure(body.username, body.password)
        _audit("auth_configured", result, details={"username": body.username})
        return _result_response(result)

    @api.post("/api/auth/login")
    def login():
        credentials = AuthCredentials.model_validate(request.get_json(silent=True) or {})
        try:
            token = auth_service.authenticate(credentials)
        except AuthenticationError as e:
            _audit("login_failed", OperationResult.error(e.message, e.error_code), details={"username": credentials.username})
            return _unauthorized(e.message, e.error_code)
        _audit("login", details={"username": token.username})
        return jsonify(_dump(OperationResult.ok("Login realizado com sucesso.", data=token)))

    @api.get("/api/auth/status")
    def auth_status():
        return jsonify(
            {
                "isConfigured": auth_service.is_configured(),
                "isAuthenticated": auth_service.validate_token(get_request_token()),
                "authRequired": current_app.config.get("AUTH_REQUIRED", True),
            }
        )

    @api.post("/api/auth/validate")
    def validate_token():
        body = request.get_json(silent=True) or {}
        token = body.get("token") or get_request_token()
        username = auth_service.get_username_from_token(token)
        if username is None:
            return jsonify({"valid": False, "username": None}), 401
        return jsonify({"valid": True, "username": username})

    @api.post("/api/auth/logout")
    def logout():
        # Tokens are stateless; the client discards its copy.
        session.clear()
        return jsonify(_dump(OperationResult.ok("Logout realizado com sucesso.")))

    # --- Heating ---

    @api.post("/api/microwave/heating/start")
    @token_required
    def start_heating():
        body = StartHeatingRequest.model_validate(request.get_json(silent=True) or {})
        result = heating_service.start_heating(body.duration_seconds, body.power_level, store())
        _audit("heating_started", result)
        return _result_response(result)

    @api.post("/api/microwave/heating/quick")
    @token_required
    def quick_heat():
        result = heating_service.start_quick_heat(store())
        _audit("quick_heat", result)
        return _result_response(result)

    @api.post("/api/microwave/heating/pause")
    @api.post("/api/microwave/heating/cancel", endpoint="cancel_heating")
    @token_required
    def pause_or_cancel():
        result = heating_service.pause_or_cancel(store())
        _audit("pause_or_cancel", result)
        return _result_response(result)

    @api.post("/api/microwave/heating/add-time")
    @token_required
    def add_time():
        body = AddTimeRequest.model_validate(request.get_json(silent=True) or {})
        result = heating_service.increase_time(body.additional_seconds, store())
        _audit("time_increased", result)
        return _result_response(result)

    @api.get("/api/microwave/heating/status")
    @token_required
    def heating_status():
        return jsonify(_dump(heating_service.get_heating_status(store())))

    # --- Programs ---

    @api.get("/api/microwave/programs")
    @token_required
    def list_programs():
        return jsonify(_dump(catalog.get_all_programs()))

    @api.get("/api/microwave/programs/predefined")
    @token_required
    def list_predefined_programs():
        return jsonify(_dump(heating_service.get_predefined_programs()))

    @api.post("/api/microwave/programs/predefined/<name>/start")
    @token_required
    def start_predefined_program(name: str):
        result = heating_service.start_predefined_program(name, store())
        _audit("predefined_program_started", result, details={"program": name})
        return _result_response(result)

    @api.get("/api/microwave/programs/custom")
    @token_required
    def list_custom_programs():
        return jsonify(_dump(program_service.get_all()))

    @api.get("/api/microwave/programs/custom/<program_id>")
    @token_required
    def get_custom_program(program_id: str):
        program = program_service.get_by_id(program_id)
        if program is None:
            return _result_response(OperationResult.error("Programa não encontrado.", "PROGRAM_NOT_FOUND"))
        return jsonify(_dump(program))

    @api.post("/api/microwave/programs/custom")
    @token_required
    def create_custom_program():
        body = CustomProgramRequest.model_validate(request.get_json(silent=True) or {})
        result = program_service.create(_to_program(body))
        _audit("custom_program_created", result)
        return _result_response(result, success_status=201)

    @api.put("/api/microwave/programs/custom/<program_id>")
    @token_required
    def update_custom_program(program_id: str):
        body = CustomProgramRequest.model_validate(request.get_json(silent=True) or {})
        result = program_service.update(_to_program(body, program_id))
        _audit("custom_program_updated", result, details={"id": program_id})
        return _result_response(result)

    @api.delete("/api/microwave/programs/custom/<program_id>")
    @token_required
    def delete_custom_program(program_id: str):
        result = program_service.delete(program_id)
        _audit("custom_program_deleted", result, details={"id": program_id})
        return _result_response(result)

    @api.post("/api/microwave/programs/custom/<program_id>/start")
    @token_required
    def start_custom_program(program_id: str):
        result = heating_service.start_custom_program(program_id, store())
        _audit("custom_program_started", result, details={"id": program_id})
        return _result_response(result)

    # --- Characters ---

    @api.get("/api/microwave/characters/used")
    @token_required
    def used_characters():
        return jsonify({"characters": catalog.get_used_characters()})

    @api.get("/api/microwave/characters/<character>/unique")
    @token_required
    def character_unique(character: str):
        exclude_id = request.args.get("excludeId")
        return jsonify({"character": character, "isUnique": catalog.is_character_unique(character, exclude_id)})

    return api


def _to_program(body: CustomProgramRequest, program_id: Optional[str] = None) -> CustomProgram:
    fields = dict(
        name=body.name,
        food=body.food,
        power_level=body.power_level,
        duration_seconds=body.duration_seconds,
        character=body.character,
        instructions=body.instructions or "",
    )
    if program_id is not None:
        fields["id"] = program_id
    return CustomProgram(**fields)


# --- Error handlers ---

def register_error_handlers(app: Flask):
    """Attaches request ids and JSON error bodies to the app."""

    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def echo_request_id(response):
        if "request_id" in g:
            response.headers["X-Request-ID"] = g.request_id
        return response

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        messages = [f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()]
        logging.info(f"Rejected request body for {request.path}: {messages}")
        body = ErrorResponse(
            message="Dados da requisição inválidos.",
            error_code="VALIDATION_ERROR",
            request_id=g.get("request_id", ""),
            validation_errors=messages,
        )
        return jsonify(_dump(body)), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        if isinstance(e, HTTPException):
            return e
        request_id = audit_log.log_exception(e, g.get("request_id"), details={"path": request.path})
        body = ErrorResponse(message="Erro interno do servidor", error_code="INTERNAL_ERROR", request_id=request_id)
        return jsonify(_dump(body)), 500
