"""
Handles all SocketIO event logic for the application.

This module is the real-time twin of the HTTP API: a connected control panel
sends heating commands as events and receives the outcome plus a fresh status
snapshot after each one. Every connection owns its own in-memory heating
session, keyed by the SocketIO connection id. It is registered by the main
microwave.py script.
"""

import logging
from typing import Optional

from flask import current_app, request
from flask_socketio import SocketIO

from audit_logger import audit_log
from data_models import OperationResult
from session_store import InMemorySessionStore

# --- Module-level state ---
# Heating sessions of all active connections, keyed by connection id.
heating_sessions: dict[str, InMemorySessionStore] = {}


def _as_int(data: Optional[dict], *keys: str, default: Optional[int] = None) -> Optional[int]:
    """Reads the first present key of an event payload as an int."""
    for key in keys:
        value = (data or {}).get(key)
        if value is not None:
            try:
                return int(value)
            except (TypeError, ValueError):
                return None
    return default


def register_events(socketio: SocketIO, heating_service, catalog, auth_service):
    """
    Registers all SocketIO event handlers with the main application.

    Args:
        socketio: The server to attach handlers to.
        heating_service: Runs heating commands against a connection's session.
        catalog: Provides the program list.
        auth_service: Validates the token presented on connect.
    """

    def emit_status(session_id: str, store: InMemorySessionStore) -> None:
        status = heating_service.get_heating_status(store)
        socketio.emit("heating_status", status.model_dump(by_alias=True, mode="json"), to=session_id)

    def reply(event: str, result: OperationResult) -> None:
        """Sends the outcome of a command, then the status it left behind."""
        session_id = request.sid
        store = heating_sessions.get(session_id)
        socketio.emit("operation_result", result.model_dump(by_alias=True, mode="json"), to=session_id)
        audit_log.log_event(event, session_id=session_id, source="socketio", error_code=result.error_code, details=result.message)
        if store is not None:
            emit_status(session_id, store)

    def current_store() -> Optional[InMemorySessionStore]:
        session_id = request.sid
        store = heating_sessions.get(session_id)
        if store is None:
            socketio.emit(
                "operation_result",
                OperationResult.error("Sessão não encontrada. Recarregue a página.", "NO_SESSION").model_dump(by_alias=True),
                to=session_id,
            )
        return store

    @socketio.on("connect")
    def handle_connect(auth=None):
        """
        Handles a new client connection by creating an empty heating session.

        Refuses the connection when a token is required and the `auth`
        payload does not carry a valid one.
        """
        session_id = request.sid
        if current_app.config.get("AUTH_REQUIRED", True):
            token = (auth or {}).get("token") if isinstance(auth, dict) else None
            if not auth_service.validate_token(token):
                logging.warning(f"Rejected connection {session_id}: missing or invalid token.")
                return False

        heating_sessions[session_id] = InMemorySessionStore()
        logging.info(f"Client connected: {session_id}")
        emit_status(session_id, heating_sessions[session_id])

    @socketio.on("disconnect")
    def handle_disconnect(reason=None):
        """Handles client disconnection by cleaning up session data."""
        session_id = request.sid
        if heating_sessions.pop(session_id, None) is not None:
            logging.info(f"Client disconnected: {session_id}")

    @socketio.on("start_heating")
    def handle_start_heating(data: dict):
        """
        Starts manual heating (or resumes a paused session).

        Args:
            data: {"timeInSeconds": 30, "powerLevel": 10}
        """
        if (store := current_store()) is None:
            return
        duration = _as_int(data, "timeInSeconds", "durationSeconds")
        power = _as_int(data, "powerLevel", default=10)
        if duration is None or power is None:
            reply("heating_started", OperationResult.error("Tempo e potência devem ser números inteiros.", "INVALID_PARAMETERS"))
            return
        reply("heating_started", heating_service.start_heating(duration, power, store))

    @socketio.on("quick_heat")
    def handle_quick_heat(data=None):
        if (store := current_store()) is None:
            return
        reply("quick_heat", heating_service.start_quick_heat(store))

    @socketio.on("start_predefined_program")
    def handle_start_predefined_program(data: dict):
        """Args: data: {"name": "Pipoca"}"""
        if (store := current_store()) is None:
            return
        reply("predefined_program_started", heating_service.start_predefined_program((data or {}).get("name", ""), store))

    @socketio.on("start_custom_program")
    def handle_start_custom_program(data: dict):
        """Args: data: {"id": "<program id>"}"""
        if (store := current_store()) is None:
            return
        reply("custom_program_started", heating_service.start_custom_program((data or {}).get("id", ""), store))

    @socketio.on("increase_time")
    def handle_increase_time(data: dict):
        if (store := current_store()) is None:
            return
        additional = _as_int(data, "additionalSeconds", default=30)
        if additional is None:
            reply("time_increased", OperationResult.error("Tempo adicional deve ser um número inteiro.", "INVALID_TIME"))
            return
        reply("time_increased", heating_service.increase_time(additional, store))

    @socketio.on("pause_or_cancel")
    def handle_pause_or_cancel(data=None):
        if (store := current_store()) is None:
            return
        reply("pause_or_cancel", heating_service.pause_or_cancel(store))

    @socketio.on("request_heating_status")
    def handle_heating_status_request(data=None):
        """Handles a client's request for its current heating status."""
        if (store := current_store()) is None:
            return
        emit_status(request.sid, store)

    @socketio.on("request_programs")
    def handle_programs_request(data=None):
        """Handles a client's request for the combined program list."""
        programs = [p.model_dump(by_alias=True, mode="json") for p in catalog.get_all_programs()]
        socketio.emit("program_list", programs, to=request.sid)
