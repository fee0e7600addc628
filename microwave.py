"""
Main application bootstrap file.

This script initializes the Flask application and the SocketIO server, builds
the repositories and services, and registers the HTTP routes, the error
handlers and the SocketIO event handlers. It is responsible for starting the
server and bringing all components of the application online.
"""
import logging
from typing import Optional

import debugpy
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

import config
import events
from audit_logger import audit_log
from auth import AuthService, JsonAuthRepository
from custom_program_repository import JsonCustomProgramRepository
from custom_program_service import CustomProgramService
from heating import HeatingService
from program_catalog import ProgramCatalog
from routes import create_api, register_error_handlers

CONFIG_KEYS = (
    "DEBUG_MODE",
    "ASYNC_MODE",
    "DATA_DIR",
    "CUSTOM_PROGRAMS_FILE",
    "AUTH_SETTINGS_FILE",
    "AUDIT_LOG_FILE",
    "SECRET_KEY",
    "TOKEN_TTL_SECONDS",
    "AUTH_REQUIRED",
    "QUICK_HEAT_SECONDS",
    "QUICK_HEAT_POWER",
)

# --- CONFIGURATION ---
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


def create_app(config_overrides: Optional[dict] = None) -> tuple[Flask, SocketIO]:
    """
    Builds the Flask app and its SocketIO server with every service wired in.

    Args:
        config_overrides: Replaces any of the values from config.py, e.g.
            temporary file paths and ASYNC_MODE="threading" in tests.

    Returns:
        The (app, socketio) pair, ready for `socketio.run(app)`.
    """
    app = Flask(__name__)
    app.config.update({key: getattr(config, key) for key in CONFIG_KEYS})
    app.config.update(config_overrides or {})
    app.secret_key = app.config["SECRET_KEY"]

    CORS(app)
    socketio = SocketIO(app, cors_allowed_origins="*", async_mode=app.config["ASYNC_MODE"])

    audit_log.configure(app.config["AUDIT_LOG_FILE"])
    audit_log.register_socketio(socketio)

    repository = JsonCustomProgramRepository(app.config["CUSTOM_PROGRAMS_FILE"])
    catalog = ProgramCatalog(repository)
    heating_service = HeatingService(
        catalog,
        quick_heat_seconds=app.config["QUICK_HEAT_SECONDS"],
        quick_heat_power=app.config["QUICK_HEAT_POWER"],
    )
    program_service = CustomProgramService(repository, catalog)
    auth_service = AuthService(
        JsonAuthRepository(app.config["AUTH_SETTINGS_FILE"]),
        app.config["SECRET_KEY"],
        app.config["TOKEN_TTL_SECONDS"],
    )

    app.register_blueprint(create_api(heating_service, catalog, program_service, auth_service))
    register_error_handlers(app)
    # Register all event handlers from the events module.
    events.register_events(socketio, heating_service, catalog, auth_service)

    logging.info(f"Microwave service initialized with data directory {app.config['DATA_DIR']}")
    return app, socketio


# --- MAIN EXECUTION ---
if __name__ == "__main__":
    app, socketio = create_app()
    if config.DEBUG_MODE:
        debugpy.listen(("0.0.0.0", 5678))
        app.logger.info("Debugpy server listening. Waiting for debugger to attach...")
        debugpy.wait_for_client()
        app.logger.info("Debugger attached.")

    app.logger.info(f"Starting Microwave Server on http://127.0.0.1:{config.SERVER_PORT}")
    socketio.run(app, port=config.SERVER_PORT)
