import csv
import json
import logging
import os
import threading
import uuid
from typing import Optional

from utils import get_timestamp

HEADER = ["Timestamp", "Event", "SessionID", "Source", "ErrorCode", "Details"]


class AuditLogger:
    """
    Append-only CSV trail of user-visible operations (heating commands,
    program changes, logins, unhandled errors).

    The file is created lazily on the first event, so importing the module
    never touches the disk. Each row is also broadcast to connected clients
    as an `audit_event` once a Socket.IO server is registered.
    """

    def __init__(self, filepath: Optional[str] = None):
        self.filepath = filepath
        self.lock = threading.Lock()
        self._initialized = False
        self.socketio = None

    def configure(self, filepath: str):
        """Points the logger at a new file; the header is written on the next event."""
        with self.lock:
            self.filepath = filepath
            self._initialized = False

    def register_socketio(self, sio):
        """Allows the main app to register the Socket.IO instance."""
        self.socketio = sio

    def _initialize_file(self):
        """Creates the CSV file and writes the header if it doesn't exist. Callers hold the lock."""
        os.makedirs(os.path.dirname(os.path.abspath(self.filepath)), exist_ok=True)
        file_exists = os.path.exists(self.filepath)
        with open(self.filepath, "a", newline="", encoding="utf-8") as f:
            if not file_exists or os.path.getsize(self.filepath) == 0:
                csv.writer(f).writerow(HEADER)
        self._initialized = True

    def log_event(self, event, session_id=None, source=None, error_code=None, details=None):
        """
        Logs a new event to the CSV file and broadcasts it over Socket.IO.

        Does nothing but log a debug line while no file is configured.
        """
        if not self.filepath:
            logging.debug(f"Audit event '{event}' dropped: no audit file configured.")
            return

        def serialize(value):
            if value is None:
                return ""
            if isinstance(value, (dict, list)):
                return json.dumps(value, ensure_ascii=False, default=str)
            return str(value)

        row = [
            get_timestamp(),
            serialize(event),
            serialize(session_id or "N/A"),
            serialize(source or "N/A"),
            serialize(error_code),
            serialize(details),
        ]

        with self.lock:
            if not self._initialized:
                self._initialize_file()
            with open(self.filepath, "a", newline="", encoding="utf-8") as f:
                csv.writer(f, quoting=csv.QUOTE_ALL).writerow(row)

            if self.socketio:
                payload = {
                    "event": event,
                    "session_id": session_id,
                    "source": source,
                    "error_code": error_code,
                    "details": details,
                }
                self.socketio.start_background_task(self.socketio.emit, "audit_event", payload)

    def log_exception(self, exc: Exception, request_id: Optional[str] = None, details=None) -> str:
        """
        Records an unhandled exception and returns the request id under which
        it was filed, generating one if none was given.
        """
        request_id = request_id or str(uuid.uuid4())
        logging.error(f"Unhandled exception (request {request_id}): {exc}", exc_info=exc)
        self.log_event(
            "unhandled_exception",
            session_id=request_id,
            source="server",
            error_code="INTERNAL_ERROR",
            details={"type": type(exc).__name__, "error": str(exc), "context": details},
        )
        return request_id

    def recent_events(self, count: int = 50) -> list[dict]:
        """The last `count` rows of the trail as dicts keyed by the CSV header."""
        if not self.filepath or not os.path.exists(self.filepath):
            return []
        with self.lock:
            with open(self.filepath, "r", newline="", encoding="utf-8") as f:
                rows = list(csv.DictReader(f))
        return rows[-count:] if count > 0 else []


# Create a single, global instance to be used by the entire application
audit_log = AuditLogger()
