import csv
from unittest.mock import MagicMock

from audit_logger import HEADER, AuditLogger


def _rows(path):
    with open(path, "r", newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_file_is_created_lazily(tmp_path):
    path = tmp_path / "logs" / "audit.csv"
    logger = AuditLogger(str(path))
    assert not path.exists()

    logger.log_event("heating_started", session_id="abc", source="http", details={"power": 5})

    rows = _rows(path)
    assert rows[0] == HEADER
    assert rows[1][1:] == ["heating_started", "abc", "http", "", '{"power": 5}']


def test_unconfigured_logger_does_nothing(tmp_path):
    logger = AuditLogger()
    logger.log_event("ignored")
    assert logger.recent_events() == []


def test_recent_events(tmp_path):
    logger = AuditLogger(str(tmp_path / "audit.csv"))
    for i in range(5):
        logger.log_event(f"event_{i}")

    recent = logger.recent_events(2)
    assert [row["Event"] for row in recent] == ["event_3", "event_4"]
    assert recent[0]["SessionID"] == "N/A"


def test_configure_switches_file(tmp_path):
    logger = AuditLogger(str(tmp_path / "first.csv"))
    logger.log_event("one")
    logger.configure(str(tmp_path / "second.csv"))
    logger.log_event("two")

    assert [row["Event"] for row in logger.recent_events()] == ["two"]
    assert _rows(tmp_path / "second.csv")[0] == HEADER


def test_events_are_broadcast(tmp_path):
    logger = AuditLogger(str(tmp_path / "audit.csv"))
    socketio = MagicMock()
    logger.register_socketio(socketio)

    logger.log_event("pause_or_cancel", session_id="sid-1", source="socketio", error_code="NOT_RUNNING")

    socketio.start_background_task.assert_called_once()
    args = socketio.start_background_task.call_args.args
    assert args[0] is socketio.emit
    assert args[1] == "audit_event"
    assert args[2]["error_code"] == "NOT_RUNNING"


def test_log_exception(tmp_path, mocker):
    mocker.patch("audit_logger.uuid.uuid4", return_value="generated-id")
    logger = AuditLogger(str(tmp_path / "audit.csv"))

    request_id = logger.log_exception(RuntimeError("boom"), details={"path": "/x"})

    assert request_id == "generated-id"
    event = logger.recent_events(1)[0]
    assert event["Event"] == "unhandled_exception"
    assert event["SessionID"] == "generated-id"
    assert event["ErrorCode"] == "INTERNAL_ERROR"
    assert "boom" in event["Details"]
