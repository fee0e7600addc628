"""
Defines the high-level data structures for a user's heating session.

A heating session is exactly one of three variants, each carrying only the
fields that are meaningful in that state:

- StoppedSession: nothing running; may keep the remnants (oven config,
  program id, display character) of a cycle that just finished.
- ActiveHeating: heating since `started_at` towards `oven.duration_seconds`.
- PausedSession: heating suspended with `remaining_seconds` left.

The external session store only holds loosely-typed strings, so this module
also owns the codec between the typed union and the store keys. All reads and
writes of those keys go through `load_session` and `save_session`.
"""
import logging
from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from errors import NoPauseDataError
from oven import OvenConfig
from session_store import SessionStore

# --- Session store keys ---
KEY_CURRENT_OVEN = "CurrentOven"
KEY_IS_HEATING = "IsHeating"
KEY_START_TIME = "StartTime"
KEY_STATE = "MicrowaveState"
KEY_PAUSED_REMAINING = "PausedRemainingTime"
KEY_CURRENT_PROGRAM = "CurrentProgram"
KEY_HEATING_CHAR = "HeatingChar"

STATE_STOPPED = "STOPPED"
STATE_HEATING = "HEATING"
STATE_PAUSED = "PAUSED"

DEFAULT_HEATING_CHAR = "."


class _SessionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Set while a predefined ("Pipoca") or custom ("custom-<id>") program runs.
    program_id: Optional[str] = None
    # The glyph used for progress ticks; None means the default '.'.
    heating_char: Optional[str] = None

    @property
    def display_char(self) -> str:
        return self.heating_char or DEFAULT_HEATING_CHAR


class StoppedSession(_SessionBase):
    state: Literal["STOPPED"] = STATE_STOPPED
    # Remnant of a finished cycle; cleared by pause/cancel.
    oven: Optional[OvenConfig] = None

    @property
    def has_remnants(self) -> bool:
        return self.oven is not None or self.program_id is not None or self.heating_char is not None


class ActiveHeating(_SessionBase):
    state: Literal["HEATING"] = STATE_HEATING
    oven: OvenConfig
    started_at: datetime


class PausedSession(_SessionBase):
    state: Literal["PAUSED"] = STATE_PAUSED
    # The config of the interrupted cycle; only its power level survives a resume.
    oven: OvenConfig
    remaining_seconds: int = Field(ge=0)


HeatingSession = Annotated[
    Union[StoppedSession, ActiveHeating, PausedSession],
    Field(discriminator="state"),
]


# --- Codec ---

def _load_oven(store: SessionStore) -> Optional[OvenConfig]:
    raw = store.get_string(KEY_CURRENT_OVEN)
    if not raw:
        return None
    try:
        return OvenConfig.model_validate_json(raw)
    except ValidationError as e:
        logging.warning(f"Ignoring unreadable oven config in session: {e}")
        return None


def _load_start_time(store: SessionStore) -> Optional[datetime]:
    raw = store.get_string(KEY_START_TIME)
    if not raw:
        return None
    try:
        started_at = datetime.fromisoformat(raw)
    except ValueError:
        logging.warning(f"Ignoring unreadable start time in session: {raw!r}")
        return None
    # Naive timestamps are treated as UTC.
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=timezone.utc)
    return started_at


def load_session(store: SessionStore) -> HeatingSession:
    """
    Reads the heating session out of a key-value session store.

    Args:
        store: The per-user session store.

    Returns:
        The typed session. A HEATING tag whose data is missing or unreadable
        decodes as a StoppedSession holding whatever remnants are present.

    Raises:
        NoPauseDataError: If the store is tagged PAUSED but the remaining time
            or the oven config is missing.
    """
    state = store.get_string(KEY_STATE) or STATE_STOPPED
    oven = _load_oven(store)
    program_id = store.get_string(KEY_CURRENT_PROGRAM) or None
    heating_char = store.get_string(KEY_HEATING_CHAR) or None

    if state == STATE_PAUSED:
        raw_remaining = store.get_string(KEY_PAUSED_REMAINING)
        if not raw_remaining or oven is None:
            raise NoPauseDataError()
        try:
            remaining = int(raw_remaining)
        except ValueError:
            raise NoPauseDataError()
        return PausedSession(
            oven=oven,
            remaining_seconds=max(remaining, 0),
            program_id=program_id,
            heating_char=heating_char,
        )

    if state == STATE_HEATING and store.get_string(KEY_IS_HEATING) == "true" and oven is not None:
        started_at = _load_start_time(store)
        if started_at is not None:
            return ActiveHeating(oven=oven, started_at=started_at, program_id=program_id, heating_char=heating_char)

    if state not in (STATE_STOPPED, STATE_HEATING):
        logging.warning(f"Unknown microwave state '{state}' in session; treating it as stopped.")
    return StoppedSession(oven=oven, program_id=program_id, heating_char=heating_char)


def _set_or_remove(store: SessionStore, key: str, value: Optional[str]) -> None:
    if value is None:
        store.remove(key)
    else:
        store.set_string(key, value)


def save_session(store: SessionStore, session: HeatingSession) -> None:
    """
    Writes a heating session back to the store, removing keys the variant does not carry.

    The state tag goes first: if the store fails partway, the tag is either
    untouched or already describes the new variant, and load_session decodes
    incomplete HEATING or PAUSED data as a stopped or unresumable session.
    """
    store.set_string(KEY_STATE, session.state)
    oven_json = session.oven.model_dump_json(by_alias=True) if session.oven is not None else None
    _set_or_remove(store, KEY_CURRENT_OVEN, oven_json)
    _set_or_remove(store, KEY_CURRENT_PROGRAM, session.program_id)
    _set_or_remove(store, KEY_HEATING_CHAR, session.heating_char)

    if isinstance(session, ActiveHeating):
        store.set_string(KEY_IS_HEATING, "true")
        store.set_string(KEY_START_TIME, session.started_at.isoformat())
        store.remove(KEY_PAUSED_REMAINING)
    elif isinstance(session, PausedSession):
        store.set_string(KEY_IS_HEATING, "false")
        store.set_string(KEY_PAUSED_REMAINING, str(session.remaining_seconds))
        store.remove(KEY_START_TIME)
    else:
        _set_or_remove(store, KEY_IS_HEATING, "false" if session.has_remnants else None)
        store.remove(KEY_START_TIME)
        store.remove(KEY_PAUSED_REMAINING)
