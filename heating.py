"""
The heating session state machine.

Heating is simulated: nothing runs in the background. A session records when
it started, and every query compares that timestamp with "now" to derive the
remaining time, the progress percentage and the progress string. The state
machine is therefore split in two layers:

- Pure transition functions (`begin`, `advance`, `pause`, `resume`, `extend`)
  that take a session and an explicit `now` and return new immutable
  sessions. They raise MicrowaveError subclasses on rule violations.
- HeatingService, which loads the session from a key-value session store,
  applies a transition, writes the result back and converts domain errors
  into OperationResult envelopes.

Known limitation: each operation is a read-modify-write of the session store
without locking, so two concurrent requests on the same session are
last-write-wins (e.g. two simultaneous time increases may lose one).
"""
import logging
import math
from datetime import datetime
from typing import Callable, Optional

import oven
from data_models import HeatingStatusResponse, MicrowaveStatus, OperationResult, PredefinedProgram
from errors import (
    CustomProgramNotFoundError,
    InvalidParametersError,
    InvalidTimeError,
    MicrowaveError,
    NoPauseDataError,
    NotHeatingError,
    NotRunningError,
    PredefinedProgramError,
    ProgramNotFoundError,
)
from oven import OvenConfig
from session_models import (
    DEFAULT_HEATING_CHAR,
    ActiveHeating,
    HeatingSession,
    PausedSession,
    StoppedSession,
    load_session,
    save_session,
)
from session_store import SessionStore
from utils import format_time_display, utc_now

QUICK_HEAT_SECONDS = 30
QUICK_HEAT_POWER = 10
CUSTOM_PROGRAM_PREFIX = "custom-"


# --- Display helpers ---

def generate_progress_string(power_level: int, elapsed_seconds: int, heating_char: str = DEFAULT_HEATING_CHAR) -> str:
    """
    Renders one segment per elapsed second, each the heating character repeated
    `power_level` times, joined by single spaces.

    Example: power 2, 3 seconds, '∩' -> '∩∩ ∩∩ ∩∩'.

    The result grows linearly with the elapsed time and is rebuilt on every
    query.
    """
    if elapsed_seconds <= 0:
        return ""
    segment = (heating_char or DEFAULT_HEATING_CHAR)[0] * power_level
    return " ".join([segment] * elapsed_seconds)


def paused_message(remaining_seconds: int) -> str:
    return f"PAUSADO - Restam {format_time_display(remaining_seconds)}. Pressione 'Retomar Aquecimento' para continuar."


# --- Pure transitions ---

def elapsed_seconds(session: ActiveHeating, now: datetime) -> int:
    """Whole seconds since the session started, floored and never negative."""
    return max(0, math.floor((now - session.started_at).total_seconds()))


def begin(
    config: OvenConfig,
    now: datetime,
    program_id: Optional[str] = None,
    heating_char: Optional[str] = None,
) -> ActiveHeating:
    """Starts a fresh cycle at `now`."""
    return ActiveHeating(oven=config, started_at=now, program_id=program_id, heating_char=heating_char)


def advance(session: HeatingSession, now: datetime) -> tuple[HeatingSession, MicrowaveStatus]:
    """
    Derives the status of a session at `now`.

    This is the only transition driven by time: once the elapsed time reaches
    the target duration, an ActiveHeating session becomes a StoppedSession
    (keeping the finished cycle's config, program and character as remnants).
    In every other case the same session object is returned unchanged.

    Returns:
        A (session, status) pair.
    """
    if isinstance(session, PausedSession):
        remaining = session.remaining_seconds
        return session, MicrowaveStatus(
            is_running=False,
            remaining_time=remaining,
            power_level=session.oven.power_level,
            progress=0,
            status_message=paused_message(remaining),
            formatted_remaining_time=format_time_display(remaining),
        )

    if not isinstance(session, ActiveHeating):
        return session, MicrowaveStatus.stopped()

    duration = session.oven.duration_seconds
    power = session.oven.power_level
    elapsed = elapsed_seconds(session, now)

    if elapsed >= duration:
        finished = StoppedSession(oven=session.oven, program_id=session.program_id, heating_char=session.heating_char)
        return finished, MicrowaveStatus(
            is_running=False,
            remaining_time=0,
            power_level=power,
            progress=100,
            status_message=generate_progress_string(power, duration, session.display_char) + " Aquecimento concluído",
            formatted_remaining_time="0s",
        )

    remaining = duration - elapsed
    return session, MicrowaveStatus(
        is_running=True,
        remaining_time=remaining,
        power_level=power,
        progress=elapsed * 100 // duration,
        status_message=generate_progress_string(power, elapsed, session.display_char),
        formatted_remaining_time=format_time_display(remaining),
    )


def pause(session: ActiveHeating, now: datetime) -> PausedSession:
    """
    Snapshots the remaining time of a running cycle.

    Program id and heating character are carried over so a resumed program
    still renders with its own glyph and still refuses time increases.

    Raises:
        NotHeatingError: If the cycle has already run to completion.
    """
    remaining = session.oven.duration_seconds - elapsed_seconds(session, now)
    if remaining <= 0:
        raise NotHeatingError("Erro: Micro-ondas não está aquecendo.")
    return PausedSession(
        oven=session.oven,
        remaining_seconds=remaining,
        program_id=session.program_id,
        heating_char=session.heating_char,
    )


def resume(session: PausedSession, now: datetime) -> ActiveHeating:
    """Restarts the clock with the remaining time as the new target, keeping the power level."""
    config = OvenConfig(duration_seconds=session.remaining_seconds, power_level=session.oven.power_level)
    return begin(config, now, program_id=session.program_id, heating_char=session.heating_char)


def extend(session: ActiveHeating, additional_seconds: int) -> ActiveHeating:
    """
    Raises the target duration of a manual cycle without touching its clock.

    The new total is re-validated against the manual range even if the cycle
    was started with a wider one.

    Raises:
        PredefinedProgramError: If a named program is running.
        InvalidTimeError: If the new total is outside the manual range.
    """
    if session.program_id:
        raise PredefinedProgramError("Erro: Não é permitido aumentar tempo em programa pré-definido.")
    try:
        config = oven.create_manual(session.oven.duration_seconds + additional_seconds, session.oven.power_level)
    except InvalidParametersError as e:
        raise InvalidTimeError(e.message)
    return session.model_copy(update={"oven": config})


# --- Service ---

class HeatingService:
    """
    Runs the state machine against a per-user session store.

    Time-dependent operations accept an optional `now`; when omitted the
    injected clock is used. Mutating operations return OperationResult and
    never raise for domain errors.

    Args:
        catalog: The ProgramCatalog used to resolve predefined and custom programs.
        clock: Returns the current time as an aware datetime.
    """

    def __init__(
        self,
        catalog,
        clock: Callable[[], datetime] = utc_now,
        quick_heat_seconds: int = QUICK_HEAT_SECONDS,
        quick_heat_power: int = QUICK_HEAT_POWER,
    ):
        self.catalog = catalog
        self.clock = clock
        self.quick_heat_seconds = quick_heat_seconds
        self.quick_heat_power = quick_heat_power

    def _run(self, operation: Callable[..., OperationResult], *args) -> OperationResult:
        try:
            return operation(*args)
        except MicrowaveError as e:
            logging.info(f"Heating operation rejected: {e.error_code} - {e.message}")
            return OperationResult.error(e.message, e.error_code)
        except Exception:
            logging.exception(f"Heating operation {operation.__name__} failed on the session store.")
            return OperationResult.error("Erro ao acessar a sessão.", "STORAGE_ERROR")

    # --- Starting ---

    def start_heating(
        self, duration_seconds: int, power_level: int, store: SessionStore, now: Optional[datetime] = None
    ) -> OperationResult:
        """
        Starts manual heating, or resumes if the session is paused.

        When paused, the given duration and power are ignored so the same
        "start" button doubles as "resume".
        """
        return self._run(self._start_heating, duration_seconds, power_level, store, now or self.clock())

    def _start_heating(self, duration_seconds: int, power_level: int, store: SessionStore, now: datetime) -> OperationResult:
        session = load_session(store)
        if isinstance(session, PausedSession):
            return self._resume(session, store, now)

        config = oven.create_manual(duration_seconds, power_level)
        save_session(store, begin(config, now))
        logging.info(f"Manual heating started: {duration_seconds}s at power {power_level}.")
        return OperationResult.ok(
            f"Aquecimento iniciado: {format_time_display(duration_seconds)} a potência {power_level}."
        )

    def start_quick_heat(self, store: SessionStore, now: Optional[datetime] = None) -> OperationResult:
        """Manual heating with the fixed quick-start preset (30 s at power 10)."""
        return self.start_heating(self.quick_heat_seconds, self.quick_heat_power, store, now)

    def start_predefined_program(self, name: str, store: SessionStore, now: Optional[datetime] = None) -> OperationResult:
        return self._run(self._start_predefined_program, name, store, now or self.clock())

    def _start_predefined_program(self, name: str, store: SessionStore, now: datetime) -> OperationResult:
        session = load_session(store)
        if isinstance(session, PausedSession):
            return self._resume(session, store, now)

        program = self.catalog.get_predefined_program(name)
        if program is None:
            raise ProgramNotFoundError(f"Erro: Programa '{name}' não encontrado.")

        config = oven.create_predefined(program.duration_seconds, program.power_level)
        save_session(store, begin(config, now, program_id=program.name, heating_char=program.character))
        logging.info(f"Predefined program '{program.name}' started.")
        return OperationResult.ok(
            f"Programa '{program.name}' iniciado: {format_time_display(program.duration_seconds)} "
            f"a potência {program.power_level}."
        )

    def start_custom_program(self, program_id: str, store: SessionStore, now: Optional[datetime] = None) -> OperationResult:
        return self._run(self._start_custom_program, str(program_id), store, now or self.clock())

    def _start_custom_program(self, program_id: str, store: SessionStore, now: datetime) -> OperationResult:
        session = load_session(store)
        if isinstance(session, PausedSession):
            return self._resume(session, store, now)

        try:
            program = self.catalog.get_custom_program(program_id)
        except Exception:
            logging.exception(f"Could not load custom program {program_id}.")
            return OperationResult.error("Erro ao carregar programa customizado.", "STORAGE_ERROR")
        if program is None:
            raise CustomProgramNotFoundError("Erro: Programa customizado não encontrado.")

        config = oven.create_custom(program.duration_seconds, program.power_level)
        save_session(
            store,
            begin(config, now, program_id=f"{CUSTOM_PROGRAM_PREFIX}{program.id}", heating_char=program.character),
        )
        logging.info(f"Custom program '{program.name}' ({program.id}) started.")
        return OperationResult.ok(
            f"Programa '{program.name}' iniciado: {format_time_display(program.duration_seconds)} "
            f"a potência {program.power_level}."
        )

    def _resume(self, session: PausedSession, store: SessionStore, now: datetime) -> OperationResult:
        resumed = resume(session, now)
        save_session(store, resumed)
        logging.info(f"Heating resumed with {resumed.oven.duration_seconds}s remaining.")
        return OperationResult.ok(
            f"Aquecimento retomado: {format_time_display(resumed.oven.duration_seconds)} restantes "
            f"a potência {resumed.oven.power_level}."
        )

    # --- Running cycle ---

    def increase_time(self, additional_seconds: int, store: SessionStore) -> OperationResult:
        """Extends a running manual cycle; programs and non-running sessions are refused."""
        return self._run(self._increase_time, additional_seconds, store)

    def _increase_time(self, additional_seconds: int, store: SessionStore) -> OperationResult:
        try:
            session = load_session(store)
        except NoPauseDataError:
            session = None
        if not isinstance(session, ActiveHeating):
            raise NotHeatingError("Erro: Micro-ondas não está aquecendo.")

        extended = extend(session, additional_seconds)
        save_session(store, extended)
        return OperationResult.ok(f"Tempo aumentado para {format_time_display(extended.oven.duration_seconds)}.")

    def pause_or_cancel(self, store: SessionStore, now: Optional[datetime] = None) -> OperationResult:
        """
        One button, three meanings: pause when heating, cancel when paused,
        clear leftover settings when stopped.
        """
        return self._run(self._pause_or_cancel, store, now or self.clock())

    def _pause_or_cancel(self, store: SessionStore, now: datetime) -> OperationResult:
        try:
            session = load_session(store)
        except NoPauseDataError:
            # Tagged paused without its data: cancelling is still possible.
            return self._cancel(store)

        if isinstance(session, ActiveHeating):
            finished, status = advance(session, now)
            if not status.is_running:
                save_session(store, finished)
            paused = pause(session, now)
            save_session(store, paused)
            logging.info(f"Heating paused with {paused.remaining_seconds}s remaining.")
            return OperationResult.ok(
                f"Aquecimento pausado. Restam {format_time_display(paused.remaining_seconds)}. "
                "Pressione 'Retomar Aquecimento' para continuar."
            )

        if isinstance(session, PausedSession):
            return self._cancel(store)

        if session.has_remnants:
            save_session(store, StoppedSession())
            return OperationResult.ok("Configurações limpas.")

        raise NotRunningError("Micro-ondas já está parado.")

    def _cancel(self, store: SessionStore) -> OperationResult:
        save_session(store, StoppedSession())
        logging.info("Heating cancelled and session cleared.")
        return OperationResult.ok("Aquecimento cancelado. Todas as configurações foram limpas.")

    # --- Queries ---

    def _advance_stored(self, store: SessionStore, now: datetime) -> tuple[HeatingSession, MicrowaveStatus]:
        try:
            session = load_session(store)
        except NoPauseDataError:
            return StoppedSession(), MicrowaveStatus.stopped()
        advanced, status = advance(session, now)
        if advanced is not session:
            save_session(store, advanced)
            logging.info("Heating cycle completed.")
        return advanced, status

    def get_heating_progress(self, store: SessionStore, now: Optional[datetime] = None) -> MicrowaveStatus:
        """
        Returns the current progress. Finalizes the session (HEATING -> STOPPED)
        on the first query at or after the target duration.
        """
        _, status = self._advance_stored(store, now or self.clock())
        return status

    def get_heating_status(self, store: SessionStore, now: Optional[datetime] = None) -> HeatingStatusResponse:
        """Like get_heating_progress, plus the state tag, program and display character."""
        session, status = self._advance_stored(store, now or self.clock())
        return HeatingStatusResponse(
            is_running=status.is_running,
            remaining_time=status.remaining_time,
            power_level=status.power_level,
            progress=status.progress,
            current_state=session.state,
            heating_char=session.heating_char,
            current_program=session.program_id,
            progress_display=status.status_message,
            formatted_remaining_time=status.formatted_remaining_time,
            start_time=session.started_at if isinstance(session, ActiveHeating) else None,
        )

    def get_predefined_programs(self) -> list[PredefinedProgram]:
        return self.catalog.get_predefined_programs()
