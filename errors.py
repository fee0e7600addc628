"""
Defines the exception taxonomy for the microwave service.

Every failure the domain knows about is a MicrowaveError carrying a short,
user-facing message (in Portuguese, like the rest of the UI) and a stable
machine-readable error code. The services raise these internally and convert
them into OperationResult objects at their public boundary, so callers never
have to catch them in normal flow.
"""
from typing import Optional


class MicrowaveError(Exception):
    """Base class for all domain errors raised by the microwave service."""

    error_code = "MICROWAVE_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code


class InvalidParametersError(MicrowaveError):
    """A duration or power level falls outside the policy of the requested mode."""

    error_code = "INVALID_PARAMETERS"


class InvalidDurationError(InvalidParametersError):
    """Raised by the time validator; carries the mode and its allowed range."""

    def __init__(self, message: str, mode, min_seconds: int, max_seconds: int):
        super().__init__(message)
        self.mode = mode
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds


class InvalidPowerError(InvalidParametersError):
    pass


class InvalidTimeError(MicrowaveError):
    """A time increase would push the total outside the manual range."""

    error_code = "INVALID_TIME"


class NotHeatingError(MicrowaveError):
    error_code = "NOT_HEATING"


class PredefinedProgramError(MicrowaveError):
    """Time increase attempted while a named program is running."""

    error_code = "PREDEFINED_PROGRAM"


class NotRunningError(MicrowaveError):
    error_code = "NOT_RUNNING"


class NoPauseDataError(MicrowaveError):
    error_code = "NO_PAUSE_DATA"

    def __init__(self, message: str = "Erro: Dados de pausa não encontrados."):
        super().__init__(message)


class ProgramNotFoundError(MicrowaveError):
    error_code = "PROGRAM_NOT_FOUND"


class CustomProgramNotFoundError(MicrowaveError):
    error_code = "CUSTOM_PROGRAM_NOT_FOUND"


class ValidationFailedError(MicrowaveError):
    """Custom program validation failed; `errors` holds every violated rule."""

    error_code = "VALIDATION_FAILED"

    def __init__(self, errors: list[str]):
        super().__init__(", ".join(errors))
        self.errors = list(errors)


class AuthenticationError(MicrowaveError):
    """Login or configuration failure. Codes: NOT_CONFIGURED, INVALID_CREDENTIALS, INTERNAL_ERROR."""

    error_code = "AUTHENTICATION_FAILED"
