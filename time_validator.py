"""
Duration policy for the three heating modes.

The policy is a small closed table: each mode maps to the inclusive range of
seconds it accepts. Validation is a pure lookup with no side effects.
"""
from enum import Enum
from typing import NamedTuple

from errors import InvalidDurationError


class HeatingMode(Enum):
    MANUAL = "Manual"
    PREDEFINED = "Predefined"
    CUSTOM = "Custom"


class TimeRange(NamedTuple):
    min_seconds: int
    max_seconds: int


TIME_POLICY: dict[HeatingMode, TimeRange] = {
    HeatingMode.MANUAL: TimeRange(1, 120),
    HeatingMode.PREDEFINED: TimeRange(1, 1800),
    HeatingMode.CUSTOM: TimeRange(1, 7200),
}

# Human-readable label for each mode, used in error messages.
_MODE_LABELS = {
    HeatingMode.MANUAL: "Aquecimento manual",
    HeatingMode.PREDEFINED: "Programa pré-definido",
    HeatingMode.CUSTOM: "Programa customizado",
}


def get_range(mode: HeatingMode) -> TimeRange:
    """Returns the allowed duration range for a mode."""
    return TIME_POLICY[mode]


def describe_range(mode: HeatingMode) -> str:
    """Returns a short hint like 'Aquecimento manual permite 1-120 segundos'."""
    allowed = TIME_POLICY[mode]
    return f"{_MODE_LABELS[mode]} permite {allowed.min_seconds}-{allowed.max_seconds} segundos"


def validate(mode: HeatingMode, duration_seconds: int) -> None:
    """
    Checks a duration against the policy of the given mode.

    Args:
        mode: The heating mode whose range applies.
        duration_seconds: The requested duration.

    Raises:
        InvalidDurationError: If the duration is outside the mode's range.
    """
    allowed = TIME_POLICY[mode]
    if duration_seconds < allowed.min_seconds or duration_seconds > allowed.max_seconds:
        raise InvalidDurationError(
            f"{_MODE_LABELS[mode]}: o tempo deve estar entre {allowed.min_seconds} e {allowed.max_seconds} segundos.",
            mode=mode,
            min_seconds=allowed.min_seconds,
            max_seconds=allowed.max_seconds,
        )
