"""
Oven construction: validated (duration, power) pairs for each heating mode.

An OvenConfig is an immutable value object. It is built through `create_oven`
(or one of the mode shortcuts), which enforces the power range and delegates
the duration check to the time validator. Nothing here tracks real time.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

import time_validator
from errors import InvalidPowerError
from time_validator import HeatingMode

MIN_POWER = 1
MAX_POWER = 10


class OvenConfig(BaseModel):
    """The duration and power level of one heating cycle."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    duration_seconds: int
    power_level: int


def create_oven(mode: HeatingMode, duration_seconds: int, power_level: int) -> OvenConfig:
    """
    Validates a duration and power level for a mode and builds the config.

    Args:
        mode: Selects which duration range applies.
        duration_seconds: Requested duration in seconds.
        power_level: Requested power, always 1-10 regardless of mode.

    Returns:
        The validated, immutable OvenConfig.

    Raises:
        InvalidPowerError: If the power level is out of range.
        InvalidDurationError: If the duration is out of the mode's range.
    """
    if power_level < MIN_POWER or power_level > MAX_POWER:
        raise InvalidPowerError(f"Potência deve estar entre {MIN_POWER} e {MAX_POWER}.")
    time_validator.validate(mode, duration_seconds)
    return OvenConfig(duration_seconds=duration_seconds, power_level=power_level)


def create_manual(duration_seconds: int, power_level: int) -> OvenConfig:
    return create_oven(HeatingMode.MANUAL, duration_seconds, power_level)


def create_predefined(duration_seconds: int, power_level: int) -> OvenConfig:
    return create_oven(HeatingMode.PREDEFINED, duration_seconds, power_level)


def create_custom(duration_seconds: int, power_level: int) -> OvenConfig:
    return create_oven(HeatingMode.CUSTOM, duration_seconds, power_level)
