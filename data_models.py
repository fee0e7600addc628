"""
Defines the core data structures for the application using Pydantic.

This module provides centralized, validated models shared by the heating
service, the program catalog, the custom program store, the auth layer and
the HTTP/SocketIO surfaces. Every model serializes with camelCase keys
(`model_dump(by_alias=True)`) so the JSON seen by clients and written to disk
matches the wire format the web UI expects, while Python code uses
snake_case attribute names.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from utils import format_program_duration, utc_now


class ApiModel(BaseModel):
    """Base model: camelCase aliases on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Programs ---

class PredefinedProgram(ApiModel):
    """
    One of the five heating presets shipped with the oven.

    Instances are created once at import time and never mutated.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    food: str
    duration_seconds: int
    power_level: int
    # The glyph used to render progress ticks for this program.
    character: str
    instructions: str

    @property
    def program_id(self) -> str:
        """The slug used as the program's id in the combined program list."""
        return self.name.replace(" ", "").lower()


class CustomProgram(ApiModel):
    """
    A user-authored heating preset.

    Field ranges are not enforced by the model itself: the
    CustomProgramValidator collects every violated rule at once, so the model
    only guarantees types.
    """

    # Generated on creation and never changed afterwards.
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    food: str = ""
    power_level: int = 0
    duration_seconds: int = Field(
        default=0,
        validation_alias=AliasChoices("durationSeconds", "timeInSeconds", "duration_seconds"),
        serialization_alias="durationSeconds",
    )
    character: Optional[str] = None
    instructions: str = ""
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_custom(self) -> bool:
        return True


class ProgramDisplayInfo(ApiModel):
    """Uniform shape for predefined and custom programs in the program list."""

    id: str
    name: str
    food: str
    power_level: int
    duration_seconds: int
    character: str
    instructions: str = ""
    is_custom: bool = False
    created_at: Optional[datetime] = None

    @computed_field(alias="displayName")
    @property
    def display_name(self) -> str:
        return f"{self.name} (Personalizado)" if self.is_custom else self.name

    @computed_field(alias="timeFormatted")
    @property
    def time_formatted(self) -> str:
        return format_program_duration(self.duration_seconds)

    @computed_field(alias="cssClass")
    @property
    def css_class(self) -> str:
        return "custom-program" if self.is_custom else "predefined-program"

    @computed_field(alias="fontStyle")
    @property
    def font_style(self) -> str:
        return "italic" if self.is_custom else "normal"

    @classmethod
    def from_predefined(cls, program: PredefinedProgram) -> "ProgramDisplayInfo":
        return cls(
            id=program.program_id,
            name=program.name,
            food=program.food,
            power_level=program.power_level,
            duration_seconds=program.duration_seconds,
            character=program.character or ".",
            instructions=program.instructions,
            is_custom=False,
        )

    @classmethod
    def from_custom(cls, program: CustomProgram) -> "ProgramDisplayInfo":
        return cls(
            id=program.id,
            name=program.name,
            food=program.food,
            power_level=program.power_level,
            duration_seconds=program.duration_seconds,
            character=program.character or ".",
            instructions=program.instructions,
            is_custom=True,
            created_at=program.created_at,
        )


# --- Heating status ---

class MicrowaveStatus(ApiModel):
    """The derived progress of the current heating session at one instant."""

    is_running: bool
    remaining_time: int
    power_level: int
    progress: int
    status_message: str
    formatted_remaining_time: str

    @classmethod
    def stopped(cls) -> "MicrowaveStatus":
        return cls(
            is_running=False,
            remaining_time=0,
            power_level=0,
            progress=0,
            status_message="Micro-ondas parado.",
            formatted_remaining_time="0s",
        )


class HeatingStatusResponse(ApiModel):
    """The status document served by the status endpoint and SocketIO channel."""

    is_running: bool
    remaining_time: int
    power_level: int
    progress: int
    current_state: str
    heating_char: Optional[str] = None
    current_program: Optional[str] = None
    progress_display: str = ""
    formatted_remaining_time: str = "0s"
    start_time: Optional[datetime] = None


# --- Results and errors ---

class OperationResult(ApiModel):
    """
    The envelope returned by every mutating operation.

    `error_code` is only set on failure; `data` optionally carries a payload
    (e.g. the created custom program, or the list of validation errors).
    """

    success: bool
    message: str = ""
    error_code: Optional[str] = None
    data: Optional[Any] = None

    @classmethod
    def ok(cls, message: str = "", data: Any = None) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def error(cls, message: str, error_code: Optional[str] = None, data: Any = None) -> "OperationResult":
        return cls(success=False, message=message, error_code=error_code, data=data)


class ErrorResponse(ApiModel):
    """Body of HTTP error responses that are not plain operation failures."""

    message: str
    error_code: str
    details: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    request_id: str = ""
    validation_errors: Optional[list[str]] = None


# --- Requests ---

class StartHeatingRequest(ApiModel):
    duration_seconds: int = Field(
        validation_alias=AliasChoices("timeInSeconds", "durationSeconds", "duration_seconds"),
    )
    power_level: int = Field(
        default=10,
        validation_alias=AliasChoices("powerLevel", "power_level"),
    )


class AddTimeRequest(ApiModel):
    additional_seconds: int = Field(
        validation_alias=AliasChoices("additionalSeconds", "additional_seconds"),
    )


class CustomProgramRequest(ApiModel):
    """Body of the create and update custom program endpoints."""

    name: str = ""
    food: str = ""
    power_level: int = Field(default=0, validation_alias=AliasChoices("powerLevel", "power_level"))
    duration_seconds: int = Field(
        default=0,
        validation_alias=AliasChoices("timeInSeconds", "durationSeconds", "duration_seconds"),
    )
    character: Optional[str] = None
    instructions: Optional[str] = None


# --- Authentication ---

class AuthCredentials(ApiModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=100)


class AuthConfigRequest(ApiModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=100)


class AuthSettings(ApiModel):
    """The single admin credential, as persisted by the auth repository."""

    username: str
    password_hash: str
    created_at: datetime = Field(default_factory=utc_now)
    last_login_at: Optional[datetime] = None


class AuthToken(ApiModel):
    token: str
    expires_at: datetime
    username: str

    @property
    def is_valid(self) -> bool:
        return utc_now() < self.expires_at
