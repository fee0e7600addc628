"""
JSON-file persistence for custom programs.

This class acts as the data access layer for user-created programs. All
sessions share one repository, so every create/update/delete runs under a
single lock and lands atomically (temp file + os.replace). Reads do not take
the lock: because writes replace the file in one step, a reader always sees a
complete snapshot.
"""
import logging
import os
import threading
import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field, ValidationError

from data_models import ApiModel, CustomProgram
from errors import ProgramNotFoundError
from utils import utc_now

FILE_FORMAT_VERSION = "1.0"


class FileMetadata(ApiModel):
    version: str = FILE_FORMAT_VERSION
    last_modified: datetime = Field(default_factory=utc_now)
    total_programs: int = 0


class ProgramFile(ApiModel):
    """The on-disk document: the program list plus bookkeeping metadata."""

    programs: list[CustomProgram] = Field(default_factory=list)
    metadata: FileMetadata = Field(default_factory=FileMetadata)


class JsonCustomProgramRepository:
    """
    Stores custom programs in a single JSON document.

    Args:
        file_path: Location of the JSON file. Its directory is created and an
            empty document is written if the file does not exist yet.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        self.lock = threading.Lock()
        self._ensure_file()

    def _ensure_file(self) -> None:
        directory = os.path.dirname(self.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if not os.path.exists(self.file_path):
            with self.lock:
                self._write([])
            logging.info(f"Created empty custom program file at {self.file_path}")

    def _read(self) -> list[CustomProgram]:
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                return ProgramFile.model_validate_json(f.read()).programs
        except FileNotFoundError:
            return []
        except ValidationError as e:
            logging.warning(f"Custom program file {self.file_path} is unreadable, treating it as empty: {e}")
            return []

    def _write(self, programs: list[CustomProgram]) -> None:
        """Writes the whole document. Callers must hold `self.lock`."""
        document = ProgramFile(programs=programs, metadata=FileMetadata(total_programs=len(programs)))
        tmp = self.file_path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(document.model_dump_json(by_alias=True, indent=2))
        os.replace(tmp, self.file_path)

    # --- Queries ---

    def get_all(self) -> list[CustomProgram]:
        return self._read()

    def get_by_id(self, program_id: str) -> Optional[CustomProgram]:
        return next((p for p in self._read() if p.id == program_id), None)

    def exists_character(self, character: str, exclude_id: Optional[str] = None) -> bool:
        return any(p.character == character and p.id != exclude_id for p in self._read())

    def exists_name(self, name: str, exclude_id: Optional[str] = None) -> bool:
        """Case-insensitive name lookup."""
        folded = name.casefold()
        return any(p.name.casefold() == folded and p.id != exclude_id for p in self._read())

    def count(self) -> int:
        return len(self._read())

    # --- Commands ---

    def create(self, program: CustomProgram) -> CustomProgram:
        with self.lock:
            programs = self._read()
            if not program.id:
                program = program.model_copy(update={"id": str(uuid.uuid4())})
            programs.append(program)
            self._write(programs)
        return program

    def update(self, program: CustomProgram) -> CustomProgram:
        """
        Replaces the stored program with the same id.

        Raises:
            ProgramNotFoundError: If no program has that id.
        """
        with self.lock:
            programs = self._read()
            for index, existing in enumerate(programs):
                if existing.id == program.id:
                    programs[index] = program
                    break
            else:
                raise ProgramNotFoundError(f"Programa com ID {program.id} não encontrado")
            self._write(programs)
        return program

    def delete(self, program_id: str) -> bool:
        """Removes a program; returns False if it did not exist."""
        with self.lock:
            programs = self._read()
            remaining = [p for p in programs if p.id != program_id]
            if len(remaining) == len(programs):
                return False
            self._write(remaining)
        return True
