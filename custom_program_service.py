"""
Application service for creating, updating and deleting custom programs.

Validation failures come back as VALIDATION_FAILED results carrying every
violated rule. Unexpected storage failures are logged with their traceback
and surfaced as CREATION_FAILED / UPDATE_FAILED / DELETE_FAILED results; they
never turn into a success.
"""
import logging
from typing import Optional

from custom_program_validator import CustomProgramValidator
from data_models import CustomProgram, OperationResult
from errors import ValidationFailedError


class CustomProgramService:
    def __init__(self, repository, catalog):
        self.repository = repository
        self.validator = CustomProgramValidator(catalog)

    def _check(self, program: CustomProgram, is_update: bool) -> None:
        result = self.validator.validate(program, is_update=is_update)
        if not result.is_valid:
            raise ValidationFailedError(result.errors)

    def create(self, program: CustomProgram) -> OperationResult:
        """Validates and stores a new program; the stored program is returned in `data`."""
        try:
            self._check(program, is_update=False)
        except ValidationFailedError as e:
            return OperationResult.error(e.message, e.error_code, data=e.errors)

        try:
            created = self.repository.create(program)
        except Exception as e:
            logging.exception(f"Failed to create custom program '{program.name}'.")
            return OperationResult.error(f"Erro ao criar programa: {e}", "CREATION_FAILED")

        logging.info(f"Custom program '{created.name}' created with id {created.id}.")
        return OperationResult.ok("Programa customizado criado com sucesso.", data=created)

    def update(self, program: CustomProgram) -> OperationResult:
        """
        Re-validates and replaces an existing program.

        The id and creation timestamp of the stored program are kept; the
        character uniqueness check ignores the program's own character.
        """
        existing = self.repository.get_by_id(program.id)
        if existing is None:
            return OperationResult.error("Programa não encontrado.", "PROGRAM_NOT_FOUND")

        program = program.model_copy(update={"created_at": existing.created_at})
        try:
            self._check(program, is_update=True)
        except ValidationFailedError as e:
            return OperationResult.error(e.message, e.error_code, data=e.errors)

        try:
            updated = self.repository.update(program)
        except Exception as e:
            logging.exception(f"Failed to update custom program {program.id}.")
            return OperationResult.error(f"Erro ao atualizar programa: {e}", "UPDATE_FAILED")

        logging.info(f"Custom program {updated.id} updated.")
        return OperationResult.ok("Programa customizado atualizado com sucesso.", data=updated)

    def delete(self, program_id: str) -> OperationResult:
        """Deletes a program, freeing its display character."""
        if self.repository.get_by_id(program_id) is None:
            return OperationResult.error("Programa não encontrado.", "PROGRAM_NOT_FOUND")

        try:
            self.repository.delete(program_id)
        except Exception as e:
            logging.exception(f"Failed to delete custom program {program_id}.")
            return OperationResult.error(f"Erro ao deletar programa: {e}", "DELETE_FAILED")

        logging.info(f"Custom program {program_id} deleted.")
        return OperationResult.ok("Programa customizado deletado com sucesso.")

    def get_by_id(self, program_id: str) -> Optional[CustomProgram]:
        return self.repository.get_by_id(program_id)

    def get_all(self) -> list[CustomProgram]:
        return self.repository.get_all()

    def exists_character(self, character: str, exclude_id: Optional[str] = None) -> bool:
        return self.repository.exists_character(character, exclude_id)
