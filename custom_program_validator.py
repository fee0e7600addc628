"""
Field-level and cross-program validation for custom programs.

Validation never stops at the first problem: every violated rule is collected
so the UI can show them all at once.
"""
import unicodedata
from typing import Optional

from data_models import CustomProgram
from session_models import DEFAULT_HEATING_CHAR
from time_validator import HeatingMode, get_range

NAME_MIN, NAME_MAX = 2, 50
FOOD_MIN, FOOD_MAX = 2, 50
INSTRUCTIONS_MAX = 200
FORBIDDEN_CHARACTERS = frozenset({DEFAULT_HEATING_CHAR, " ", "\t", "\n", "\r"})


class ValidationResult:
    def __init__(self):
        self.errors: list[str] = []

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, error: str) -> None:
        self.errors.append(error)


def _character_error(character: Optional[str]) -> Optional[str]:
    """Returns the first problem with a display character, or None if it is acceptable."""
    if not character:
        return "Caractere de aquecimento é obrigatório"
    if len(character) != 1:
        return "Caractere de aquecimento deve ser um único caractere"
    if character in FORBIDDEN_CHARACTERS:
        return "Caractere não pode ser espaço em branco, tab, quebra de linha ou ponto"
    if unicodedata.category(character) == "Cc":
        return "Caractere não pode ser um caractere de controle"
    if character.isspace():
        return "Caractere não pode ser um espaço em branco"
    return None


class CustomProgramValidator:
    """
    Validates custom programs against field rules and the program catalog.

    Args:
        catalog: The ProgramCatalog used for display-character uniqueness.
    """

    def __init__(self, catalog):
        self.catalog = catalog

    def validate(self, program: CustomProgram, is_update: bool = False) -> ValidationResult:
        """
        Runs every check and returns the full list of violations.

        Args:
            program: The program to check.
            is_update: When True, the program's own id is excluded from the
                character uniqueness check.
        """
        result = ValidationResult()
        self._validate_fields(program, result)
        self._validate_unique_character(program, result, is_update)
        return result

    def _validate_fields(self, program: CustomProgram, result: ValidationResult) -> None:
        name = (program.name or "").strip()
        if not name:
            result.add_error("Nome do programa é obrigatório")
        elif not NAME_MIN <= len(program.name) <= NAME_MAX:
            result.add_error(f"Nome deve ter entre {NAME_MIN} e {NAME_MAX} caracteres")

        food = (program.food or "").strip()
        if not food:
            result.add_error("Nome do alimento é obrigatório")
        elif not FOOD_MIN <= len(program.food) <= FOOD_MAX:
            result.add_error(f"Alimento deve ter entre {FOOD_MIN} e {FOOD_MAX} caracteres")

        if not 1 <= program.power_level <= 10:
            result.add_error("Potência deve estar entre 1 e 10")

        allowed = get_range(HeatingMode.CUSTOM)
        if not allowed.min_seconds <= program.duration_seconds <= allowed.max_seconds:
            result.add_error(
                f"Tempo deve estar entre {allowed.min_seconds} e {allowed.max_seconds} segundos (2 horas)"
            )

        character_error = _character_error(program.character)
        if character_error:
            result.add_error(character_error)

        if program.instructions and len(program.instructions) > INSTRUCTIONS_MAX:
            result.add_error(f"Instruções não podem exceder {INSTRUCTIONS_MAX} caracteres")

    def _validate_unique_character(self, program: CustomProgram, result: ValidationResult, is_update: bool) -> None:
        # A missing character is already reported by the field checks.
        if not program.character:
            return
        exclude_id = program.id if is_update else None
        if not self.catalog.is_character_unique(program.character, exclude_id):
            result.add_error(f"Caractere '{program.character}' já está sendo usado por outro programa")
