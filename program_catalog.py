"""
The program catalog: five fixed presets merged with user-created programs.

The predefined programs are static data. Custom programs live in the custom
program repository; the catalog reads them on demand to build the combined
display list and to answer display-character uniqueness questions.
"""
from typing import Optional

from data_models import CustomProgram, PredefinedProgram, ProgramDisplayInfo
from session_models import DEFAULT_HEATING_CHAR

PREDEFINED_PROGRAMS: tuple[PredefinedProgram, ...] = (
    PredefinedProgram(
        name="Pipoca",
        food="Pipoca (de micro-ondas)",
        duration_seconds=180,
        power_level=7,
        character="∩",
        instructions=(
            "Observar o barulho de estouros do milho, caso houver um intervalo de mais de 10 segundos "
            "entre um estouro e outro, interrompa o aquecimento."
        ),
    ),
    PredefinedProgram(
        name="Leite",
        food="Leite",
        duration_seconds=300,
        power_level=5,
        character="∿",
        instructions=(
            "Cuidado com aquecimento de líquidos, o choque térmico aliado ao movimento do recipiente "
            "pode causar fervura imediata causando risco de queimaduras."
        ),
    ),
    PredefinedProgram(
        name="Carnes de boi",
        food="Carne em pedaço ou fatias",
        duration_seconds=840,
        power_level=4,
        character="≡",
        instructions=(
            "Interrompa o processo na metade e vire o conteúdo com a parte de baixo para cima "
            "para o descongelamento uniforme."
        ),
    ),
    PredefinedProgram(
        name="Frango",
        food="Frango (qualquer corte)",
        duration_seconds=480,
        power_level=7,
        character="∴",
        instructions=(
            "Interrompa o processo na metade e vire o conteúdo com a parte de baixo para cima "
            "para o descongelamento uniforme."
        ),
    ),
    PredefinedProgram(
        name="Feijão",
        food="Feijão congelado",
        duration_seconds=480,
        power_level=9,
        character="◊",
        instructions=(
            "Deixe o recipiente destampado e em casos de plástico, cuidado ao retirar o recipiente "
            "pois o mesmo pode perder resistência em altas temperaturas."
        ),
    ),
)


class ProgramCatalog:
    """
    Read-side view over predefined and custom programs.

    Args:
        repository: The custom program repository (anything exposing
            `get_all()` and `exists_character(char, exclude_id)`).
    """

    def __init__(self, repository, predefined: tuple[PredefinedProgram, ...] = PREDEFINED_PROGRAMS):
        self.repository = repository
        self.predefined = predefined

    def get_predefined_programs(self) -> list[PredefinedProgram]:
        return list(self.predefined)

    def get_predefined_program(self, name: str) -> Optional[PredefinedProgram]:
        """Finds a predefined program by exact name."""
        return next((p for p in self.predefined if p.name == name), None)

    def get_custom_programs(self) -> list[CustomProgram]:
        return list(self.repository.get_all())

    def get_all_programs(self) -> list[ProgramDisplayInfo]:
        """Predefined programs in their fixed order, then custom programs in repository order."""
        programs = [ProgramDisplayInfo.from_predefined(p) for p in self.predefined]
        programs.extend(ProgramDisplayInfo.from_custom(p) for p in self.get_custom_programs())
        return programs

    def get_program_by_id(self, program_id: str) -> Optional[ProgramDisplayInfo]:
        """Matches a predefined slug ('carnesdeboi') or a custom program id."""
        return next((p for p in self.get_all_programs() if p.id == program_id), None)

    def get_custom_program(self, program_id: str) -> Optional[CustomProgram]:
        """Resolves an id to a custom program through the combined list; None for predefined ids."""
        info = self.get_program_by_id(program_id)
        if info is None or not info.is_custom:
            return None
        return self.repository.get_by_id(info.id)

    def is_character_unique(self, character: str, exclude_id: Optional[str] = None) -> bool:
        """
        Tells whether a display character is free for a custom program.

        The reserved '.' and every predefined character are never free. Other
        custom programs' characters are taken, except the one whose id is
        `exclude_id` (so a program keeps its own character on update).
        """
        if character == DEFAULT_HEATING_CHAR:
            return False
        if any(p.character == character for p in self.predefined):
            return False
        return not self.repository.exists_character(character, exclude_id)

    def get_used_characters(self) -> list[str]:
        """All predefined and custom characters plus '.', without duplicates, in first-seen order."""
        used = [p.character for p in self.predefined]
        used.extend(p.character for p in self.get_custom_programs() if p.character)
        used.append(DEFAULT_HEATING_CHAR)
        return list(dict.fromkeys(used))
