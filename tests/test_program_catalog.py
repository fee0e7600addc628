from data_models import CustomProgram


def _custom(repository, character="♨", name="Chá"):
    return repository.create(CustomProgram(name=name, food="Água", power_level=5, duration_seconds=120, character=character))


def test_all_programs_lists_predefined_first(catalog, repository):
    custom = _custom(repository)
    programs = catalog.get_all_programs()

    assert [p.id for p in programs[:5]] == ["pipoca", "leite", "carnesdeboi", "frango", "feijão"]
    assert programs[5].id == custom.id
    assert programs[5].is_custom


def test_display_info_serialization(catalog, repository):
    _custom(repository)
    beef, custom = catalog.get_all_programs()[2], catalog.get_all_programs()[5]

    dumped = beef.model_dump(by_alias=True)
    assert dumped["displayName"] == "Carnes de boi"
    assert dumped["timeFormatted"] == "14:00"
    assert dumped["cssClass"] == "predefined-program"
    assert dumped["fontStyle"] == "normal"

    dumped = custom.model_dump(by_alias=True)
    assert dumped["displayName"] == "Chá (Personalizado)"
    assert dumped["timeFormatted"] == "2:00"
    assert dumped["cssClass"] == "custom-program"
    assert dumped["fontStyle"] == "italic"


def test_get_predefined_program_is_exact(catalog):
    assert catalog.get_predefined_program("Frango").duration_seconds == 480
    assert catalog.get_predefined_program("frango") is None


def test_get_program_by_id(catalog, repository):
    custom = _custom(repository)
    assert catalog.get_program_by_id("carnesdeboi").name == "Carnes de boi"
    assert catalog.get_program_by_id(custom.id).name == "Chá"
    assert catalog.get_program_by_id("nope") is None


def test_get_custom_program_ignores_predefined(catalog, repository):
    custom = _custom(repository)
    assert catalog.get_custom_program("pipoca") is None
    assert catalog.get_custom_program(custom.id) == custom


def test_character_uniqueness(catalog, repository):
    custom = _custom(repository, character="♨")

    assert not catalog.is_character_unique(".")
    assert not catalog.is_character_unique("∩")
    assert not catalog.is_character_unique("♨")
    assert catalog.is_character_unique("♨", exclude_id=custom.id)
    assert catalog.is_character_unique("*")


def test_used_characters(catalog, repository):
    _custom(repository, character="♨")
    _custom(repository, character="♨", name="Duplicado")
    assert catalog.get_used_characters() == ["∩", "∿", "≡", "∴", "◊", "♨", "."]
