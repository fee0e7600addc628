import pytest

from custom_program_service import CustomProgramService
from data_models import CustomProgram


@pytest.fixture
def service(repository, catalog):
    return CustomProgramService(repository, catalog)


def _program(**overrides):
    fields = dict(name="Chá", food="Água", power_level=5, duration_seconds=120, character="♨", instructions="Mexa.")
    fields.update(overrides)
    return CustomProgram(**fields)


def test_create(service):
    result = service.create(_program())
    assert result.success
    assert result.message == "Programa customizado criado com sucesso."
    assert service.get_by_id(result.data.id) == result.data
    assert service.exists_character("♨")


def test_create_with_predefined_character_fails(service):
    result = service.create(_program(character="∩"))
    assert not result.success
    assert result.error_code == "VALIDATION_FAILED"
    assert "Caractere '∩' já está sendo usado por outro programa" in result.message
    assert result.data == ["Caractere '∩' já está sendo usado por outro programa"]
    assert service.get_all() == []


def test_create_joins_all_errors(service):
    result = service.create(_program(name="", power_level=0))
    assert result.message == "Nome do programa é obrigatório, Potência deve estar entre 1 e 10"


def test_duplicate_names_are_allowed(service):
    assert service.create(_program(character="♨")).success
    assert service.create(_program(character="☼")).success
    assert len(service.get_all()) == 2


def test_create_storage_failure(service, repository, mocker):
    mocker.patch.object(repository, "create", side_effect=OSError("read-only file system"))
    result = service.create(_program())
    assert not result.success
    assert result.error_code == "CREATION_FAILED"


def test_update_keeps_id_and_creation_time(service):
    created = service.create(_program()).data

    result = service.update(_program(id=created.id, name="Chá verde"))
    assert result.success
    stored = service.get_by_id(created.id)
    assert stored.name == "Chá verde"
    assert stored.character == "♨"
    assert stored.created_at == created.created_at


def test_update_to_taken_character_fails(service):
    service.create(_program(character="☼"))
    created = service.create(_program()).data

    result = service.update(_program(id=created.id, character="☼"))
    assert result.error_code == "VALIDATION_FAILED"


def test_update_missing_program(service):
    assert service.update(_program(id="ghost")).error_code == "PROGRAM_NOT_FOUND"


def test_update_storage_failure(service, repository, mocker):
    created = service.create(_program()).data
    mocker.patch.object(repository, "update", side_effect=OSError("disk full"))
    assert service.update(_program(id=created.id)).error_code == "UPDATE_FAILED"


def test_delete_frees_character(service, catalog):
    created = service.create(_program()).data
    assert not catalog.is_character_unique("♨")

    result = service.delete(created.id)
    assert result.success
    assert catalog.is_character_unique("♨")
    assert service.delete(created.id).error_code == "PROGRAM_NOT_FOUND"


def test_delete_storage_failure(service, repository, mocker):
    created = service.create(_program()).data
    mocker.patch.object(repository, "delete", side_effect=OSError("disk full"))
    assert service.delete(created.id).error_code == "DELETE_FAILED"
