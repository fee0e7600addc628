import json

import pytest

from custom_program_repository import JsonCustomProgramRepository
from data_models import CustomProgram
from errors import ProgramNotFoundError


def _program(**overrides):
    fields = dict(name="Chá", food="Água", power_level=5, duration_seconds=120, character="♨")
    fields.update(overrides)
    return CustomProgram(**fields)


def test_missing_file_is_created_empty(tmp_path):
    path = tmp_path / "nested" / "programs.json"
    repository = JsonCustomProgramRepository(str(path))

    assert path.exists()
    assert repository.get_all() == []
    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["programs"] == []
    assert document["metadata"]["version"] == "1.0"
    assert document["metadata"]["totalPrograms"] == 0


def test_create_persists_camel_case_document(repository):
    created = repository.create(_program())

    with open(repository.file_path, "r", encoding="utf-8") as f:
        document = json.load(f)
    stored = document["programs"][0]
    assert stored["id"] == created.id
    assert stored["durationSeconds"] == 120
    assert stored["powerLevel"] == 5
    assert "createdAt" in stored
    assert document["metadata"]["totalPrograms"] == 1


def test_reads_legacy_time_in_seconds_key(tmp_path):
    path = tmp_path / "programs.json"
    path.write_text(
        json.dumps({"programs": [{"id": "a", "name": "Chá", "food": "Água", "powerLevel": 5, "timeInSeconds": 90, "character": "♨"}]}),
        encoding="utf-8",
    )
    repository = JsonCustomProgramRepository(str(path))
    assert repository.get_by_id("a").duration_seconds == 90


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "programs.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonCustomProgramRepository(str(path)).get_all() == []


def test_queries(repository):
    created = repository.create(_program())

    assert repository.get_by_id(created.id) == created
    assert repository.get_by_id("missing") is None
    assert repository.exists_character("♨")
    assert not repository.exists_character("♨", exclude_id=created.id)
    assert repository.exists_name("CHÁ")
    assert not repository.exists_name("chá", exclude_id=created.id)
    assert repository.count() == 1


def test_create_assigns_id_when_empty(repository):
    created = repository.create(_program(id=""))
    assert created.id


def test_update_and_delete(repository):
    created = repository.create(_program())
    repository.update(created.model_copy(update={"name": "Chá verde"}))
    assert repository.get_by_id(created.id).name == "Chá verde"

    assert repository.delete(created.id)
    assert not repository.delete(created.id)
    assert repository.count() == 0


def test_update_missing_program_raises(repository):
    with pytest.raises(ProgramNotFoundError):
        repository.update(_program(id="ghost"))
