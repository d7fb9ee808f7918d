import json

import pytest

import config
from diagnosis.errors import InitializationError
from structure.knowledge_base import load_knowledge_base, parse_knowledge_base


def entry(**overrides):
    data = {
        "id": "cold",
        "name": "Common Cold",
        "symptom_text": "runny nose",
        "red_flags": [],
        "triage": "Home care",
        "medications": ["Paracetamol"],
        "contraindications": [],
    }
    data.update(overrides)
    return data


def write_kb(tmp_path, content):
    path = tmp_path / "diseases.json"
    path.write_text(content if isinstance(content, str) else json.dumps(content), encoding="utf-8")
    return str(path)


def test_bundled_knowledge_base_loads():
    records = load_knowledge_base(config.KNOWLEDGE_BASE_PATH)
    assert len(records) >= 3
    assert len({r.id for r in records}) == len(records)
    assert all(r.symptom_text for r in records)


def test_records_keep_file_order(tmp_path):
    path = write_kb(tmp_path, [entry(id="b"), entry(id="a"), entry(id="c")])
    assert [r.id for r in load_knowledge_base(path)] == ["b", "a", "c"]


def test_record_fields_are_frozen_tuples(tmp_path):
    path = write_kb(tmp_path, [entry(medications=["A", "B"])])
    record = load_knowledge_base(path)[0]
    assert record.medications == ("A", "B")
    with pytest.raises(AttributeError):
        record.name = "changed"


def test_empty_knowledge_base_is_valid():
    assert parse_knowledge_base([]) == ()


def test_extra_keys_are_ignored():
    records = parse_knowledge_base([entry(icd10="J00")])
    assert records[0].id == "cold"


@pytest.mark.parametrize("missing", [
    "id", "name", "symptom_text", "red_flags", "triage", "medications", "contraindications",
])
def test_missing_field_fails_whole_load(missing):
    bad = entry()
    del bad[missing]
    with pytest.raises(InitializationError, match=missing):
        parse_knowledge_base([entry(id="ok"), bad])


def test_wrongly_typed_list_field():
    with pytest.raises(InitializationError, match="red_flags"):
        parse_knowledge_base([entry(red_flags="Seizures")])


def test_duplicate_ids_rejected():
    with pytest.raises(InitializationError, match="Duplicate"):
        parse_knowledge_base([entry(), entry()])


def test_top_level_must_be_a_list():
    with pytest.raises(InitializationError):
        parse_knowledge_base({"diseases": []})


def test_missing_file(tmp_path):
    with pytest.raises(InitializationError, match="not found"):
        load_knowledge_base(str(tmp_path / "nope.json"))


def test_invalid_json(tmp_path):
    path = write_kb(tmp_path, "[{not json")
    with pytest.raises(InitializationError):
        load_knowledge_base(path)
