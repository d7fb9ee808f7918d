import json
import os

import structlog

import config
from diagnosis.errors import InitializationError
from structure.schema import DiseaseRecord
from utils.file_utils import load_json

logger = structlog.get_logger()

REQUIRED_TEXT_FIELDS = ["id", "name", "symptom_text", "triage"]
REQUIRED_LIST_FIELDS = ["red_flags", "medications", "contraindications"]


def parse_disease_record(entry, position):
    """
    Validate one raw Knowledge Base entry and freeze it into a DiseaseRecord.

    Raises InitializationError naming the offending entry and field.
    """
    if not isinstance(entry, dict):
        raise InitializationError(f"Knowledge Base entry #{position} is not an object")

    label = entry.get("id", f"#{position}")

    for key in REQUIRED_TEXT_FIELDS:
        if key not in entry:
            raise InitializationError(f"Knowledge Base entry {label} is missing '{key}'")
        if not isinstance(entry[key], str):
            raise InitializationError(f"Knowledge Base entry {label}: '{key}' must be a string")

    for key in REQUIRED_LIST_FIELDS:
        if key not in entry:
            raise InitializationError(f"Knowledge Base entry {label} is missing '{key}'")
        value = entry[key]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise InitializationError(
                f"Knowledge Base entry {label}: '{key}' must be a list of strings"
            )

    return DiseaseRecord(
        id=entry["id"],
        name=entry["name"],
        symptom_text=entry["symptom_text"],
        red_flags=tuple(entry["red_flags"]),
        triage=entry["triage"],
        medications=tuple(entry["medications"]),
        contraindications=tuple(entry["contraindications"]),
    )


def parse_knowledge_base(entries):
    """
    Turn the raw JSON list into an ordered tuple of DiseaseRecords.
    Fails on the first bad entry rather than dropping it.
    """
    if not isinstance(entries, list):
        raise InitializationError("Knowledge Base must be a JSON list of disease records")

    records = []
    seen_ids = set()
    for position, entry in enumerate(entries):
        record = parse_disease_record(entry, position)
        if record.id in seen_ids:
            raise InitializationError(f"Duplicate disease id in Knowledge Base: {record.id}")
        seen_ids.add(record.id)
        records.append(record)

    return tuple(records)


def load_knowledge_base(path=None):
    path = path or config.KNOWLEDGE_BASE_PATH

    if not os.path.exists(path):
        raise InitializationError(f"Knowledge Base not found: {path}")

    try:
        entries = load_json(path)
    except (OSError, json.JSONDecodeError) as e:
        raise InitializationError(f"Could not read Knowledge Base {path}: {e}") from e

    records = parse_knowledge_base(entries)
    logger.info("knowledge_base_loaded", path=path, count=len(records))
    return records
