import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import structlog

logger = structlog.get_logger()

SEVERITIES = ("critical", "high", "moderate")


@dataclass(frozen=True)
class DiseaseRecord:
    id: str
    name: str
    symptom_text: str
    red_flags: Tuple[str, ...] = ()
    triage: str = ""
    medications: Tuple[str, ...] = ()
    contraindications: Tuple[str, ...] = ()


# Accepted spellings for each vitals field; the first is the canonical form.
_VITALS_KEYS = {
    "temperature": ("temperature",),
    "bp_systolic": ("bp_systolic", "bpSystolic", "systolic"),
    "bp_diastolic": ("bp_diastolic", "bpDiastolic", "diastolic"),
    "spo2": ("spo2", "SpO2"),
    "pulse": ("pulse",),
}


def _parse_number(name, raw):
    if raw is None:
        return None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return raw
    text = str(raw).strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        logger.warning("vital_sign_unparseable", field=name, value=text)
        return None
    if not math.isfinite(value):
        logger.warning("vital_sign_unparseable", field=name, value=text)
        return None
    return int(value) if value.is_integer() and "." not in text else value


@dataclass(frozen=True)
class VitalsInput:
    """
    Vital signs captured at the encounter. None means "not measured",
    which is never the same as zero.
    """
    temperature: Optional[float] = None  # degrees Fahrenheit
    bp_systolic: Optional[float] = None
    bp_diastolic: Optional[float] = None
    spo2: Optional[float] = None  # percent
    pulse: Optional[float] = None  # beats per minute

    @classmethod
    def from_dict(cls, data):
        """
        Build from a mapping using snake_case or camelCase keys. Numeric
        strings are parsed; anything unparseable is treated as not measured.
        """
        if data is None:
            return cls()
        values = {}
        for name, aliases in _VITALS_KEYS.items():
            for key in aliases:
                if data.get(key) is not None:
                    values[name] = _parse_number(name, data[key])
                    break
        return cls(**values)

    @classmethod
    def from_form(cls, form):
        """
        Build from raw form strings. Blank or non-numeric entries are
        treated as not measured.
        """
        if form is None:
            return cls()
        values = {}
        for name, aliases in _VITALS_KEYS.items():
            for key in aliases:
                if key in form:
                    values[name] = _parse_number(name, form[key])
                    break
        return cls(**values)

    def to_dict(self):
        return {
            "temperature": self.temperature,
            "bpSystolic": self.bp_systolic,
            "bpDiastolic": self.bp_diastolic,
            "spo2": self.spo2,
            "pulse": self.pulse,
        }


@dataclass(frozen=True)
class RedFlagAlert:
    condition: str
    severity: str
    action: str

    def __post_init__(self):
        if self.severity not in SEVERITIES:
            raise ValueError(f"Unknown severity: {self.severity!r}")

    def to_dict(self):
        return {
            "condition": self.condition,
            "severity": self.severity,
            "action": self.action,
        }


@dataclass(frozen=True)
class DiagnosisResult:
    id: str
    name: str
    confidence: int
    red_flags: Tuple[str, ...]
    triage: str
    medications: Tuple[str, ...]
    contraindications: Tuple[str, ...]

    @classmethod
    def from_record(cls, record: DiseaseRecord, confidence: int) -> "DiagnosisResult":
        return cls(
            id=record.id,
            name=record.name,
            confidence=confidence,
            red_flags=record.red_flags,
            triage=record.triage,
            medications=record.medications,
            contraindications=record.contraindications,
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "confidence": self.confidence,
            "redFlags": list(self.red_flags),
            "triage": self.triage,
            "medications": list(self.medications),
            "contraindications": list(self.contraindications),
        }


@dataclass(frozen=True)
class DiagnosisReport:
    diagnoses: List[DiagnosisResult] = field(default_factory=list)
    red_flags: List[RedFlagAlert] = field(default_factory=list)

    @property
    def primary_triage(self) -> Optional[str]:
        """Triage text of the best match, stored alongside the encounter."""
        if not self.diagnoses:
            return None
        return self.diagnoses[0].triage

    def to_dict(self):
        return {
            "diagnoses": [d.to_dict() for d in self.diagnoses],
            "redFlags": [r.to_dict() for r in self.red_flags],
        }
