import hashlib
import re
import time

import numpy as np
import pytest

from embedding.embedding_store import DiseaseEmbeddingStore
from diagnosis.diagnosis_pipeline import DiagnosisPipeline
from structure.schema import DiseaseRecord


class FakeEmbedder:
    """
    Deterministic stand-in for the sentence-transformers model:
    hashed bag-of-words vectors, so identical texts give identical vectors.
    """

    def __init__(self, dimension=256):
        self.dimension = dimension
        self.calls = []

    @property
    def encode_calls(self):
        return len(self.calls)

    def embed_texts(self, texts):
        texts = list(texts)
        self.calls.append(texts)
        vectors = np.zeros((len(texts), self.dimension), dtype=np.float32)
        for i, text in enumerate(texts):
            for token in re.findall(r"[a-z0-9]+", text.lower()):
                digest = hashlib.md5(token.encode("utf-8")).digest()
                vectors[i, int.from_bytes(digest[:4], "little") % self.dimension] += 1.0
        return vectors


class CountingLoader:
    """Model loader that counts how many times the model was loaded."""

    def __init__(self, embedder=None, delay=0.0, failures=0):
        self.embedder = embedder or FakeEmbedder()
        self.delay = delay
        self.failures = failures
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.calls <= self.failures:
            raise RuntimeError("model download failed")
        return self.embedder


@pytest.fixture
def disease_records():
    return [
        DiseaseRecord(
            id="influenza",
            name="Influenza",
            symptom_text="fever cough body aches chills",
            red_flags=("Difficulty breathing",),
            triage="Rest and fluids.",
            medications=("Paracetamol",),
            contraindications=("Aspirin in children",),
        ),
        DiseaseRecord(
            id="migraine",
            name="Migraine",
            symptom_text="severe headache light sensitivity nausea",
            red_flags=("Worst headache of life",),
            triage="Dark quiet room.",
            medications=("Ibuprofen",),
            contraindications=(),
        ),
        DiseaseRecord(
            id="gastroenteritis",
            name="Gastroenteritis",
            symptom_text="watery diarrhea vomiting stomach cramps",
            red_flags=("Blood in stool",),
            triage="Oral rehydration.",
            medications=("Oral rehydration salts", "Zinc sulfate"),
            contraindications=("Loperamide in children",),
        ),
        DiseaseRecord(
            id="common_cold",
            name="Common Cold",
            symptom_text="runny nose sneezing sore throat",
            red_flags=(),
            triage="Home care.",
            medications=("Saline nasal drops",),
            contraindications=("Antibiotics",),
        ),
    ]


@pytest.fixture
def loader():
    return CountingLoader()


@pytest.fixture
def store(disease_records, loader):
    return DiseaseEmbeddingStore(records=disease_records, model_loader=loader, cache_dir="")


@pytest.fixture
def pipeline(store):
    return DiagnosisPipeline(store=store)


@pytest.fixture
def loader_factory():
    return CountingLoader


@pytest.fixture
def embedder_factory():
    return FakeEmbedder
