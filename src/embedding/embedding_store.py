import asyncio
import hashlib
import json
import os
import time

import numpy as np
import structlog

import config
from diagnosis.errors import InitializationError, NotInitializedError
from embedding.embed import TextEmbedder, l2_normalize
from structure.knowledge_base import load_knowledge_base
from utils.file_utils import load_json, save_json

logger = structlog.get_logger()

CACHE_VECTORS_FILE = "disease_embeddings.npy"
CACHE_METADATA_FILE = "disease_embeddings.json"


def knowledge_base_fingerprint(records):
    """Hash of the ids and symptom texts, in Knowledge Base order."""
    payload = json.dumps([[r.id, r.symptom_text] for r in records], ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class DiseaseEmbeddingStore:
    """
    Owns the embedding model and the id -> embedding cache of the Knowledge Base.

    Initialization is lazy and single-flight: the first ensure_ready() starts one
    task, every concurrent caller awaits that same task, and the cache is only
    published once all disease embeddings are in place. A failed attempt is
    dropped so that a later call starts over.
    """

    def __init__(self, records=None, knowledge_base_path=None, model_loader=None,
                 model_name=None, cache_dir=None):
        self.model_name = model_name or config.EMBEDDING_MODEL
        self.knowledge_base_path = knowledge_base_path
        self.cache_dir = cache_dir if cache_dir is not None else config.EMBEDDING_CACHE_DIR
        self._model_loader = model_loader or (lambda: TextEmbedder(self.model_name))

        self._pending_records = tuple(records) if records is not None else None
        self._records = ()
        self._embedder = None
        self._embeddings = {}
        self._ready = False
        self._init_task = None

    @property
    def is_ready(self):
        return self._ready

    @property
    def records(self):
        self._require_ready()
        return self._records

    @property
    def dimension(self):
        self._require_ready()
        for vector in self._embeddings.values():
            return int(vector.shape[0])
        return None

    def get_embedding(self, disease_id):
        self._require_ready()
        return self._embeddings[disease_id]

    def items(self):
        """(DiseaseRecord, embedding) pairs in Knowledge Base order."""
        self._require_ready()
        return [(record, self._embeddings[record.id]) for record in self._records]

    async def ensure_ready(self):
        if self._ready:
            return

        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
            self._init_task.add_done_callback(self._on_init_done)

        # shield: one cancelled caller must not cancel the shared load
        await asyncio.shield(self._init_task)

    def _on_init_done(self, task):
        # runs even when every waiter was cancelled
        if task.cancelled():
            failed = True
        else:
            error = task.exception()
            failed = error is not None
            if failed:
                logger.error("embedding_store_init_failed", error=str(error))
        if failed and self._init_task is task:
            self._init_task = None

    async def embed(self, text):
        """Embed one text with the loaded model. Returns a unit-length vector."""
        self._require_ready()
        vectors = await asyncio.to_thread(self._embedder.embed_texts, [text])
        return l2_normalize(vectors)[0]

    def _require_ready(self):
        if not self._ready:
            raise NotInitializedError("Embedding store used before ensure_ready() completed")

    async def _initialize(self):
        started = time.perf_counter()

        records = self._pending_records
        if records is None:
            records = await asyncio.to_thread(load_knowledge_base, self.knowledge_base_path)
        elif len({record.id for record in records}) != len(records):
            raise InitializationError("Duplicate disease ids in the supplied records")

        try:
            embedder = await asyncio.to_thread(self._model_loader)
        except InitializationError:
            raise
        except Exception as e:
            raise InitializationError(f"Could not load embedding model {self.model_name}: {e}") from e

        embeddings = self._load_cache(records)
        if embeddings is None:
            embeddings = await self._embed_records(embedder, records)
            self._save_cache(records, embeddings)

        self._records = records
        self._embedder = embedder
        self._embeddings = embeddings
        self._ready = True

        logger.info("embedding_store_ready", model=self.model_name, diseases=len(records),
                    seconds=round(time.perf_counter() - started, 3))

    async def _embed_records(self, embedder, records):
        if not records:
            return {}

        texts = [record.symptom_text for record in records]
        try:
            vectors = await asyncio.to_thread(embedder.embed_texts, texts)
        except Exception as e:
            raise InitializationError(f"Could not embed the Knowledge Base: {e}") from e

        vectors = l2_normalize(vectors)
        if vectors.shape[0] != len(records):
            raise InitializationError(
                f"Embedder returned {vectors.shape[0]} vectors for {len(records)} diseases"
            )

        logger.info("disease_embeddings_computed", count=len(records), dimension=int(vectors.shape[1]))
        return {record.id: vectors[i] for i, record in enumerate(records)}

    def _cache_paths(self):
        return (
            os.path.join(self.cache_dir, CACHE_VECTORS_FILE),
            os.path.join(self.cache_dir, CACHE_METADATA_FILE),
        )

    def _load_cache(self, records):
        if not self.cache_dir:
            return None

        vectors_path, metadata_path = self._cache_paths()
        if not (os.path.exists(vectors_path) and os.path.exists(metadata_path)):
            logger.info("embedding_cache_miss", path=self.cache_dir, reason="missing")
            return None

        try:
            metadata = load_json(metadata_path)
            vectors = np.load(vectors_path, allow_pickle=False)
        except (OSError, ValueError) as e:
            logger.warning("embedding_cache_unreadable", path=self.cache_dir, error=str(e))
            return None

        if not isinstance(metadata, dict):
            logger.warning("embedding_cache_unreadable", path=self.cache_dir, error="metadata is not an object")
            return None

        ids = [record.id for record in records]
        if (metadata.get("model") != self.model_name
                or metadata.get("fingerprint") != knowledge_base_fingerprint(records)
                or metadata.get("ids") != ids
                or vectors.ndim != 2
                or vectors.shape[0] != len(ids)):
            logger.info("embedding_cache_miss", path=self.cache_dir, reason="stale")
            return None

        logger.info("embedding_cache_hit", path=self.cache_dir, count=len(ids))
        vectors = l2_normalize(vectors)
        return {disease_id: vectors[i] for i, disease_id in enumerate(ids)}

    def _save_cache(self, records, embeddings):
        if not self.cache_dir or not records:
            return

        vectors_path, metadata_path = self._cache_paths()
        matrix = np.stack([embeddings[record.id] for record in records])
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            np.save(vectors_path, matrix, allow_pickle=False)
            save_json({
                "model": self.model_name,
                "fingerprint": knowledge_base_fingerprint(records),
                "ids": [record.id for record in records],
                "dimension": int(matrix.shape[1]),
            }, metadata_path)
        except OSError as e:
            # the in-memory cache is still valid; the next process recomputes
            logger.warning("embedding_cache_write_failed", path=self.cache_dir, error=str(e))
            return

        logger.info("embedding_cache_written", path=self.cache_dir, count=len(records))
