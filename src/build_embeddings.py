import asyncio
import os

import structlog

import config
from embedding.embedding_store import DiseaseEmbeddingStore
from utils.logging_utils import setup_logging

EMBEDDINGS_PATH = os.path.join(config.PROJECT_ROOT, "data", "embeddings")

logger = structlog.get_logger()


async def build_embeddings(cache_dir=None, knowledge_base_path=None):
    """
    Precompute the disease embeddings and write them to the disk cache,
    so serving processes skip the Knowledge Base embedding pass.
    """
    cache_dir = cache_dir or config.EMBEDDING_CACHE_DIR or EMBEDDINGS_PATH
    store = DiseaseEmbeddingStore(knowledge_base_path=knowledge_base_path, cache_dir=cache_dir)
    await store.ensure_ready()
    logger.info("embeddings_built", path=cache_dir, diseases=len(store.records), dimension=store.dimension)
    return store


if __name__ == "__main__":
    setup_logging()
    asyncio.run(build_embeddings())
