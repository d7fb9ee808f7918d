from sentence_transformers import SentenceTransformer
import numpy as np
import structlog

import config

logger = structlog.get_logger()


def l2_normalize(vectors):
    """
    Scale each row to unit length. Zero rows are left as zeros.
    """
    vectors = np.atleast_2d(np.asarray(vectors, dtype=np.float32))
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    safe = np.where(norms > 0, norms, 1.0)
    return vectors / safe


class TextEmbedder:
    def __init__(self, model_name=None, device=None, batch_size=None):
        self.model_name = model_name or config.EMBEDDING_MODEL
        self.batch_size = batch_size or config.EMBEDDING_BATCH_SIZE
        logger.info("embedding_model_loading", model=self.model_name)
        # Checkpoints without a sentence-transformers config get a mean-pooling head.
        self.model = SentenceTransformer(self.model_name, device=device or config.EMBEDDING_DEVICE)
        logger.info("embedding_model_loaded", model=self.model_name,
                    dimension=self.model.get_sentence_embedding_dimension())

    def embed_texts(self, texts):
        """
        Convert a list of texts into mean-pooled, normalized embedding vectors.
        """
        embeddings = self.model.encode(
            list(texts),
            batch_size=self.batch_size,
            normalize_embeddings=True,
            convert_to_numpy=True,
            show_progress_bar=False,
        )

        return l2_normalize(embeddings)

