import math

import numpy as np

import config


def cosine_similarity(a, b):
    """
    True cosine similarity. Vectors are not assumed to be normalized;
    a zero-length vector scores 0.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0 or not np.isfinite(denominator):
        return 0.0
    return float(np.dot(a, b) / denominator)


def to_confidence(similarity):
    """
    Map a similarity to an integer percentage, rounded half up then clamped to [0, 100].
    """
    if similarity is None or not math.isfinite(similarity):
        return 0
    percent = math.floor(similarity * 100 + 0.5)
    return int(min(100, max(0, percent)))


def rank_diseases(query_vector, scored_items, top_k=config.TOP_K_DIAGNOSES):
    """
    Rank (record, embedding) pairs against a query embedding.

    Returns up to top_k (record, similarity, confidence) tuples, highest
    similarity first. Ties keep the input order.
    """
    items = list(scored_items)
    if not items or top_k <= 0:
        return []

    scored = [
        (position, record, cosine_similarity(query_vector, embedding))
        for position, (record, embedding) in enumerate(items)
    ]
    scored.sort(key=lambda item: (-item[2], item[0]))

    return [
        (record, similarity, to_confidence(similarity))
        for _, record, similarity in scored[:top_k]
    ]
