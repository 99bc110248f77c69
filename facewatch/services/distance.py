"""Euclidean distance between face embeddings."""
import math
from typing import Optional, Sequence, Union

import numpy as np

EmbeddingLike = Union[np.ndarray, Sequence[float]]


def distance(a: Optional[EmbeddingLike], b: Optional[EmbeddingLike]) -> float:
    """L2 distance between two embeddings.

    Missing, empty or length-mismatched embeddings are incomparable and
    yield ``math.inf`` instead of raising.

    Args:
        a: First embedding
        b: Second embedding

    Returns:
        Non-negative distance, 0.0 only for identical embeddings
    """
    if a is None or b is None:
        return math.inf
    first = np.asarray(a, dtype=np.float64).reshape(-1)
    second = np.asarray(b, dtype=np.float64).reshape(-1)
    if first.size == 0 or first.size != second.size:
        return math.inf
    return float(np.sqrt(np.sum((first - second) ** 2)))


def similarity(dist: float) -> float:
    """Display similarity for a distance: ``1 - distance``, may be negative."""
    return 1.0 - dist
