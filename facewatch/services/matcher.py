"""Best-match search over a set of stored embeddings."""
import math
from typing import Iterable, Optional

import numpy as np

from facewatch.core.logging import get_logger
from facewatch.domain.entities.face import as_embedding, is_valid_embedding
from facewatch.domain.value_objects.recognition import Candidate, MatchResult
from facewatch.services.distance import EmbeddingLike, distance

logger = get_logger(__name__)


def find_best_match(
    embedding: Optional[EmbeddingLike],
    candidates: Iterable[Candidate],
    threshold: Optional[float] = None,
) -> Optional[MatchResult]:
    """Find the candidate closest to ``embedding``.

    Candidates without a usable embedding, or with a different length, are
    skipped. Ties keep the first candidate seen.

    Args:
        embedding: Query embedding
        candidates: Comparison set, one entry per stored embedding
        threshold: Accept the best match only if its distance is strictly below
            this value (None accepts any finite distance)

    Returns:
        The best match, or None if nothing acceptable was found
    """
    query = embedding if isinstance(embedding, np.ndarray) else as_embedding(embedding)
    if not is_valid_embedding(query):
        logger.debug("Query embedding is invalid, no match")
        return None

    best: Optional[Candidate] = None
    best_distance = math.inf
    skipped = 0

    for candidate in candidates:
        if not is_valid_embedding(candidate.embedding):
            skipped += 1
            logger.debug("Skipping candidate without embedding", face_id=candidate.face_id)
            continue

        current = distance(query, candidate.embedding)
        if current < best_distance:
            best_distance = current
            best = candidate

    if skipped:
        logger.debug("Skipped invalid candidates", skipped=skipped)

    if best is None:
        return None
    if threshold is not None and not best_distance < threshold:
        logger.debug(
            "Best candidate above threshold",
            face_id=best.face_id,
            distance=best_distance,
            threshold=threshold,
        )
        return None

    return MatchResult(candidate=best, distance=best_distance)
