"""Tests for embedding distance."""
import math

import numpy as np
import pytest

from facewatch.services.distance import distance, similarity


class TestDistance:
    """Test suite for L2 distance."""

    def test_identical_embeddings(self):
        """Should be exactly zero for identical embeddings."""
        assert distance([0.1, 0.2, 0.3], [0.1, 0.2, 0.3]) == 0.0

    def test_euclidean(self):
        """Should compute the Euclidean norm of the difference."""
        assert distance([0.0, 0.0], [3.0, 4.0]) == pytest.approx(5.0)

    def test_symmetric(self):
        a = np.array([0.2, -0.7, 1.5])
        b = np.array([1.0, 0.3, -0.4])
        assert distance(a, b) == distance(b, a)

    def test_accepts_arrays_and_lists(self):
        assert distance(np.array([1.0, 0.0]), [0.0, 0.0]) == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "a, b",
        [
            (None, [0.1, 0.2]),
            ([0.1, 0.2], None),
            ([], []),
            ([0.1, 0.2], [0.1, 0.2, 0.3]),
        ],
    )
    def test_incomparable_embeddings(self, a, b):
        """Should return infinity instead of raising for unusable input."""
        assert math.isinf(distance(a, b))


class TestSimilarity:
    def test_one_minus_distance(self):
        assert similarity(0.3) == pytest.approx(0.7)
        assert similarity(0.0) == 1.0

    def test_not_clamped(self):
        """Should go negative for distances above one."""
        assert similarity(1.5) == pytest.approx(-0.5)
