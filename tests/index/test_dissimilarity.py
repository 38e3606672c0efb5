"""
Tests for the index of dissimilarity on share vectors.
"""

import numpy as np
import pytest

from pymlid import dissimilarity, to_shares
from pymlid.core.exceptions import InvalidInputError


def _id(n_y, n_x):
    shares = to_shares(n_y, n_x)
    return dissimilarity(shares.y, shares.x)


class TestDissimilarity:

    def test_complete_segregation(self):
        np.testing.assert_allclose(_id([10, 0, 10, 0], [0, 10, 0, 10]), 1.0)

    def test_proportional_counts(self):
        np.testing.assert_allclose(_id([10, 20, 30], [5, 10, 15]), 0.0, atol=1e-15)

    def test_hand_computed(self):
        # y = [0.5, 0.5, 0], x = [0.25, 0.25, 0.5]
        np.testing.assert_allclose(_id([1, 1, 0], [1, 1, 2]), 0.5)

    def test_symmetric(self, rng):
        n_y = rng.integers(0, 100, 30)
        n_x = rng.integers(1, 100, 30)
        np.testing.assert_allclose(_id(n_y, n_x), _id(n_x, n_y), rtol=1e-12)

    def test_bounded(self, rng):
        for _ in range(20):
            n_y = rng.integers(0, 50, 15)
            n_x = rng.integers(1, 50, 15)
            value = _id(n_y, n_x)
            assert 0.0 <= value <= 1.0

    def test_scale_invariant(self, rng):
        n_y = rng.integers(0, 100, 30)
        n_x = rng.integers(1, 100, 30)
        np.testing.assert_allclose(_id(n_y, n_x), _id(7 * n_y, 3 * n_x), rtol=1e-12)

    def test_length_mismatch(self):
        with pytest.raises(InvalidInputError, match="Inconsistent lengths"):
            dissimilarity([0.5, 0.5], [1.0])

    def test_non_finite(self):
        with pytest.raises(InvalidInputError, match="non-finite"):
            dissimilarity([0.5, np.nan], [0.5, 0.5])
