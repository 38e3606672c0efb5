"""
Tests for count-to-share conversion and the default total estimator.
"""

import numpy as np
import pytest

from pymlid.core.exceptions import InvalidInputError
from pymlid.preprocess import estimate_total, to_shares


class TestToShares:

    def test_shares_sum_to_one(self, rng):
        n_y = rng.integers(0, 500, 40)
        n_x = rng.integers(1, 500, 40)
        shares = to_shares(n_y, n_x)
        np.testing.assert_allclose(shares.y.sum(), 1.0, rtol=1e-12)
        np.testing.assert_allclose(shares.x.sum(), 1.0, rtol=1e-12)
        assert np.all((shares.y >= 0) & (shares.y <= 1))

    def test_values_and_totals(self):
        shares = to_shares([10, 30], [5, 5])
        np.testing.assert_allclose(shares.y, [0.25, 0.75])
        np.testing.assert_allclose(shares.x, [0.5, 0.5])
        assert shares.total_y == 40.0
        assert shares.total_x == 10.0

    def test_difference(self):
        shares = to_shares([10, 30], [5, 5])
        np.testing.assert_allclose(shares.difference, [-0.25, 0.25])

    def test_negative_count(self):
        with pytest.raises(InvalidInputError, match="negative") as exc_info:
            to_shares([1, 2], [3, -1], names=('Y', 'X'))
        assert exc_info.value.column == 'X'

    def test_zero_total(self):
        with pytest.raises(InvalidInputError, match="total"):
            to_shares([0, 0], [3, 1])

    def test_length_mismatch(self):
        with pytest.raises(InvalidInputError, match="Inconsistent lengths"):
            to_shares([1, 2, 3], [1, 2])


class TestEstimateTotal:

    def test_sum_of_groups(self):
        np.testing.assert_array_equal(
            estimate_total(np.array([1, 2]), np.array([3, 4])), [4.0, 6.0]
        )
