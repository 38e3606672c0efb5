"""
Tests for the Monte Carlo expected ID under random allocation.

Validates:
    - Reproducibility with a seed
    - Agreement between independent runs within Monte Carlo error
    - Sensible magnitude: small for large populations, larger for small
    - Parameter validation
"""

import numpy as np
import pytest

from pymlid import expected_id
from pymlid.core.exceptions import ConfigurationError, InvalidInputError


@pytest.fixture
def unit_totals(rng):
    return rng.integers(200, 800, 50).astype(float)


class TestExpectedID:

    def test_reproducible(self, unit_totals):
        a = expected_id(3000, 9000, unit_totals, n_sims=200, seed=7)
        b = expected_id(3000, 9000, unit_totals, n_sims=200, seed=7)
        assert a.expected_id == b.expected_id
        np.testing.assert_array_equal(a.ids, b.ids)

    def test_shape_and_bounds(self, unit_totals):
        result = expected_id(3000, 9000, unit_totals, n_sims=250, seed=1)
        assert result.n_sims == 250
        assert result.ids.shape == (250,)
        assert np.all((result.ids >= 0) & (result.ids <= 1))

    def test_standard_error(self, unit_totals):
        result = expected_id(3000, 9000, unit_totals, n_sims=400, seed=1)
        np.testing.assert_allclose(result.sd, np.std(result.ids, ddof=1))
        np.testing.assert_allclose(result.se, result.sd / 20.0)

    def test_independent_runs_agree(self, unit_totals):
        a = expected_id(3000, 9000, unit_totals, n_sims=1000, seed=11)
        b = expected_id(3000, 9000, unit_totals, n_sims=1000, seed=12)
        tolerance = 6.0 * np.hypot(a.se, b.se)
        assert abs(a.expected_id - b.expected_id) < tolerance

    def test_larger_population_less_random_unevenness(self, unit_totals):
        small = expected_id(300, 900, unit_totals, n_sims=300, seed=3)
        large = expected_id(30000, 90000, unit_totals, n_sims=300, seed=3)
        assert large.expected_id < small.expected_id
        assert large.expected_id < 0.05

    def test_totals_rounded(self, unit_totals):
        a = expected_id(3000.4, 9000.2, unit_totals, n_sims=50, seed=5)
        b = expected_id(3000, 9000, unit_totals, n_sims=50, seed=5)
        assert a.expected_id == b.expected_id

    def test_default_n_sims(self, unit_totals):
        assert expected_id(300, 900, unit_totals, seed=0).n_sims == 1000

    @pytest.mark.parametrize("n_sims", [0, -5, 2.5])
    def test_invalid_n_sims(self, unit_totals, n_sims):
        with pytest.raises(ConfigurationError, match="n_sims"):
            expected_id(300, 900, unit_totals, n_sims=n_sims)

    def test_negative_unit_total(self):
        with pytest.raises(InvalidInputError, match="negative"):
            expected_id(10, 10, [5.0, -1.0, 3.0])

    def test_zero_group_total(self, unit_totals):
        with pytest.raises(InvalidInputError, match="group totals"):
            expected_id(0, 10, unit_totals)
