"""
Tests for scaled effects and comparison intervals.
"""

import numpy as np
import pytest

from pymlid import confint, mlid
from pymlid.core.exceptions import ConfigurationError
from pymlid.diagnostics import MEAN_COMPARISON_WIDTH


class TestConfint:

    def test_default_width(self, fitted):
        result = confint(fitted)
        assert MEAN_COMPARISON_WIDTH == 1.39
        for level in result.levels:
            assert result.table(level).width == 1.39

    def test_all_levels_base_last(self, fitted):
        assert confint(fitted).levels == ('district', 'region', 'code')

    def test_scaled_by_sigma(self, fitted):
        table = confint(fitted).table('district')
        le = fitted.fit.level('district')
        np.testing.assert_allclose(table.estimate, le.effects / fitted.sigma, rtol=1e-12)
        np.testing.assert_allclose(table.se, le.cond_se / fitted.sigma, rtol=1e-12)

    def test_interval_bounds(self, fitted):
        table = confint(fitted, width=2.5).table('region')
        np.testing.assert_allclose(table.lower, table.estimate - 2.5 * table.se)
        np.testing.assert_allclose(table.upper, table.estimate + 2.5 * table.se)

    def test_base_level(self, fitted):
        table = confint(fitted, levels='code').table('code')
        np.testing.assert_allclose(
            table.estimate, fitted.unit_effects('code') / fitted.sigma, rtol=1e-12
        )
        np.testing.assert_allclose(table.se, 1.0)
        assert len(table.labels) == 160

    def test_level_subset(self, fitted):
        result = confint(fitted, levels=['region'])
        assert result.levels == ('region',)
        with pytest.raises(ConfigurationError, match="no intervals"):
            result.table('district')

    def test_frame(self, fitted):
        frame = confint(fitted)['region']
        assert frame.index.name == 'region'
        assert list(frame.columns) == ['estimate', 'se', 'lower', 'upper']
        assert len(frame) == 4

    def test_single_level_index(self, neighbourhoods):
        result = mlid(neighbourhoods, 'Y', 'X', id='code')
        assert confint(result).levels == ('code',)

    @pytest.mark.parametrize("width", [0, -1.39])
    def test_invalid_width(self, fitted, width):
        with pytest.raises(ConfigurationError, match="width"):
            confint(fitted, width)

    def test_unknown_level(self, fitted):
        with pytest.raises(ConfigurationError, match="unsupported level"):
            confint(fitted, levels=['ward'])
