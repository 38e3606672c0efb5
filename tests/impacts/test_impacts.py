"""
Tests for place impacts.

Validates:
    - Proportional contribution gives impact 100
    - Percentages of ID and of units sum to 100 across groups
    - Scaled statistics agree with a direct groupby computation
    - Base level: one group per unit, SD undefined
    - Level selection and errors
    - Top-level place_impacts export
"""

import numpy as np
import pandas as pd
import pytest

from pymlid import mlid
from pymlid.core.exceptions import ConfigurationError
from pymlid.impacts import impacts


class TestProportional:

    def test_impact_100(self, alternating):
        result = mlid(alternating, 'Y', 'X', levels=['district'], id='code')
        table = impacts(result).table('district')

        np.testing.assert_allclose(table.pcnt_id, [50.0, 50.0])
        np.testing.assert_allclose(table.proportion_units, [50.0, 50.0])
        np.testing.assert_allclose(table.impact, [100.0, 100.0])
        np.testing.assert_allclose(table.pcnt_negative, [50.0, 50.0])
        np.testing.assert_allclose(table.scld_mean, [0.0, 0.0], atol=1e-12)


class TestImpactTable:

    def test_default_levels(self, fitted):
        result = impacts(fitted)
        assert result.levels == ('district', 'region')

    def test_percentages_sum_to_100(self, fitted):
        result = impacts(fitted)
        for level in result.levels:
            table = result.table(level)
            np.testing.assert_allclose(table.pcnt_id.sum(), 100.0, rtol=1e-12)
            np.testing.assert_allclose(table.proportion_units.sum(), 100.0, rtol=1e-12)
            assert table.n_units.sum() == 160

    def test_against_groupby(self, neighbourhoods, fitted):
        frame = impacts(fitted).to_frame('district')
        e = pd.Series(fitted.residuals, index=neighbourhoods.index)
        grouped = e.groupby(neighbourhoods['district'], sort=False)
        sigma = fitted.sigma

        np.testing.assert_allclose(frame['scld_mean'], grouped.mean() / sigma, rtol=1e-10)
        np.testing.assert_allclose(frame['scld_min'], grouped.min() / sigma, rtol=1e-12)
        np.testing.assert_allclose(frame['scld_max'], grouped.max() / sigma, rtol=1e-12)
        np.testing.assert_allclose(frame['scld_sd'], grouped.std() / sigma, rtol=1e-10)

        abs_share = 100 * e.abs().groupby(neighbourhoods['district'], sort=False).sum()
        np.testing.assert_allclose(frame['pcnt_id'], abs_share / e.abs().sum(), rtol=1e-12)

        negative = 100 * (e < 0).groupby(neighbourhoods['district'], sort=False).mean()
        np.testing.assert_allclose(frame['pcnt_negative'], negative, rtol=1e-12)

    def test_impact_formula(self, fitted):
        table = impacts(fitted, 'region').table('region')
        np.testing.assert_allclose(
            table.impact, table.pcnt_id / table.proportion_units * 100, rtol=1e-12
        )

    def test_frame_index(self, fitted):
        frame = impacts(fitted)['region']
        assert frame.index.name == 'region'
        assert list(frame.index) == ['R0', 'R1', 'R2', 'R3']
        assert list(frame.columns) == [
            'n_units', 'pcnt_id', 'proportion_units', 'impact',
            'scld_mean', 'scld_min', 'scld_max', 'scld_sd', 'pcnt_negative',
        ]


class TestBaseLevel:

    def test_one_group_per_unit(self, fitted):
        table = impacts(fitted, levels=['code']).table('code')
        assert len(table.labels) == 160
        np.testing.assert_array_equal(table.n_units, 1)
        assert np.all(np.isnan(table.scld_sd))
        np.testing.assert_allclose(table.scld_min, table.scld_max)

    def test_single_level_index_needs_explicit_level(self, neighbourhoods):
        result = mlid(neighbourhoods, 'Y', 'X', id='code')
        with pytest.raises(ConfigurationError, match="at least one level"):
            impacts(result)
        assert impacts(result, 'code').levels == ('code',)


class TestErrors:

    def test_unknown_level(self, fitted):
        with pytest.raises(ConfigurationError, match="unsupported level"):
            impacts(fitted, ['ward'])

    def test_missing_table(self, fitted):
        result = impacts(fitted, 'district')
        with pytest.raises(ConfigurationError, match="no impact table"):
            result.table('region')

    def test_summary(self, fitted):
        text = impacts(fitted).summary()
        assert 'Level: district' in text
        assert 'Level: region' in text


class TestTopLevelExport:

    def test_place_impacts_alias(self, fitted):
        import pymlid

        assert pymlid.place_impacts is impacts
        assert 'place_impacts' in pymlid.__all__
        table = pymlid.place_impacts(fitted, 'district').table('district')
        np.testing.assert_allclose(
            table.impact, impacts(fitted, 'district').table('district').impact
        )

    def test_subpackage_not_shadowed(self):
        import pymlid
        import pymlid.impacts as subpackage

        assert pymlid.impacts is subpackage
        assert callable(pymlid.impacts.impacts)
