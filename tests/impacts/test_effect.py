"""
Tests for counterfactual effects of named places.

Validates each scenario against a direct computation:
    1. Named groups' level effects removed
    2. Named places' residuals removed
    3. Named places alone, shares re-normalized
plus the impact, the membership R², and input handling.
"""

import numpy as np
import pytest

from pymlid import dissimilarity, effect, mlid
from pymlid.core.exceptions import ConfigurationError, InvalidInputError
from pymlid.impacts import impacts


class TestScenarios:

    def test_level_effects_removed(self, neighbourhoods, fitted):
        result = effect(fitted, ['D01', 'D22'], level='district')

        inside = neighbourhoods['district'].isin(['D01', 'D22']).to_numpy()
        e = fitted.residuals.copy()
        e[inside] -= fitted.unit_effects('district')[inside]
        np.testing.assert_allclose(
            result.id_level_zeroed, 0.5 * np.sum(np.abs(e)), rtol=1e-12
        )

    def test_residuals_removed(self, neighbourhoods, fitted):
        result = effect(fitted, ['D01', 'D22'], level='district')

        inside = neighbourhoods['district'].isin(['D01', 'D22']).to_numpy()
        expected = 0.5 * np.sum(np.abs(fitted.residuals[~inside]))
        np.testing.assert_allclose(result.id_residual_zeroed, expected, rtol=1e-12)

    def test_places_only_equals_subset_id(self, neighbourhoods, fitted):
        result = effect(fitted, ['D01', 'D22'], level='district')

        subset = neighbourhoods[neighbourhoods['district'].isin(['D01', 'D22'])]
        y = subset['Y'] / subset['Y'].sum()
        x = subset['X'] / subset['X'].sum()
        np.testing.assert_allclose(
            result.id_places_only, dissimilarity(y, x), rtol=1e-12
        )

    def test_observed_id_carried(self, fitted):
        result = effect(fitted, 'R1', level='region')
        assert result.id == fitted.id
        assert set(result.scenarios) == {
            'level_zeroed', 'residual_zeroed', 'places_only',
        }

    def test_collapsed_level_leaves_id_unchanged(self, neighbourhoods):
        result = mlid(
            neighbourhoods, 'Y', 'X',
            levels=['district', 'region'], id='code', zero_tol=1.0,
        )
        eff = effect(result, ['R0', 'R2'], level='region')
        np.testing.assert_allclose(eff.id_level_zeroed, result.id, rtol=1e-14)


class TestImpactAndFit:

    def test_impact_matches_impact_table(self, fitted):
        table = impacts(fitted, 'region').to_frame('region')
        result = effect(fitted, 'R2', level='region')

        np.testing.assert_allclose(result.params.pcnt_id, table.loc['R2', 'pcnt_id'])
        np.testing.assert_allclose(result.impact, table.loc['R2', 'impact'])
        assert result.params.n_place_units == 40

    def test_r_squared_against_direct(self, neighbourhoods, fitted):
        result = effect(fitted, 'R0', level='region')

        r = fitted.unit_effects('code')
        inside = (neighbourhoods['region'] == 'R0').to_numpy()
        grand = r.mean()
        ss_between = (
            inside.sum() * (r[inside].mean() - grand) ** 2
            + (~inside).sum() * (r[~inside].mean() - grand) ** 2
        )
        ss_total = np.sum((r - grand) ** 2)
        np.testing.assert_allclose(result.r_squared, ss_between / ss_total, rtol=1e-10)
        assert 0.0 <= result.r_squared <= 1.0

    def test_mapping_across_levels(self, neighbourhoods, fitted):
        result = effect(fitted, {'district': ['D01'], 'region': 'R3'})

        assert result.places == {'district': ('D01',), 'region': ('R3',)}
        inside = (
            (neighbourhoods['district'] == 'D01')
            | (neighbourhoods['region'] == 'R3')
        ).to_numpy()
        assert result.params.n_place_units == int(inside.sum()) == 48
        expected = 0.5 * np.sum(np.abs(fitted.residuals[~inside]))
        np.testing.assert_allclose(result.id_residual_zeroed, expected, rtol=1e-12)

    def test_base_level_places(self, fitted):
        result = effect(fitted, ['N000', 'N001'], level='code')
        assert result.params.n_place_units == 2

    def test_duplicate_keys_ignored(self, fitted):
        a = effect(fitted, ['D01', 'D01'], level='district')
        b = effect(fitted, ['D01'], level='district')
        assert a.id_level_zeroed == b.id_level_zeroed
        assert a.places == {'district': ('D01',)}

    def test_summary(self, fitted):
        text = effect(fitted, 'R1', level='region').summary()
        assert 'region: R1' in text
        assert 'Impact' in text


class TestErrors:

    def test_unknown_key(self, fitted):
        with pytest.raises(InvalidInputError, match="unknown group key"):
            effect(fitted, ['D01', 'Atlantis'], level='district')

    def test_unknown_level(self, fitted):
        with pytest.raises(ConfigurationError, match="unsupported level"):
            effect(fitted, ['x'], level='ward')

    def test_keys_without_level(self, fitted):
        with pytest.raises(ConfigurationError, match="level= is required"):
            effect(fitted, ['D01'])

    def test_mapping_with_level(self, fitted):
        with pytest.raises(ConfigurationError, match="must not be given"):
            effect(fitted, {'district': ['D01']}, level='district')

    def test_no_places(self, fitted):
        with pytest.raises(InvalidInputError, match="no places"):
            effect(fitted, [], level='district')

    def test_subset_missing_a_group(self, alternating):
        result = mlid(alternating, 'Y', 'X', levels=['district'], id='code')
        with pytest.raises(InvalidInputError, match="no members"):
            effect(result, ['a', 'c'], level='code')
