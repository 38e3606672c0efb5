"""
pytest configuration and shared fixtures.
"""

import numpy as np
import pandas as pd
import pytest

from pymlid import mlid


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def neighbourhoods(rng):
    """Unit records for a three-tier geography.

    4 regions × 5 districts × 8 neighbourhoods = 160 units. The log-odds
    of a resident belonging to group Y varies by region (SD 0.6), by
    district (SD 0.4) and by neighbourhood (SD 0.3), so every level
    carries some of the segregation.
    """
    n_regions, n_districts, n_units = 4, 5, 8
    rows = []
    region_eff = rng.normal(0.0, 0.6, n_regions)
    for r in range(n_regions):
        district_eff = rng.normal(0.0, 0.4, n_districts)
        for d in range(n_districts):
            for u in range(n_units):
                logit = -0.5 + region_eff[r] + district_eff[d] + rng.normal(0.0, 0.3)
                p = 1.0 / (1.0 + np.exp(-logit))
                total = int(rng.integers(800, 2000))
                n_y = int(rng.binomial(total, p))
                other = int(rng.integers(0, 200))
                rows.append({
                    'code': f"N{r}{d}{u}",
                    'district': f"D{r}{d}",
                    'region': f"R{r}",
                    'Y': n_y,
                    'X': total - n_y,
                    'population': total + other,
                })
    return pd.DataFrame(rows)


@pytest.fixture
def fitted(neighbourhoods):
    """Multilevel index of the neighbourhoods fixture."""
    return mlid(
        neighbourhoods, 'Y', 'X',
        levels=['district', 'region'], id='code',
    )


@pytest.fixture
def alternating():
    """Four units, complete segregation, two districts of two units."""
    return pd.DataFrame({
        'code': ['a', 'b', 'c', 'd'],
        'district': ['A', 'A', 'B', 'B'],
        'Y': [10, 0, 10, 0],
        'X': [0, 10, 0, 10],
    })
