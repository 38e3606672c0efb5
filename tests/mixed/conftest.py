"""
Shared fixtures for nested variance-component model tests.

Provides datasets with known structure: a balanced one-level design
whose ML estimates have a closed form, and a two-level nested design
with known variance components.
"""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(2024)


@pytest.fixture
def balanced_one_level(rng):
    """Balanced random intercepts: 12 groups × 6 units, zero offset.

    Group SD = 2, residual SD = 0.5, so the group variance is well away
    from the boundary.
    """
    n_groups, m = 12, 6
    g = np.repeat(np.arange(n_groups), m)
    b = rng.normal(0.0, 2.0, n_groups)
    y = b[g] + rng.normal(0.0, 0.5, n_groups * m)
    return y, np.zeros_like(y), g, n_groups, m


@pytest.fixture
def nested_two_level(rng):
    """Districts within regions: 8 regions × 5 districts × 6 units = 240.

    Region SD = 2, district SD = 1, residual SD = 0.5. The offset is a
    random vector; the model must treat it with coefficient one.
    """
    n_regions, n_districts, m = 8, 5, 6
    n = n_regions * n_districts * m
    region = np.repeat([f"R{r}" for r in range(n_regions)], n_districts * m)
    district = np.repeat(
        [f"R{r}-D{d}" for r in range(n_regions) for d in range(n_districts)], m
    )
    b_region = rng.normal(0.0, 2.0, n_regions)
    b_district = rng.normal(0.0, 1.0, n_regions * n_districts)
    offset = rng.uniform(0.0, 5.0, n)
    y = (
        offset
        + np.repeat(b_region, n_districts * m)
        + np.repeat(b_district, m)
        + rng.normal(0.0, 0.5, n)
    )
    return y, offset, {'district': district, 'region': region}
