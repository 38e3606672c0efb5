"""
Monte Carlo expected index of dissimilarity.

Even with no segregation at all, allocating a finite number of people
at random leaves some unevenness, so the observed ID is compared with
the ID expected under random allocation. Each simulation distributes
the Y total and the X total independently across units by multinomial
sampling with probability proportional to each unit's total population
(both grand totals are respected exactly), then recomputes the ID.

Simulations are independent draws, so they are generated in batches
and only the per-simulation IDs are kept.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pymlid.index._common import ExpectedID

# Upper bound on simulated counts held in memory per batch.
_BATCH_CELLS = 2 ** 22


def simulate_expected(
    total_y: int,
    total_x: int,
    unit_totals: NDArray,
    n_sims: int,
    rng: np.random.Generator,
) -> ExpectedID:
    """
    Simulate the ID under random allocation.

    Args:
        total_y: Grand total of group Y to allocate.
        total_x: Grand total of group X to allocate.
        unit_totals: Total population per unit (n,), sums to > 0.
        n_sims: Number of simulations.
        rng: Random generator.

    Returns:
        ExpectedID with mean, SD and Monte Carlo SE.
    """
    n = unit_totals.shape[0]
    p = unit_totals / np.sum(unit_totals)
    batch = max(1, _BATCH_CELLS // max(n, 1))

    ids = np.empty(n_sims, dtype=np.float64)
    done = 0
    while done < n_sims:
        size = min(batch, n_sims - done)
        sim_y = rng.multinomial(total_y, p, size=size)
        sim_x = rng.multinomial(total_x, p, size=size)
        ids[done:done + size] = 0.5 * np.sum(
            np.abs(sim_y / total_y - sim_x / total_x), axis=1
        )
        done += size

    sd = float(np.std(ids, ddof=1)) if n_sims > 1 else 0.0
    return ExpectedID(
        expected_id=float(np.mean(ids)),
        sd=sd,
        se=sd / np.sqrt(n_sims),
        n_sims=n_sims,
        ids=ids,
    )
