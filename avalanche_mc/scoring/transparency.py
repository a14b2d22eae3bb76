"""
Transparency tally.

An avalanche "passes" when the last electron in the tracker's enumeration
ended below the readout plane. Transparency is the fraction of accepted
avalanches that passed.
"""

import numpy as np
import numba
from scipy import stats
from typing import Tuple

from avalanche_mc.io.store import read_store, flatten_column

# Readout boundary of the default LEM cell [cm]
DEFAULT_READOUT_Z = -0.017


class TransparencyTally:
    """Running pass/accept counters for one run."""

    def __init__(self):
        self.n_accepted = 0
        self.n_passed = 0

    def add(self, passed: bool):
        self.n_accepted += 1
        if passed:
            self.n_passed += 1

    @property
    def transparency(self) -> float:
        """Passed fraction in [0, 1]; 0.0 when nothing was accepted."""
        if self.n_accepted == 0:
            return 0.0
        return self.n_passed / self.n_accepted

    def interval(self, cl: float = 0.683) -> Tuple[float, float]:
        """Clopper-Pearson interval on the transparency."""
        return clopper_pearson_interval(self.n_passed, self.n_accepted, cl)

    def __repr__(self) -> str:
        return (f"TransparencyTally(passed={self.n_passed}, "
                f"accepted={self.n_accepted}, T={self.transparency:.3f})")


@numba.njit(cache=True)
def last_endpoint_pass_flags(z1: np.ndarray, offsets: np.ndarray,
                             readout_z: float) -> np.ndarray:
    """
    Per-event pass flags from flattened end positions.

    Parameters:
        z1: Concatenated terminal z of all endpoints [cm]
        offsets: Row offsets (n_events + 1); event i spans z1[offsets[i]:offsets[i+1]]
        readout_z: Readout plane [cm]

    Returns:
        Boolean array, True where the last endpoint of the event is below readout_z
    """
    n_events = len(offsets) - 1
    flags = np.zeros(n_events, dtype=np.bool_)
    for i in range(n_events):
        last = offsets[i + 1] - 1
        if last >= offsets[i]:
            flags[i] = z1[last] < readout_z
    return flags


def clopper_pearson_interval(k: int, n: int, cl: float = 0.683) -> Tuple[float, float]:
    """
    Exact binomial confidence interval for k successes out of n.

    Parameters:
        k: Number of passed events
        n: Number of accepted events
        cl: Central confidence level

    Returns:
        (lower, upper); (0, 1) when n == 0
    """
    if n == 0:
        return 0.0, 1.0
    alpha = 1.0 - cl
    lower = 0.0 if k == 0 else stats.beta.ppf(alpha / 2, k, n - k + 1)
    upper = 1.0 if k == n else stats.beta.ppf(1 - alpha / 2, k + 1, n - k)
    return float(lower), float(upper)


def transparency_from_store(path, readout_z: float = DEFAULT_READOUT_Z) -> dict:
    """
    Recompute the transparency of a finished run from its result file.

    Returns:
        Dictionary with n_events, n_passed, transparency, interval, mean_nele,
        mean_nelep
    """
    data = read_store(path)
    z1, offsets = flatten_column(data['z1'])
    flags = last_endpoint_pass_flags(z1, offsets, readout_z)

    tally = TransparencyTally()
    for passed in flags:
        tally.add(bool(passed))

    n_events = tally.n_accepted
    return {
        'n_events': n_events,
        'n_passed': tally.n_passed,
        'transparency': tally.transparency,
        'interval': tally.interval(),
        'mean_nele': float(np.mean(data['nele'])) if n_events > 0 else 0.0,
        'mean_nelep': float(np.mean(data['nelep'])) if n_events > 0 else 0.0,
    }
