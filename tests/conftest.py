"""
Shared fixtures: in-memory trackers that replay scripted avalanches.
"""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

from avalanche_mc.core.endpoint import ElectronEndpoint
from avalanche_mc.transport.engine import AvalancheEngine


def make_endpoint(z1: float = 0.0, status: int = -7, index: int = 0) -> ElectronEndpoint:
    """Endpoint starting at the origin and ending at height z1."""
    return ElectronEndpoint(
        x0=0.001 * index, y0=0.0, z0=0.0, t0=0.1 * index, e0=1.0,
        x1=0.001 * index, y1=0.0, z1=z1, t1=1.0 + 0.1 * index, e1=0.5,
        status=status,
    )


def make_cascade(z1_values, status: int = -7):
    return [make_endpoint(z1, status, i) for i, z1 in enumerate(z1_values)]


class ScriptedEngine(AvalancheEngine):
    """
    Replays a fixed list of cascades, one per avalanche_electron() call.

    Each script entry is (electron_count, [ElectronEndpoint, ...]). After the
    script is exhausted the `default` entry is repeated.
    """

    def __init__(self, script, default=None):
        self.script = list(script)
        self.default = default
        self.calls = []
        self.finalized = False
        self._current = None

    def avalanche_electron(self, primary):
        self.calls.append(primary)
        index = len(self.calls) - 1
        if index < len(self.script):
            self._current = self.script[index]
        elif self.default is not None:
            self._current = self.default
        else:
            raise RuntimeError("Script exhausted")

    def avalanche_size(self):
        ne, _ = self._current
        return ne, ne - 1

    def number_of_endpoints(self):
        return len(self._current[1])

    def electron_endpoint(self, index):
        return self._current[1][index]

    def finalize(self):
        self.finalized = True


class RandomEngine(AvalancheEngine):
    """Cascades of random size and depth drawn from its own seeded generator."""

    def __init__(self, seed: int = 1, max_size: int = 6):
        self.rng = np.random.default_rng(seed)
        self.max_size = max_size
        self._records = []
        self._ne = 0

    def avalanche_electron(self, primary):
        n = int(self.rng.integers(1, self.max_size + 1))
        x, y, z = primary.position
        self._records = []
        for i in range(n):
            z1 = float(self.rng.uniform(-0.0178, 0.0328))
            self._records.append(ElectronEndpoint(
                x, y, z, 0.0, primary.energy,
                x + float(self.rng.normal(0, 0.001)), y, z1,
                float(self.rng.exponential(2.0)), float(self.rng.uniform(0, 5)),
                int(self.rng.choice([-1, -5, -7])),
            ))
        self._ne = n + int(self.rng.integers(0, 2))

    def avalanche_size(self):
        return self._ne, self._ne - 1

    def number_of_endpoints(self):
        return len(self._records)

    def electron_endpoint(self, index):
        return self._records[index]


@pytest.fixture
def single():
    """Cascade where the primary did not multiply."""
    return (1, make_cascade([0.005]))


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / 'avalanche.h5'
