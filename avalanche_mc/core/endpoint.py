"""
Avalanche event data model.

Electron endpoints are stored as NumPy structured arrays so an event maps
directly onto the columns of the result store.
"""

import numpy as np
from typing import NamedTuple, Tuple


# One record per electron: start state, end state, termination code
ENDPOINT_DTYPE = np.dtype([
    ('x0', np.float64),       # start position [cm]
    ('y0', np.float64),
    ('z0', np.float64),
    ('e0', np.float64),       # start energy [eV]
    ('t0', np.float64),       # start time [ns]
    ('x1', np.float64),       # end position [cm]
    ('y1', np.float64),
    ('z1', np.float64),
    ('e1', np.float64),       # end energy [eV]
    ('t1', np.float64),       # end time [ns]
    ('status', np.int32),     # termination code reported by the tracker
])

FLOAT_COLUMNS = ('x0', 'y0', 'z0', 'e0', 't0', 'x1', 'y1', 'z1', 'e1', 't1')


class ElectronEndpoint(NamedTuple):
    """Start/end summary of one electron trajectory."""

    x0: float
    y0: float
    z0: float
    t0: float
    e0: float
    x1: float
    y1: float
    z1: float
    t1: float
    e1: float
    status: int


class PrimaryElectron(NamedTuple):
    """Initial state of the electron injected at the start of an event."""

    position: Tuple[float, float, float]   # [cm]
    direction: Tuple[float, float, float]  # unit vector
    time: float = 0.0                      # [ns]
    energy: float = 1.0                    # [eV]


class AvalancheEvent:
    """One accepted primary injection and the cascade it produced."""

    def __init__(self, primary: PrimaryElectron, electron_count: int,
                 endpoints: np.ndarray, ion_count: int = 0):
        """
        Parameters:
            primary: Initial state of the primary electron
            electron_count: Avalanche size reported by the tracker (nele)
            endpoints: Structured array of ENDPOINT_DTYPE in tracker order
            ion_count: Number of ions reported by the tracker (not persisted)
        """
        if endpoints.dtype != ENDPOINT_DTYPE:
            raise TypeError(f"endpoints must have ENDPOINT_DTYPE, got {endpoints.dtype}")
        self.primary = primary
        self.electron_count = int(electron_count)
        self.ion_count = int(ion_count)
        self.endpoints = endpoints

    @classmethod
    def from_records(cls, primary: PrimaryElectron, electron_count: int,
                     records, ion_count: int = 0) -> 'AvalancheEvent':
        """Build an event from ElectronEndpoint records, preserving their order."""
        endpoints = np.zeros(len(records), dtype=ENDPOINT_DTYPE)
        for i, rec in enumerate(records):
            for name in ENDPOINT_DTYPE.names:
                endpoints[name][i] = getattr(rec, name)
        return cls(primary, electron_count, endpoints, ion_count)

    @property
    def endpoint_count(self) -> int:
        """Number of endpoint records (nelep)."""
        return len(self.endpoints)

    @property
    def final_endpoint(self) -> np.void:
        """Last endpoint in tracker enumeration order."""
        return self.endpoints[-1]

    def passed(self, readout_z: float) -> bool:
        """True if the last enumerated electron ended below the readout plane."""
        return bool(self.final_endpoint['z1'] < readout_z)

    def __repr__(self) -> str:
        return (f"AvalancheEvent(nele={self.electron_count}, "
                f"nelep={self.endpoint_count}, "
                f"z1_last={self.final_endpoint['z1']:.4f} cm)")
