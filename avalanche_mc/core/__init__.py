"""Core module: event data model and simulation volume."""

from avalanche_mc.core.geometry import SimulationVolume, lattice_volume
from avalanche_mc.core.endpoint import (
    ENDPOINT_DTYPE,
    AvalancheEvent,
    ElectronEndpoint,
    PrimaryElectron,
)

__all__ = [
    "SimulationVolume",
    "lattice_volume",
    "ENDPOINT_DTYPE",
    "AvalancheEvent",
    "ElectronEndpoint",
    "PrimaryElectron",
]
