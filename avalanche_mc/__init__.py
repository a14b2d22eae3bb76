"""
AVALANCHE_MC: Electron Avalanche Monte Carlo for Gas Detector Cells

Drives a microscopic electron tracker over a finite-element field map,
keeps the avalanches that multiplied and records every electron endpoint.

Modules:
    core: Event data model, simulation volume
    physics: Drift gas and field map configuration
    transport: Avalanche event loop, Garfield++ tracker adapter
    scoring: Transparency tally, endpoint plots
    io: HDF5 result store
"""

__version__ = "0.1.0"

from avalanche_mc.core.endpoint import AvalancheEvent, ElectronEndpoint, PrimaryElectron
from avalanche_mc.core.geometry import SimulationVolume
from avalanche_mc.io.store import ResultStore
from avalanche_mc.transport.engine import AvalancheEngine, AvalancheOrchestrator

__all__ = [
    "AvalancheEvent",
    "ElectronEndpoint",
    "PrimaryElectron",
    "SimulationVolume",
    "ResultStore",
    "AvalancheEngine",
    "AvalancheOrchestrator",
]
