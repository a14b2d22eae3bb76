"""Transport module: avalanche event loop and tracker adapters."""

from avalanche_mc.transport.engine import (
    AvalancheEngine,
    AvalancheOrchestrator,
    RunSummary,
    sample_start_position,
)
from avalanche_mc.transport.garfield import GarfieldAvalancheEngine

__all__ = [
    "AvalancheEngine",
    "AvalancheOrchestrator",
    "RunSummary",
    "sample_start_position",
    "GarfieldAvalancheEngine",
]
