"""
Simulation volume for the avalanche transport.

The field map and the microscopic tracker only operate inside an
axis-aligned box. It is fixed once at startup.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class SimulationVolume:
    """Axis-aligned bounding box [cm]."""

    xmin: float
    ymin: float
    zmin: float
    xmax: float
    ymax: float
    zmax: float

    def __post_init__(self):
        for axis in ('x', 'y', 'z'):
            lo = getattr(self, axis + 'min')
            hi = getattr(self, axis + 'max')
            if not lo < hi:
                raise ValueError(f"Invalid volume along {axis}: "
                                 f"min={lo} must be smaller than max={hi}")

    @property
    def bounds(self) -> Tuple[float, float, float, float, float, float]:
        """(xmin, ymin, zmin, xmax, ymax, zmax), the order Sensor.SetArea expects."""
        return (self.xmin, self.ymin, self.zmin, self.xmax, self.ymax, self.zmax)

    @property
    def aspect_ratio(self) -> float:
        """Width over height of the x-z cross-section (used for canvas sizing)."""
        return (self.xmax - self.xmin) / (self.zmax - self.zmin)

    def contains(self, x: float, y: float, z: float) -> bool:
        return (self.xmin <= x <= self.xmax and
                self.ymin <= y <= self.ymax and
                self.zmin <= z <= self.zmax)


def lattice_volume(lattice_constant: float, zmin: float, zmax: float,
                   n_cells: float = 2.0) -> SimulationVolume:
    """
    Build the lateral ±n_cells*L box around a periodic unit cell.

    Parameters:
        lattice_constant: Hole pitch half-width L [cm]
        zmin, zmax: Drift-axis extent [cm]
        n_cells: Lateral half-width in units of L

    Returns:
        SimulationVolume
    """
    half = lattice_constant * n_cells
    return SimulationVolume(-half, -half, zmin, half, half, zmax)
