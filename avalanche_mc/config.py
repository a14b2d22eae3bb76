"""
Run configuration.

Defaults describe the Ar/CO2 LEM cell: 62.5 µm lattice half-pitch, drift
region from -178 µm to +328 µm, readout cut at -170 µm.

A YAML file may override any subset:

    simulation:
      n_events: 1000
      seed: 7
    gas:
      composition: {ar: 90, co2: 10}
    field:
      directory: geometry
"""

import yaml
from dataclasses import dataclass, field as dc_field, fields, asdict
from pathlib import Path
from typing import Dict, Optional, Tuple

from avalanche_mc.core.geometry import SimulationVolume, lattice_volume
from avalanche_mc.physics.field import ElmerFieldMap
from avalanche_mc.physics.medium import GasMedium


@dataclass
class SimulationSettings:
    n_events: int = 100
    max_avalanche_size: int = 10
    collision_steps: int = 1
    seed: int = 42
    max_attempts: Optional[int] = None
    verbose: bool = True


@dataclass
class PrimarySettings:
    start_height: float = 0.01                            # cm
    direction: Tuple[float, float, float] = (0.0, 0.0, -1.0)
    initial_time: float = 0.0                             # ns
    initial_energy: float = 1.0                           # eV
    readout_z: float = -0.017                             # cm


@dataclass
class VolumeSettings:
    lattice_constant: float = 0.00625                     # cm
    n_cells: float = 2.0
    zmin: float = -0.0178                                 # cm
    zmax: float = 0.0328                                  # cm


@dataclass
class GasSettings:
    composition: Dict[str, float] = dc_field(default_factory=lambda: {'ar': 93.0, 'co2': 7.0})
    temperature: float = 293.15                           # K
    pressure: float = 750.0                               # Torr
    max_electron_energy: float = 200.0                    # eV


@dataclass
class FieldSettings:
    directory: str = 'geometry'
    mesh_subdir: str = 'geometry'
    unit: str = 'mm'
    weighting_electrode: Optional[str] = 'readout'
    periodic_x: bool = True
    periodic_y: bool = True
    gas_tolerance: float = 1e-3


@dataclass
class OutputSettings:
    path: str = 'avalanche.h5'
    visualization: bool = False
    plot_path: str = 'avalanche.pdf'


_SECTIONS = {
    'simulation': SimulationSettings,
    'primary': PrimarySettings,
    'volume': VolumeSettings,
    'gas': GasSettings,
    'field': FieldSettings,
    'output': OutputSettings,
}


@dataclass
class SimulationConfig:
    simulation: SimulationSettings = dc_field(default_factory=SimulationSettings)
    primary: PrimarySettings = dc_field(default_factory=PrimarySettings)
    volume: VolumeSettings = dc_field(default_factory=VolumeSettings)
    gas: GasSettings = dc_field(default_factory=GasSettings)
    field: FieldSettings = dc_field(default_factory=FieldSettings)
    output: OutputSettings = dc_field(default_factory=OutputSettings)
    base_dir: Path = dc_field(default_factory=Path.cwd)

    def validate(self):
        """Raise ValueError on inconsistent settings."""
        sim = self.simulation
        if sim.n_events < 0:
            raise ValueError(f"n_events must be non-negative, got {sim.n_events}")
        if sim.max_avalanche_size <= 0:
            raise ValueError(f"max_avalanche_size must be positive, got {sim.max_avalanche_size}")
        if sim.collision_steps <= 0:
            raise ValueError(f"collision_steps must be positive, got {sim.collision_steps}")
        if sim.max_attempts is not None and sim.max_attempts < 0:
            raise ValueError(f"max_attempts must be non-negative, got {sim.max_attempts}")
        if self.volume.lattice_constant <= 0:
            raise ValueError(f"lattice_constant must be positive, got {self.volume.lattice_constant}")
        if len(self.primary.direction) != 3:
            raise ValueError(f"direction must have 3 components, got {self.primary.direction}")

        volume = self.build_volume()
        if not volume.zmin <= self.primary.start_height <= volume.zmax:
            raise ValueError(f"start_height {self.primary.start_height} cm is outside "
                             f"the volume [{volume.zmin}, {volume.zmax}] cm")
        self.build_medium()

    def build_volume(self) -> SimulationVolume:
        v = self.volume
        return lattice_volume(v.lattice_constant, v.zmin, v.zmax, v.n_cells)

    def build_medium(self) -> GasMedium:
        g = self.gas
        return GasMedium(g.composition, temperature_K=g.temperature,
                         pressure_Torr=g.pressure,
                         max_electron_energy_eV=g.max_electron_energy)

    def build_field_map(self) -> ElmerFieldMap:
        f = self.field
        directory = self.resolve(f.directory)
        kwargs = {}
        if f.weighting_electrode is None:
            kwargs['weighting_field'] = None
        else:
            kwargs['weighting_electrode'] = f.weighting_electrode
        return ElmerFieldMap.from_directory(
            directory, mesh_subdir=f.mesh_subdir, unit=f.unit,
            periodic_x=f.periodic_x, periodic_y=f.periodic_y, **kwargs
        )

    def resolve(self, path) -> Path:
        """Resolve a path relative to the configuration file."""
        path = Path(path)
        return path if path.is_absolute() else self.base_dir / path

    @property
    def output_path(self) -> Path:
        return self.resolve(self.output.path)

    @property
    def plot_path(self) -> Path:
        return self.resolve(self.output.plot_path)

    def to_dict(self) -> dict:
        return {name: asdict(getattr(self, name)) for name in _SECTIONS}


def _build_section(name: str, values) -> object:
    cls = _SECTIONS[name]
    if values is None:
        return cls()
    if not isinstance(values, dict):
        raise ValueError(f"Section '{name}' must be a mapping, got {type(values).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown keys in section '{name}': {sorted(unknown)}. "
                         f"Available: {sorted(known)}")
    values = dict(values)
    if 'direction' in values:
        values['direction'] = tuple(float(d) for d in values['direction'])
    return cls(**values)


def config_from_dict(data: Optional[dict], base_dir=None) -> SimulationConfig:
    """Build and validate a SimulationConfig from nested dictionaries."""
    data = data or {}
    if not isinstance(data, dict):
        raise ValueError("Configuration must be a mapping of sections")
    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}. "
                         f"Available: {list(_SECTIONS)}")

    sections = {name: _build_section(name, data.get(name)) for name in _SECTIONS}
    config = SimulationConfig(**sections)
    if base_dir is not None:
        config.base_dir = Path(base_dir)
    config.validate()
    return config


def load_config(path=None) -> SimulationConfig:
    """
    Load a YAML configuration file.

    Parameters:
        path: YAML file; None returns the defaults

    Returns:
        Validated SimulationConfig whose relative paths resolve against
        the file's directory
    """
    if path is None:
        return config_from_dict({})

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, 'r') as f:
        data = yaml.safe_load(f)

    return config_from_dict(data, base_dir=path.resolve().parent)


def save_config(config: SimulationConfig, path):
    """Write a configuration back to YAML."""
    data = config.to_dict()
    data['primary']['direction'] = list(data['primary']['direction'])
    with open(path, 'w') as f:
        yaml.safe_dump(data, f, sort_keys=False)
