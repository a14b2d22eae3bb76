"""
Garfield++ tracker accessed through PyROOT.

Builds the field map (ComponentElmer), the gas (MediumMagboltz), the sensor
and the microscopic avalanche tracker once, then serves avalanches to the
event loop.

Requires ROOT with Python bindings and a Garfield++ build whose environment
has been sourced (setupGarfield.sh).
"""

import ctypes
from pathlib import Path
from typing import Tuple

from avalanche_mc.core.endpoint import ElectronEndpoint, PrimaryElectron
from avalanche_mc.core.geometry import SimulationVolume
from avalanche_mc.physics.field import ElmerFieldMap, find_gas_materials
from avalanche_mc.physics.medium import GasMedium
from avalanche_mc.transport.engine import AvalancheEngine


def load_garfield():
    """Import PyROOT and the Garfield namespace."""
    try:
        import ROOT
        import Garfield  # noqa: F401  (loads libGarfield into ROOT)
    except ImportError as e:
        raise ImportError(
            "GarfieldAvalancheEngine needs PyROOT and the Garfield++ Python "
            "module. Install ROOT, build Garfield++ and source setupGarfield.sh."
        ) from e
    return ROOT


def build_gas(medium: GasMedium, garfield, verbose: bool = True):
    """Create and initialise a MediumMagboltz from a GasMedium."""
    gas = garfield.MediumMagboltz()
    gas.SetTemperature(medium.temperature_K)
    gas.SetPressure(medium.pressure_Torr)
    if medium.enable_drift:
        gas.EnableDrift()
    gas.SetComposition(*medium.composition_args())
    gas.SetMaxElectronEnergy(medium.max_electron_energy_eV)
    gas.Initialise(verbose)
    return gas


def build_component(field_map: ElmerFieldMap, gas, garfield,
                    gas_tolerance: float = 1e-3, verbose: bool = True):
    """
    Import the Elmer solution and assign the gas to its gas regions.

    The field files are expected to exist (see ElmerFieldMap.check_files).

    Returns:
        (component, gas_materials): ComponentElmer and the material indices
        that received the gas
    """
    fm = garfield.ComponentElmer(
        str(field_map.header),
        str(field_map.elements),
        str(field_map.nodes),
        str(field_map.dielectrics),
        str(field_map.field),
        field_map.unit,
    )
    if field_map.periodic_x:
        fm.EnablePeriodicityX()
    if field_map.periodic_y:
        fm.EnablePeriodicityY()
    if field_map.weighting_field is not None:
        fm.SetWeightingField(str(field_map.weighting_field), field_map.weighting_electrode)
    if verbose:
        fm.PrintRange()

    n_materials = fm.GetNumberOfMaterials()
    if n_materials == 0:
        raise ValueError(f"Field map {field_map.field} could not be read (no materials)")

    permittivities = [fm.GetPermittivity(i) for i in range(n_materials)]
    gas_materials = find_gas_materials(permittivities, gas_tolerance)
    if not gas_materials:
        raise ValueError(f"No gas region found: permittivities {permittivities} "
                         f"are all further than {gas_tolerance} from 1")

    for i in gas_materials:
        fm.SetMedium(i, gas)

    if verbose:
        print(f"  Materials: {n_materials}, gas regions: {gas_materials}")

    return fm, gas_materials


class GarfieldAvalancheEngine(AvalancheEngine):
    """
    AvalancheMicroscopic over an Elmer field map.

    Example:
        engine = GarfieldAvalancheEngine(ElmerFieldMap.from_directory('geometry'),
                                         GasMedium.from_preset('ar_co2_93_7'),
                                         lattice_volume(0.00625, -0.0178, 0.0328))
    """

    def __init__(self, field_map: ElmerFieldMap, medium: GasMedium,
                 volume: SimulationVolume,
                 max_avalanche_size: int = 10,
                 collision_steps: int = 1,
                 gas_tolerance: float = 1e-3,
                 visualization: bool = False,
                 plot_path: Path = Path('avalanche.pdf'),
                 verbose: bool = True):
        """
        Parameters:
            field_map: Elmer field solution
            medium: Drift gas
            volume: Active region of the sensor
            max_avalanche_size: Tracker stops adding electrons above this size
            collision_steps: Collisions between stored drift-line points
            gas_tolerance: Permittivity tolerance for gas detection
            visualization: Record drift lines and draw field contours
            plot_path: Output of the drift/field plot
            verbose: Print setup information
        """
        if max_avalanche_size <= 0:
            raise ValueError(f"max_avalanche_size must be positive, got {max_avalanche_size}")

        field_map.check_files()
        ROOT = load_garfield()
        garfield = ROOT.Garfield

        self.volume = volume
        self.visualization = visualization
        self.plot_path = Path(plot_path)

        if verbose:
            print(f"\nSetting up Garfield++ sensor")
            print(f"  Field map: {field_map.field}")
            print(f"  Gas: {medium}")
            print(f"  Volume: {volume.bounds} cm")

        # Objects are kept as attributes: ROOT does not own them
        self.gas = build_gas(medium, garfield, verbose)
        self.component, self.gas_materials = build_component(
            field_map, self.gas, garfield, gas_tolerance, verbose
        )

        self.sensor = garfield.Sensor()
        self.sensor.AddComponent(self.component)
        self.sensor.SetArea(*volume.bounds)

        self.avalanche = garfield.AvalancheMicroscopic()
        self.avalanche.SetSensor(self.sensor)
        self.avalanche.SetCollisionSteps(collision_steps)
        self.avalanche.EnableAvalancheSizeLimit(max_avalanche_size)

        self.canvas = None
        self.view_field = None
        self.view_drift = None
        if visualization:
            self._setup_views(ROOT, garfield)

    def _setup_views(self, ROOT, garfield):
        v = self.volume
        aspect = v.aspect_ratio
        self.canvas = ROOT.TCanvas('geom', 'Geometry/Fields', int(800 * aspect), 800)

        self.view_field = garfield.ViewField()
        self.view_field.SetSensor(self.sensor)
        self.view_field.SetCanvas(self.canvas)
        self.view_field.SetArea(v.xmin, v.zmin - 0.001, v.xmax, v.zmax + 0.001)
        self.view_field.SetNumberOfContours(50)
        self.view_field.SetNumberOfSamples2d(int(220 * aspect), 220)
        self.view_field.SetPlane(0, -1, 0, 0, 0, 0)

        self.view_drift = garfield.ViewDrift()
        self.view_drift.SetArea(v.xmin, v.ymin, v.zmin - 0.001,
                                v.xmax, v.ymax, v.zmax + 0.001)
        self.avalanche.EnablePlotting(self.view_drift)

    def avalanche_electron(self, primary: PrimaryElectron):
        x, y, z = primary.position
        dx, dy, dz = primary.direction
        self.avalanche.AvalancheElectron(x, y, z, primary.time, primary.energy, dx, dy, dz)

    def avalanche_size(self) -> Tuple[int, int]:
        ne = ctypes.c_int(0)
        ni = ctypes.c_int(0)
        self.avalanche.GetAvalancheSize(ne, ni)
        return ne.value, ni.value

    def number_of_endpoints(self) -> int:
        return int(self.avalanche.GetNumberOfElectronEndpoints())

    def electron_endpoint(self, index: int) -> ElectronEndpoint:
        x0, y0, z0, t0, e0 = (ctypes.c_double(0.0) for _ in range(5))
        x1, y1, z1, t1, e1 = (ctypes.c_double(0.0) for _ in range(5))
        status = ctypes.c_int(0)
        self.avalanche.GetElectronEndpoint(index, x0, y0, z0, t0, e0,
                                           x1, y1, z1, t1, e1, status)
        return ElectronEndpoint(
            x0.value, y0.value, z0.value, t0.value, e0.value,
            x1.value, y1.value, z1.value, t1.value, e1.value,
            status.value,
        )

    def finalize(self):
        """Draw drift lines and field contours if visualization is enabled."""
        if not self.visualization:
            return
        self.view_drift.Plot()
        self.view_field.PlotContour('e')
        self.plot_path.parent.mkdir(parents=True, exist_ok=True)
        self.canvas.SaveAs(str(self.plot_path))
        print(f"Plot saved: {self.plot_path}")
