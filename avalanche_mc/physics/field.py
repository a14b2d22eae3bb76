"""
Elmer finite-element field map description.

The field solution is produced offline (Gmsh + ElmerSolver). This module
only knows which files make up a solution and how to recognise the gas
regions in its dielectric table.
"""

from pathlib import Path
from typing import List, Optional, Sequence

# Relative permittivity of the drift gas
GAS_PERMITTIVITY = 1.0

# Units understood by ComponentElmer
LENGTH_UNITS = ('cm', 'mm', 'um', 'm')


class ElmerFieldMap:
    """
    File set of an Elmer field solution plus the options applied on import.

    Example:
        fm = ElmerFieldMap.from_directory('geometry')
        fm.check_files()
    """

    def __init__(self, header: Path, elements: Path, nodes: Path,
                 dielectrics: Path, field: Path,
                 weighting_field: Optional[Path] = None,
                 weighting_electrode: str = 'readout',
                 unit: str = 'mm',
                 periodic_x: bool = True,
                 periodic_y: bool = True):
        """
        Parameters:
            header, elements, nodes: Mesh files (mesh.header/.elements/.nodes)
            dielectrics: Material permittivity table
            field: Potential solution (field.result)
            weighting_field: Weighting potential for one electrode (optional)
            weighting_electrode: Label under which the weighting field is attached
            unit: Length unit of the mesh
            periodic_x, periodic_y: Mirror the unit cell laterally
        """
        if unit not in LENGTH_UNITS:
            raise ValueError(f"Unknown length unit '{unit}'. Available: {list(LENGTH_UNITS)}")

        self.header = Path(header)
        self.elements = Path(elements)
        self.nodes = Path(nodes)
        self.dielectrics = Path(dielectrics)
        self.field = Path(field)
        self.weighting_field = Path(weighting_field) if weighting_field is not None else None
        self.weighting_electrode = weighting_electrode
        self.unit = unit
        self.periodic_x = periodic_x
        self.periodic_y = periodic_y

    @classmethod
    def from_directory(cls, directory, mesh_subdir: str = 'geometry',
                       **kwargs) -> 'ElmerFieldMap':
        """
        Standard layout written by ElmerGrid/ElmerSolver:

            <directory>/dielectrics.dat
            <directory>/<mesh_subdir>/mesh.{header,elements,nodes}
            <directory>/<mesh_subdir>/field.result
            <directory>/<mesh_subdir>/field_weight.result
        """
        directory = Path(directory)
        mesh = directory / mesh_subdir
        return cls(
            header=mesh / 'mesh.header',
            elements=mesh / 'mesh.elements',
            nodes=mesh / 'mesh.nodes',
            dielectrics=directory / 'dielectrics.dat',
            field=mesh / 'field.result',
            weighting_field=kwargs.pop('weighting_field', mesh / 'field_weight.result'),
            **kwargs
        )

    def files(self) -> List[Path]:
        """All files that must exist for the import."""
        paths = [self.header, self.elements, self.nodes, self.dielectrics, self.field]
        if self.weighting_field is not None:
            paths.append(self.weighting_field)
        return paths

    def check_files(self):
        """Raise FileNotFoundError listing every missing file."""
        missing = [str(p) for p in self.files() if not p.is_file()]
        if missing:
            raise FileNotFoundError(
                "Field map files not found:\n  " + "\n  ".join(missing)
            )

    def __repr__(self) -> str:
        return f"ElmerFieldMap(field={self.field}, unit='{self.unit}')"


def find_gas_materials(permittivities: Sequence[float],
                       tolerance: float = 1e-3) -> List[int]:
    """
    Indices of the mesh materials that represent gas.

    A material is gas if its relative permittivity is within `tolerance`
    of 1.

    Parameters:
        permittivities: Relative permittivity per material index
        tolerance: Absolute tolerance on |eps - 1|

    Returns:
        Sorted list of material indices
    """
    return [i for i, eps in enumerate(permittivities)
            if abs(eps - GAS_PERMITTIVITY) < tolerance]
