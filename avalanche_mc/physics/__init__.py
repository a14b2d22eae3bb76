"""Physics module: drift gas and field map configuration."""

from avalanche_mc.physics.medium import GasMedium, GAS_MIXTURES
from avalanche_mc.physics.field import ElmerFieldMap, find_gas_materials

__all__ = ["GasMedium", "GAS_MIXTURES", "ElmerFieldMap", "find_gas_materials"]
