"""
Drift gas description for the Magboltz transport tables.

Only the configuration lives here; cross sections and transport
coefficients are computed by the tracker's gas model.
"""

from typing import Dict, Tuple

# Gas identifiers accepted by MediumMagboltz.SetComposition (subset)
MAGBOLTZ_GASES = (
    'ar', 'ne', 'he', 'he-3', 'kr', 'xe',
    'co2', 'ch4', 'cf4', 'n2', 'o2', 'h2',
    'ic4h10', 'nc4h10', 'c2h6', 'c3h8', 'c2h4', 'c2h2',
    'dme', 'sf6', 'nh3', 'h2o', 'c2h2f4', 'tma',
)

# Standard mixtures (fractions in percent)
GAS_MIXTURES = {
    'ar_co2_93_7': {'ar': 93.0, 'co2': 7.0},
    'ar_co2_90_10': {'ar': 90.0, 'co2': 10.0},
    'ar_co2_70_30': {'ar': 70.0, 'co2': 30.0},
    'ne_co2_90_10': {'ne': 90.0, 'co2': 10.0},
    'ar_ch4_90_10': {'ar': 90.0, 'ch4': 10.0},
    'ar_ic4h10_95_5': {'ar': 95.0, 'ic4h10': 5.0},
}

# Magboltz handles at most six components
MAX_COMPONENTS = 6


class GasMedium:
    """
    Gas mixture at fixed temperature and pressure.

    Usage:
        gas = GasMedium.from_preset('ar_co2_93_7')
        gas.composition_args()  # ('ar', 93.0, 'co2', 7.0)
    """

    def __init__(self, composition: Dict[str, float],
                 temperature_K: float = 293.15,
                 pressure_Torr: float = 750.0,
                 max_electron_energy_eV: float = 200.0,
                 enable_drift: bool = True):
        """
        Parameters:
            composition: Gas name -> fraction [%]
            temperature_K: Gas temperature [K]
            pressure_Torr: Gas pressure [Torr]
            max_electron_energy_eV: Upper end of the collision-rate tables [eV]
            enable_drift: Allow electrons to drift in this medium
        """
        if not composition:
            raise ValueError("Gas composition must not be empty")
        if len(composition) > MAX_COMPONENTS:
            raise ValueError(f"At most {MAX_COMPONENTS} gas components are supported, "
                             f"got {len(composition)}")

        self.composition = {}
        for name, fraction in composition.items():
            key = name.lower()
            if key not in MAGBOLTZ_GASES:
                raise ValueError(f"Unknown gas '{name}'. Available: {list(MAGBOLTZ_GASES)}")
            if fraction <= 0:
                raise ValueError(f"Fraction of '{name}' must be positive, got {fraction}")
            self.composition[key] = float(fraction)

        if temperature_K <= 0:
            raise ValueError(f"Temperature must be positive, got {temperature_K} K")
        if pressure_Torr <= 0:
            raise ValueError(f"Pressure must be positive, got {pressure_Torr} Torr")
        if max_electron_energy_eV <= 0:
            raise ValueError(f"Max electron energy must be positive, got {max_electron_energy_eV} eV")

        self.temperature_K = float(temperature_K)
        self.pressure_Torr = float(pressure_Torr)
        self.max_electron_energy_eV = float(max_electron_energy_eV)
        self.enable_drift = enable_drift

    @classmethod
    def from_preset(cls, name: str, **kwargs) -> 'GasMedium':
        """Create a medium from one of GAS_MIXTURES."""
        if name not in GAS_MIXTURES:
            raise ValueError(f"Unknown gas mixture '{name}'. "
                             f"Available: {list(GAS_MIXTURES.keys())}")
        return cls(dict(GAS_MIXTURES[name]), **kwargs)

    def composition_args(self) -> Tuple:
        """Flattened (name, fraction, ...) arguments for SetComposition."""
        args = []
        for name, fraction in self.composition.items():
            args.extend([name, fraction])
        return tuple(args)

    def normalized_fractions(self) -> Dict[str, float]:
        """Fractions rescaled to sum to 1."""
        total = sum(self.composition.values())
        return {name: f / total for name, f in self.composition.items()}

    def label(self) -> str:
        """Human-readable mixture label, e.g. 'ar/co2 93:7'."""
        names = '/'.join(self.composition)
        fractions = ':'.join(f"{f:g}" for f in self.composition.values())
        return f"{names} {fractions}"

    def __repr__(self) -> str:
        return (f"GasMedium({self.label()}, T={self.temperature_K} K, "
                f"p={self.pressure_Torr} Torr)")
