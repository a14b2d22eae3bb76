"""
Avalanche event loop.

Drives a microscopic electron tracker event by event:
    - Primary electron sampling over one lattice cell
    - Rejection of avalanches without multiplication
    - Endpoint extraction into AvalancheEvent records
    - Transparency tally and persistence of accepted events

The tracker itself (field interpolation, collision sampling, drift) sits
behind the AvalancheEngine interface.
"""

import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple
from tqdm import tqdm

from avalanche_mc.core.endpoint import AvalancheEvent, ElectronEndpoint, PrimaryElectron
from avalanche_mc.scoring.transparency import TransparencyTally, DEFAULT_READOUT_Z


class AvalancheEngine(ABC):
    """
    Microscopic tracker seen from the event loop.

    One call to avalanche_electron() simulates a full cascade; the remaining
    methods expose the result of the last call.
    """

    @abstractmethod
    def avalanche_electron(self, primary: PrimaryElectron):
        """Track the primary electron and all secondaries to termination."""

    @abstractmethod
    def avalanche_size(self) -> Tuple[int, int]:
        """(electrons, ions) produced in the last avalanche."""

    @abstractmethod
    def number_of_endpoints(self) -> int:
        """Number of electron endpoint records of the last avalanche."""

    @abstractmethod
    def electron_endpoint(self, index: int) -> ElectronEndpoint:
        """Endpoint record at position `index` in tracker enumeration order."""

    def endpoints(self) -> List[ElectronEndpoint]:
        return [self.electron_endpoint(i) for i in range(self.number_of_endpoints())]

    def finalize(self):
        """Called once after the event loop (plots, cleanup)."""


def sample_start_position(rng: np.random.Generator, half_width: float,
                          height: float) -> Tuple[float, float, float]:
    """
    Uniform lateral position in [-L, L] x [-L, L] at a fixed height.

    x is drawn before y so a seeded generator reproduces the same sequence.
    """
    x = (2.0 * rng.random() - 1.0) * half_width
    y = (2.0 * rng.random() - 1.0) * half_width
    return (x, y, height)


@dataclass
class RunSummary:
    """Outcome of AvalancheOrchestrator.run()."""

    n_requested: int
    n_accepted: int
    n_passed: int
    n_attempts: int

    @property
    def n_rejected(self) -> int:
        return self.n_attempts - self.n_accepted

    @property
    def transparency(self) -> float:
        """Passed fraction of accepted events; 0.0 for an empty run."""
        if self.n_accepted == 0:
            return 0.0
        return self.n_passed / self.n_accepted

    def as_dict(self) -> dict:
        return {
            'n_requested': self.n_requested,
            'n_accepted': self.n_accepted,
            'n_passed': self.n_passed,
            'n_attempts': self.n_attempts,
            'n_rejected': self.n_rejected,
            'transparency': self.transparency,
        }


class AvalancheOrchestrator:
    """
    Event loop for avalanche transparency studies.

    Example:
        orchestrator = AvalancheOrchestrator(engine, seed=42)
        with ResultStore('avalanche.h5') as store:
            summary = orchestrator.run(100, store)
        print(summary.transparency)
    """

    def __init__(self, engine: AvalancheEngine,
                 lattice_constant: float = 0.00625,
                 start_height: float = 0.01,
                 direction: Tuple[float, float, float] = (0.0, 0.0, -1.0),
                 initial_time: float = 0.0,
                 initial_energy: float = 1.0,
                 readout_z: float = DEFAULT_READOUT_Z,
                 seed: int = 42,
                 max_attempts: Optional[int] = None):
        """
        Parameters:
            engine: Microscopic tracker
            lattice_constant: Lateral half-width L of the start region [cm]
            start_height: z of the primary electron [cm]
            direction: Initial direction (normalized internally)
            initial_time: Start time [ns]
            initial_energy: Start kinetic energy [eV]
            readout_z: Readout plane for the pass test [cm]
            seed: Seed of the primary-position generator
            max_attempts: Abort after this many tracker calls (None = no limit)
        """
        if lattice_constant <= 0:
            raise ValueError(f"lattice_constant must be positive, got {lattice_constant}")
        if max_attempts is not None and max_attempts < 0:
            raise ValueError(f"max_attempts must be non-negative, got {max_attempts}")

        dir_array = np.array(direction, dtype=np.float64)
        norm = np.linalg.norm(dir_array)
        if norm == 0.0:
            raise ValueError("Initial direction must be non-zero")

        self.engine = engine
        self.lattice_constant = lattice_constant
        self.start_height = start_height
        self.direction = tuple(float(d) for d in dir_array / norm)
        self.initial_time = initial_time
        self.initial_energy = initial_energy
        self.readout_z = readout_z
        self.seed = seed
        self.max_attempts = max_attempts

        self.rng = np.random.default_rng(seed)

    def sample_primary(self) -> PrimaryElectron:
        """Draw the next primary electron."""
        position = sample_start_position(self.rng, self.lattice_constant, self.start_height)
        return PrimaryElectron(position, self.direction,
                               self.initial_time, self.initial_energy)

    def simulate_candidate(self) -> Optional[AvalancheEvent]:
        """
        Simulate one avalanche.

        Returns:
            The event, or None if the primary did not multiply (at most one
            endpoint record).
        """
        primary = self.sample_primary()
        self.engine.avalanche_electron(primary)

        ne, ni = self.engine.avalanche_size()
        n_endpoints = self.engine.number_of_endpoints()
        if n_endpoints <= 1:
            return None

        records = [self.engine.electron_endpoint(j) for j in range(n_endpoints)]
        return AvalancheEvent.from_records(primary, ne, records, ion_count=ni)

    def run(self, n_events: int, store=None, verbose: bool = True) -> RunSummary:
        """
        Simulate until `n_events` avalanches have been accepted.

        Rejected candidates are resampled and do not count toward `n_events`.

        Parameters:
            n_events: Number of accepted avalanches to collect
            store: Object with an append(event) method, e.g. ResultStore (optional)
            verbose: Show a progress bar and print the transparency

        Returns:
            RunSummary
        """
        if n_events < 0:
            raise ValueError(f"n_events must be non-negative, got {n_events}")

        tally = TransparencyTally()
        n_attempts = 0

        with tqdm(total=n_events, desc='Avalanches', unit='evt',
                  disable=not verbose) as pbar:
            while tally.n_accepted < n_events:
                if self.max_attempts is not None and n_attempts >= self.max_attempts:
                    raise RuntimeError(
                        f"Gave up after {n_attempts} avalanches: only "
                        f"{tally.n_accepted}/{n_events} multiplied"
                    )
                n_attempts += 1

                event = self.simulate_candidate()
                if event is None:
                    pbar.set_postfix(rejected=n_attempts - tally.n_accepted)
                    continue

                tally.add(event.passed(self.readout_z))
                if store is not None:
                    store.append(event)
                pbar.update(1)

        self.engine.finalize()

        summary = RunSummary(
            n_requested=n_events,
            n_accepted=tally.n_accepted,
            n_passed=tally.n_passed,
            n_attempts=n_attempts,
        )

        if verbose:
            lower, upper = tally.interval()
            print(f"\nRun complete!")
            print(f"  Avalanches simulated: {summary.n_attempts}")
            print(f"  Accepted: {summary.n_accepted} (rejected {summary.n_rejected})")
            print(f"  Passed readout cut: {summary.n_passed}")
            print(f"Transparency: {summary.transparency * 100.0:.2f}% "
                  f"[{lower * 100.0:.1f}, {upper * 100.0:.1f}]%")

        return summary
