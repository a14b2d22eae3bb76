"""
Command-line entry point.

Usage:
    avalanche-mc run [config.yaml] [-n 1000] [--seed 7] [-o avalanche.h5]
    avalanche-mc summary avalanche.h5 [--readout-z -0.017]
    avalanche-mc plot avalanche.h5 [--save z1.png]
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from avalanche_mc.config import SimulationConfig, load_config
from avalanche_mc.io.store import ResultStore
from avalanche_mc.scoring.transparency import DEFAULT_READOUT_Z, transparency_from_store
from avalanche_mc.transport.engine import AvalancheEngine, AvalancheOrchestrator, RunSummary


def build_engine(config: SimulationConfig) -> AvalancheEngine:
    """Set up the Garfield++ tracker described by the configuration."""
    from avalanche_mc.transport.garfield import GarfieldAvalancheEngine

    sim = config.simulation
    return GarfieldAvalancheEngine(
        field_map=config.build_field_map(),
        medium=config.build_medium(),
        volume=config.build_volume(),
        max_avalanche_size=sim.max_avalanche_size,
        collision_steps=sim.collision_steps,
        gas_tolerance=config.field.gas_tolerance,
        visualization=config.output.visualization,
        plot_path=config.plot_path,
        verbose=sim.verbose,
    )


def run_simulation(config: SimulationConfig,
                   engine: Optional[AvalancheEngine] = None) -> RunSummary:
    """
    Run the avalanche loop described by `config`.

    The engine is built before the output file is opened, so a setup
    failure leaves no output behind.

    Parameters:
        config: Validated configuration
        engine: Tracker to use (default: Garfield++ from the configuration)

    Returns:
        RunSummary
    """
    sim = config.simulation
    primary = config.primary

    if engine is None:
        engine = build_engine(config)

    orchestrator = AvalancheOrchestrator(
        engine,
        lattice_constant=config.volume.lattice_constant,
        start_height=primary.start_height,
        direction=primary.direction,
        initial_time=primary.initial_time,
        initial_energy=primary.initial_energy,
        readout_z=primary.readout_z,
        seed=sim.seed,
        max_attempts=sim.max_attempts,
    )

    if sim.verbose:
        print(f"\n{'='*70}")
        print(f"Avalanche Simulation")
        print(f"{'='*70}")
        print(f"  Events: {sim.n_events}")
        print(f"  Seed: {sim.seed}")
        print(f"  Max avalanche size: {sim.max_avalanche_size}")
        print(f"  Readout cut: z < {primary.readout_z} cm")
        print(f"  Output: {config.output_path}")
        print(f"{'='*70}\n")

    with ResultStore(config.output_path) as store:
        summary = orchestrator.run(sim.n_events, store, verbose=sim.verbose)

    if sim.verbose:
        print(f"Results written to {config.output_path} ({summary.n_accepted} events)")
        print("Done.")
    return summary


def _cmd_run(args) -> int:
    try:
        config = load_config(args.config)
        if args.events is not None:
            config.simulation.n_events = args.events
        if args.seed is not None:
            config.simulation.seed = args.seed
        if args.output is not None:
            # Relative to the working directory, not the config file
            config.output.path = str(Path(args.output).resolve())
        if args.max_attempts is not None:
            config.simulation.max_attempts = args.max_attempts
        if args.visualize:
            config.output.visualization = True
        if args.quiet:
            config.simulation.verbose = False
        config.validate()
        run_simulation(config)
    except (FileNotFoundError, ValueError, ImportError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def _cmd_summary(args) -> int:
    try:
        result = transparency_from_store(args.path, args.readout_z)
    except (FileNotFoundError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    lower, upper = result['interval']
    print(f"File: {args.path}")
    print(f"  Events: {result['n_events']}")
    print(f"  Mean avalanche size (nele): {result['mean_nele']:.2f}")
    print(f"  Mean endpoints (nelep): {result['mean_nelep']:.2f}")
    print(f"  Passed readout cut (z < {args.readout_z} cm): {result['n_passed']}")
    print(f"Transparency: {result['transparency'] * 100.0:.2f}% "
          f"[{lower * 100.0:.1f}, {upper * 100.0:.1f}]%")
    return 0


def _cmd_plot(args) -> int:
    from avalanche_mc.scoring.plots import plot_endpoint_depths

    try:
        plot_endpoint_depths(args.path, readout_z=args.readout_z, n_bins=args.bins,
                             save_path=args.save, last_only=args.last_only)
    except (FileNotFoundError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='avalanche-mc',
        description='Monte Carlo electron avalanches in a gas detector cell'
    )
    sub = parser.add_subparsers(dest='command', required=True)

    run = sub.add_parser('run', help='Simulate avalanches and write the result file')
    run.add_argument('config', nargs='?', default=None, help='YAML configuration file')
    run.add_argument('-n', '--events', type=int, default=None,
                     help='Number of accepted avalanches')
    run.add_argument('--seed', type=int, default=None, help='Random seed')
    run.add_argument('-o', '--output', default=None, help='Output HDF5 file')
    run.add_argument('--max-attempts', type=int, default=None,
                     help='Abort after this many tracker calls')
    run.add_argument('--visualize', action='store_true',
                     help='Plot drift lines and field contours')
    run.add_argument('-q', '--quiet', action='store_true', help='No progress output')
    run.set_defaults(func=_cmd_run)

    summary = sub.add_parser('summary', help='Transparency of a finished run')
    summary.add_argument('path', help='Result file')
    summary.add_argument('--readout-z', type=float, default=DEFAULT_READOUT_Z,
                         help='Readout plane [cm]')
    summary.set_defaults(func=_cmd_summary)

    plot = sub.add_parser('plot', help='Histogram of electron endpoint depths')
    plot.add_argument('path', help='Result file')
    plot.add_argument('--readout-z', type=float, default=DEFAULT_READOUT_Z,
                      help='Readout plane [cm]')
    plot.add_argument('--bins', type=int, default=100, help='Number of bins')
    plot.add_argument('--last-only', action='store_true',
                      help='Only the last endpoint of each avalanche')
    plot.add_argument('--save', default='endpoint_depths.png', help='Output image')
    plot.set_defaults(func=_cmd_plot)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
