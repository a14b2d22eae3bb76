"""
Transparency vs. gas mixture - Simple Example

Runs the LEM cell for several Ar/CO2 fractions and plots the fraction of
avalanches whose last electron reached the readout side.

Requires Garfield++ and an Elmer field map in examples/config/geometry.
"""

import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path
import sys

from avalanche_mc.config import load_config
from avalanche_mc.cli import run_simulation
from avalanche_mc.scoring.transparency import clopper_pearson_interval


def scan_co2_fraction(config_path: Path, co2_fractions, n_events: int = 200,
                      output_dir: Path = Path('scan')):
    """
    Simulate the cell once per CO2 fraction.

    Parameters:
        config_path: Base YAML configuration
        co2_fractions: CO2 percentages to simulate
        n_events: Accepted avalanches per point
        output_dir: Directory for the per-point result files

    Returns:
        fractions, transparency, lower, upper arrays
    """
    results = []
    for co2 in co2_fractions:
        config = load_config(config_path)
        config.gas.composition = {'ar': 100.0 - co2, 'co2': co2}
        config.simulation.n_events = n_events
        config.output.path = str((output_dir / f'avalanche_co2_{co2:g}.h5').resolve())
        config.validate()

        print(f"\n{'='*70}")
        print(f"Ar/CO2 {100 - co2:g}:{co2:g}")
        print(f"{'='*70}")

        summary = run_simulation(config)
        lower, upper = clopper_pearson_interval(summary.n_passed, summary.n_accepted)
        results.append((co2, summary.transparency, lower, upper))

    return tuple(np.array(col) for col in zip(*results))


def plot_scan(fractions, transparency, lower, upper, save_path=None):
    plt.figure(figsize=(10, 6))
    plt.errorbar(fractions, 100 * transparency,
                 yerr=[100 * (transparency - lower), 100 * (upper - transparency)],
                 fmt='o-', color='b', linewidth=2, capsize=4, label='Monte Carlo')
    plt.xlabel('CO$_2$ fraction [%]', fontsize=14, fontweight='bold')
    plt.ylabel('Transparency [%]', fontsize=14, fontweight='bold')
    plt.title('LEM transparency vs. quencher fraction', fontsize=16, fontweight='bold')
    plt.grid(True, alpha=0.3, linestyle='--')
    plt.ylim(0, 105)
    plt.legend(fontsize=12)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150)
        print(f"\nPlot saved: {save_path}")


if __name__ == "__main__":
    config_path = Path(__file__).parent.parent / 'config' / 'lem_ar_co2.yaml'
    fractions = [5.0, 7.0, 10.0, 20.0, 30.0]
    n_events = int(sys.argv[1]) if len(sys.argv) > 1 else 200

    scan = scan_co2_fraction(config_path, fractions, n_events=n_events)
    plot_scan(*scan, save_path='transparency_scan.png')

    print(f"\n{'='*70}")
    print(f"Summary")
    print(f"{'='*70}")
    for co2, t, lo, hi in zip(*scan):
        print(f"  CO2 {co2:5.1f}%: T = {100 * t:5.1f}% [{100 * lo:.1f}, {100 * hi:.1f}]")
