"""
Endpoint depth plot.

The readout cut is read off the z1 distribution: electrons collected on the
readout side pile up just below the lower electrode.
"""

import matplotlib.pyplot as plt
from pathlib import Path
from typing import Optional

from avalanche_mc.io.store import read_store, flatten_column
from avalanche_mc.scoring.transparency import DEFAULT_READOUT_Z


def plot_endpoint_depths(path, readout_z: float = DEFAULT_READOUT_Z,
                         n_bins: int = 100, save_path: Optional[Path] = None,
                         last_only: bool = False):
    """
    Histogram the terminal z of all electron endpoints in a result file.

    Parameters:
        path: Result file written by ResultStore
        readout_z: Readout plane drawn as a cut line [cm]
        n_bins: Number of histogram bins
        save_path: Save figure here (optional)
        last_only: Only use the last endpoint of each event

    Returns:
        (fig, ax)
    """
    data = read_store(path)
    z1, offsets = flatten_column(data['z1'])
    if last_only and len(offsets) > 1:
        z1 = z1[offsets[1:] - 1]

    fig, ax = plt.subplots(figsize=(10, 6))
    if len(z1) > 0:
        ax.hist(z1 * 1e4, bins=n_bins, histtype='step', color='b', linewidth=1.5,
                label=f'{len(z1):,} endpoints')
    ax.axvline(readout_z * 1e4, color='r', linestyle='--', linewidth=1.5,
               alpha=0.7, label=f'Readout cut: {readout_z * 1e4:.0f} µm')

    ax.set_xlabel('Endpoint z [µm]', fontsize=14)
    ax.set_ylabel('Electrons', fontsize=14)
    ax.set_title(f'Electron endpoints ({len(data["nele"])} avalanches)', fontsize=16)
    ax.grid(True, alpha=0.3, linestyle='--')
    ax.legend(fontsize=12)
    fig.tight_layout()

    if save_path is not None:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=150)
        print(f"Plot saved: {save_path}")

    return fig, ax
