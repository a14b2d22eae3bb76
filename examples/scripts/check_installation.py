#!/usr/bin/env python3
"""
Quick check of the installation.

Run this after setting up the environment to check everything works.
"""

import sys
import tempfile
from pathlib import Path

print("="*70)
print("AVALANCHE_MC Installation Check")
print("="*70)

# Check 1: Third-party packages
print("\n1. Checking imports...")
try:
    import numpy as np
    print("   ✓ NumPy:", np.__version__)
    import numba
    print("   ✓ Numba:", numba.__version__)
    import h5py
    print("   ✓ h5py:", h5py.__version__)
    import matplotlib
    print("   ✓ Matplotlib:", matplotlib.__version__)
except ImportError as e:
    print(f"   ✗ Import failed: {e}")
    sys.exit(1)

# Check 2: avalanche_mc
print("\n2. Checking avalanche_mc imports...")
try:
    from avalanche_mc.core.endpoint import AvalancheEvent, ElectronEndpoint, PrimaryElectron
    from avalanche_mc.io.store import ResultStore
    from avalanche_mc.scoring.transparency import transparency_from_store
    print("   ✓ avalanche_mc imported")
except ImportError as e:
    print(f"   ✗ Failed: {e}")
    sys.exit(1)

# Check 3: HDF5 round trip + numba kernel
print("\n3. Writing a one-event result file...")
with tempfile.TemporaryDirectory() as tmp:
    path = Path(tmp) / 'check.h5'
    primary = PrimaryElectron((0.0, 0.0, 0.01), (0.0, 0.0, -1.0))
    records = [
        ElectronEndpoint(0.0, 0.0, 0.01, 0.0, 1.0, 0.0, 0.0, -0.0175, 2.1, 0.4, -7),
        ElectronEndpoint(0.0, 0.0, 0.002, 0.8, 3.0, 0.0, 0.0, -0.0176, 2.3, 0.5, -7),
    ]
    with ResultStore(path) as store:
        store.append(AvalancheEvent.from_records(primary, 2, records))
    result = transparency_from_store(path)
    print(f"   ✓ Events: {result['n_events']}, transparency: {result['transparency']:.2f}")

# Check 4: Garfield++
print("\n4. Checking Garfield++ (PyROOT)...")
try:
    from avalanche_mc.transport.garfield import load_garfield
    ROOT = load_garfield()
    print(f"   ✓ ROOT {ROOT.gROOT.GetVersion()} with Garfield++")
    garfield_ok = True
except ImportError as e:
    print(f"   ⚠ {e}")
    garfield_ok = False

print("\n" + "="*70)
print("Installation check complete!")
print("="*70)

if garfield_ok:
    print("\n✓ All systems operational. Ready to run simulations!")
    print("\nNext steps:")
    print("  avalanche-mc run examples/config/lem_ar_co2.yaml")
else:
    print("\n⚠ Result files can be analysed, but simulations need Garfield++")
