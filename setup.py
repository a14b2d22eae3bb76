"""
Setup script for avalanche_mc package.

Installation:
    pip install -e .

The Garfield++ tracker is used through PyROOT, which is not on PyPI:
install ROOT and Garfield++ separately and source setupGarfield.sh.
"""

from setuptools import setup, find_packages

setup(
    name="avalanche_mc",
    version="0.1.0",
    description="Electron avalanche Monte Carlo for gas detector cells",
    packages=find_packages(include=["avalanche_mc", "avalanche_mc.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "scipy>=1.10",
        "matplotlib>=3.7",
        "numba>=0.58",
        "h5py>=3.8",
        "pyyaml>=6.0",
        "tqdm>=4.65",
    ],
    extras_require={
        "dev": ["pytest>=7.3", "black>=23.0", "mypy>=1.3", "ipython>=8.12"],
    },
    entry_points={
        "console_scripts": [
            "avalanche-mc=avalanche_mc.cli:main",
        ],
    },
)
