"""I/O module: HDF5 result store."""

from avalanche_mc.io.store import ResultStore, read_store, flatten_column

__all__ = ["ResultStore", "read_store", "flatten_column"]
