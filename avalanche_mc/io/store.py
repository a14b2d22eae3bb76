"""
Append-only HDF5 store for accepted avalanche events.

Layout (one row per event, all datasets share the row index):

    nele    int32           avalanche size reported by the tracker
    nelep   int32           number of electron endpoint records
    status  vlen int32      termination code per endpoint
    x0..t0  vlen float64    start state per endpoint
    x1..t1  vlen float64    end state per endpoint

Variable-length columns are co-indexed by endpoint position within the event.
"""

import numpy as np
import h5py
from pathlib import Path
from typing import Dict, Tuple

from avalanche_mc.core.endpoint import AvalancheEvent, FLOAT_COLUMNS

FORMAT_NAME = 'avalanche_mc'
FORMAT_VERSION = 1

SCALAR_COLUMNS = ('nele', 'nelep')
ARRAY_COLUMNS = ('status',) + FLOAT_COLUMNS

_INT_VLEN = h5py.vlen_dtype(np.dtype('int32'))
_FLOAT_VLEN = h5py.vlen_dtype(np.dtype('float64'))


class ResultStore:
    """
    Writable handle on an avalanche output file.

    The file is created (or truncated) on open and closed on exit from the
    context manager, including when the run aborts.

    Example:
        with ResultStore('avalanche.h5') as store:
            store.append(event)
    """

    def __init__(self, path, tree_name: str = 'avalancheTree',
                 title: str = 'Avalanches', flush_every: int = 100):
        """
        Parameters:
            path: Output file path (overwritten if it exists)
            tree_name: Name recorded in the file attributes
            title: Description recorded in the file attributes
            flush_every: Flush to disk after this many appended rows (0 = never)
        """
        self.path = Path(path)
        self.flush_every = flush_every
        self.n_rows = 0

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = h5py.File(self.path, 'w')
        self._file.attrs['format'] = FORMAT_NAME
        self._file.attrs['version'] = FORMAT_VERSION
        self._file.attrs['tree_name'] = tree_name
        self._file.attrs['title'] = title

        self._datasets = {}
        for name in SCALAR_COLUMNS:
            self._datasets[name] = self._create(name, np.int32)
        self._datasets['status'] = self._create('status', _INT_VLEN)
        for name in FLOAT_COLUMNS:
            self._datasets[name] = self._create(name, _FLOAT_VLEN)

    def _create(self, name: str, dtype) -> h5py.Dataset:
        return self._file.create_dataset(
            name, shape=(0,), maxshape=(None,), dtype=dtype,
            chunks=(256,), track_times=False
        )

    @property
    def closed(self) -> bool:
        return self._file is None

    def append(self, event: AvalancheEvent):
        """Write one event as a new row."""
        if self.closed:
            raise ValueError(f"Result store {self.path} is closed")

        row = self.n_rows
        for ds in self._datasets.values():
            ds.resize((row + 1,))

        endpoints = event.endpoints
        self._datasets['nele'][row] = event.electron_count
        self._datasets['nelep'][row] = event.endpoint_count
        self._datasets['status'][row] = np.ascontiguousarray(endpoints['status'], dtype=np.int32)
        for name in FLOAT_COLUMNS:
            self._datasets[name][row] = np.ascontiguousarray(endpoints[name], dtype=np.float64)

        self.n_rows += 1
        if self.flush_every and self.n_rows % self.flush_every == 0:
            self.flush()

    def flush(self):
        if not self.closed:
            self._file.flush()

    def close(self):
        """Flush and close the file. Safe to call more than once."""
        if self.closed:
            return
        self._file.attrs['n_events'] = self.n_rows
        self._file.flush()
        self._file.close()
        self._file = None

    def __enter__(self) -> 'ResultStore':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __len__(self) -> int:
        return self.n_rows

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'open'
        return f"ResultStore('{self.path}', rows={self.n_rows}, {state})"


def read_store(path) -> Dict[str, np.ndarray]:
    """
    Load a result file into memory.

    Returns:
        Dictionary with 'nele' and 'nelep' as int32 arrays of length n_rows,
        and every array column as an object array of per-row ndarrays.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Result file not found: {path}")

    data = {}
    with h5py.File(path, 'r') as f:
        if f.attrs.get('format') != FORMAT_NAME:
            raise ValueError(f"{path} is not an {FORMAT_NAME} result file")
        for name in SCALAR_COLUMNS:
            data[name] = f[name][...]
        for name in ARRAY_COLUMNS:
            column = np.empty(f[name].shape[0], dtype=object)
            for i, row in enumerate(f[name]):
                column[i] = np.asarray(row)
            data[name] = column
    return data


def flatten_column(column: np.ndarray, dtype=np.float64) -> Tuple[np.ndarray, np.ndarray]:
    """
    Concatenate a per-row column into one array plus row offsets.

    Returns:
        (values, offsets): offsets has n_rows + 1 entries; row i spans
        values[offsets[i]:offsets[i+1]]
    """
    lengths = np.array([len(row) for row in column], dtype=np.int64)
    offsets = np.zeros(len(column) + 1, dtype=np.int64)
    np.cumsum(lengths, out=offsets[1:])
    if len(column) == 0:
        return np.zeros(0, dtype=dtype), offsets
    values = np.concatenate([np.asarray(row, dtype=dtype) for row in column])
    return values, offsets
