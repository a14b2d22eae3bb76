"""
Event data model and simulation volume.
"""

import numpy as np
import pytest

from avalanche_mc.core.endpoint import ENDPOINT_DTYPE, AvalancheEvent, PrimaryElectron
from avalanche_mc.core.geometry import SimulationVolume, lattice_volume

from conftest import make_cascade, make_endpoint

PRIMARY = PrimaryElectron((0.0, 0.0, 0.01), (0.0, 0.0, -1.0))


def test_from_records_preserves_order():
    records = make_cascade([0.01, -0.018, 0.002])
    event = AvalancheEvent.from_records(PRIMARY, 4, records, ion_count=3)

    assert event.endpoints.dtype == ENDPOINT_DTYPE
    assert event.endpoint_count == 3
    assert event.electron_count == 4
    assert event.ion_count == 3
    np.testing.assert_array_equal(event.endpoints['z1'], [0.01, -0.018, 0.002])
    np.testing.assert_array_equal(event.endpoints['x0'], [0.0, 0.001, 0.002])
    assert event.endpoints['status'].dtype == np.int32


def test_endpoint_fields_map_by_name():
    rec = make_endpoint(z1=-0.0175, status=-5, index=2)
    event = AvalancheEvent.from_records(PRIMARY, 2, [rec, rec])
    row = event.endpoints[0]

    assert row['t0'] == pytest.approx(0.2)
    assert row['e0'] == 1.0
    assert row['t1'] == pytest.approx(1.2)
    assert row['e1'] == 0.5
    assert row['status'] == -5


def test_passed_uses_last_endpoint():
    readout_z = -0.017
    passed = AvalancheEvent.from_records(PRIMARY, 2, make_cascade([0.01, -0.0175]))
    # An earlier electron crossed the plane but the last one did not
    not_passed = AvalancheEvent.from_records(PRIMARY, 2, make_cascade([-0.0175, 0.01]))
    on_plane = AvalancheEvent.from_records(PRIMARY, 2, make_cascade([0.01, readout_z]))

    assert passed.passed(readout_z)
    assert not not_passed.passed(readout_z)
    assert not on_plane.passed(readout_z)


def test_wrong_dtype_rejected():
    with pytest.raises(TypeError):
        AvalancheEvent(PRIMARY, 2, np.zeros(2))


def test_primary_defaults():
    assert PRIMARY.time == 0.0
    assert PRIMARY.energy == 1.0


def test_volume_requires_min_below_max():
    with pytest.raises(ValueError, match="along z"):
        SimulationVolume(-1, -1, 1, 1, 1, 1)
    with pytest.raises(ValueError, match="along x"):
        SimulationVolume(2, -1, -1, 1, 1, 1)


def test_volume_is_immutable():
    volume = SimulationVolume(-1, -1, -1, 1, 1, 1)
    with pytest.raises(AttributeError):
        volume.xmin = -2


def test_lattice_volume():
    volume = lattice_volume(0.00625, -0.0178, 0.0328)

    assert volume.bounds == pytest.approx((-0.0125, -0.0125, -0.0178, 0.0125, 0.0125, 0.0328))
    assert volume.aspect_ratio == pytest.approx(0.025 / 0.0506)
    assert volume.contains(0.0, 0.0, 0.01)
    assert not volume.contains(0.0, 0.0, 0.05)
