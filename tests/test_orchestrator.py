"""
Event loop: rejection sampling, pass test, persistence and determinism.
"""

import numpy as np
import pytest
from scipy import stats

from avalanche_mc.io.store import ResultStore, read_store
from avalanche_mc.transport.engine import (
    AvalancheOrchestrator, RunSummary, sample_start_position
)

from conftest import RandomEngine, ScriptedEngine, make_cascade

L = 0.00625
READOUT_Z = -0.017


def test_singles_are_resampled(single, store_path):
    cascade = (5, make_cascade([0.01, 0.02, -0.005, 0.003, -0.0175]))
    engine = ScriptedEngine([single, single, single, cascade])
    orchestrator = AvalancheOrchestrator(engine, seed=42)

    with ResultStore(store_path) as store:
        summary = orchestrator.run(1, store, verbose=False)

    assert len(engine.calls) == 4
    assert summary.n_attempts == 4
    assert summary.n_accepted == 1
    assert summary.n_rejected == 3

    data = read_store(store_path)
    assert len(data['nele']) == 1
    assert data['nele'][0] == 5
    assert data['nelep'][0] == 5
    np.testing.assert_array_equal(data['z1'][0], [0.01, 0.02, -0.005, 0.003, -0.0175])


def test_empty_cascade_is_rejected(store_path):
    engine = ScriptedEngine([(0, []), (2, make_cascade([0.01, 0.0]))])
    summary = AvalancheOrchestrator(engine).run(1, verbose=False)

    assert summary.n_attempts == 2
    assert summary.n_accepted == 1


def test_pass_uses_last_endpoint():
    engine = ScriptedEngine([
        (3, make_cascade([0.01, 0.02, -0.0175])),    # passes
        (2, make_cascade([-0.0175, 0.01])),          # early crossing only
        (2, make_cascade([0.0, READOUT_Z])),         # on the plane
        (4, make_cascade([0.01, 0.02, 0.0, -0.0178])),
    ])
    summary = AvalancheOrchestrator(engine, readout_z=READOUT_Z).run(4, verbose=False)

    assert summary.n_accepted == 4
    assert summary.n_passed == 2
    assert summary.transparency == pytest.approx(0.5)


def test_exactly_n_rows(store_path):
    engine = RandomEngine(seed=3)
    with ResultStore(store_path) as store:
        summary = AvalancheOrchestrator(engine, seed=11).run(50, store, verbose=False)

    data = read_store(store_path)
    assert len(data['nele']) == 50
    assert summary.n_accepted == 50
    assert summary.n_attempts >= 50
    assert all(n > 1 for n in data['nelep'])
    for i, n in enumerate(data['nelep']):
        assert len(data['x0'][i]) == n
        assert len(data['status'][i]) == n


def test_counts_are_consistent():
    summary = AvalancheOrchestrator(RandomEngine(seed=5), seed=9).run(40, verbose=False)

    assert 0 <= summary.n_passed <= summary.n_accepted
    assert 0.0 <= summary.transparency <= 1.0


def test_same_seed_same_output(tmp_path):
    results = []
    for name in ('a.h5', 'b.h5'):
        path = tmp_path / name
        with ResultStore(path) as store:
            AvalancheOrchestrator(RandomEngine(seed=2), seed=42).run(20, store, verbose=False)
        results.append(read_store(path))

    first, second = results
    np.testing.assert_array_equal(first['nele'], second['nele'])
    np.testing.assert_array_equal(first['nelep'], second['nelep'])
    for name in ('x0', 'y0', 'z1', 'status'):
        for a, b in zip(first[name], second[name]):
            np.testing.assert_array_equal(a, b)


def test_seed_changes_start_positions():
    a = ScriptedEngine([], default=(2, make_cascade([0.0, 0.0])))
    b = ScriptedEngine([], default=(2, make_cascade([0.0, 0.0])))
    AvalancheOrchestrator(a, seed=1).run(5, verbose=False)
    AvalancheOrchestrator(b, seed=2).run(5, verbose=False)

    assert [p.position for p in a.calls] != [p.position for p in b.calls]


def test_primary_state():
    engine = ScriptedEngine([], default=(2, make_cascade([0.0, 0.0])))
    AvalancheOrchestrator(engine, direction=(0.0, 0.0, -2.0),
                          initial_energy=1.0).run(10, verbose=False)

    for primary in engine.calls:
        x, y, z = primary.position
        assert -L <= x <= L
        assert -L <= y <= L
        assert z == 0.01
        assert primary.direction == (0.0, 0.0, -1.0)
        assert primary.time == 0.0
        assert primary.energy == 1.0


def test_start_positions_uniform():
    rng = np.random.default_rng(123)
    samples = np.array([sample_start_position(rng, L, 0.01) for _ in range(10000)])

    for column in (samples[:, 0], samples[:, 1]):
        assert stats.kstest(column, 'uniform', args=(-L, 2 * L)).pvalue > 0.001
    assert np.all(samples[:, 2] == 0.01)


def test_zero_events(store_path):
    engine = ScriptedEngine([])
    with ResultStore(store_path) as store:
        summary = AvalancheOrchestrator(engine).run(0, store, verbose=False)

    assert engine.calls == []
    assert summary.transparency == 0.0
    assert len(read_store(store_path)['nele']) == 0


def test_max_attempts(single):
    engine = ScriptedEngine([], default=single)
    orchestrator = AvalancheOrchestrator(engine, max_attempts=25)

    with pytest.raises(RuntimeError, match="Gave up"):
        orchestrator.run(1, verbose=False)
    assert len(engine.calls) == 25


def test_engine_error_propagates(store_path):
    engine = ScriptedEngine([(2, make_cascade([0.0, -0.018]))])

    with pytest.raises(RuntimeError, match="Script exhausted"):
        with ResultStore(store_path) as store:
            AvalancheOrchestrator(engine).run(3, store, verbose=False)

    assert store.closed
    assert len(read_store(store_path)['nele']) == 1


def test_finalize_called():
    engine = ScriptedEngine([], default=(2, make_cascade([0.0, 0.0])))
    AvalancheOrchestrator(engine).run(2, verbose=False)
    assert engine.finalized


def test_invalid_arguments():
    engine = ScriptedEngine([])
    with pytest.raises(ValueError):
        AvalancheOrchestrator(engine, lattice_constant=0.0)
    with pytest.raises(ValueError):
        AvalancheOrchestrator(engine, direction=(0.0, 0.0, 0.0))
    with pytest.raises(ValueError):
        AvalancheOrchestrator(engine).run(-1, verbose=False)


def test_verbose_report(capsys):
    engine = ScriptedEngine([(2, make_cascade([0.0, -0.018])), (2, make_cascade([0.0, 0.01]))])
    AvalancheOrchestrator(engine).run(2, verbose=True)

    out = capsys.readouterr().out
    assert "Transparency: 50.00%" in out


def test_run_summary():
    summary = RunSummary(n_requested=4, n_accepted=4, n_passed=1, n_attempts=7)
    assert summary.n_rejected == 3
    assert summary.as_dict()['transparency'] == 0.25
    assert RunSummary(0, 0, 0, 0).transparency == 0.0
