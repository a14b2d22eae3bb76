"""
YAML configuration loading and validation.
"""

from pathlib import Path

import pytest
import yaml

from avalanche_mc.config import config_from_dict, load_config, save_config


def _write(path, data):
    with open(path, 'w') as f:
        yaml.safe_dump(data, f)
    return path


def test_defaults():
    config = load_config()

    assert config.simulation.n_events == 100
    assert config.simulation.max_avalanche_size == 10
    assert config.simulation.seed == 42
    assert config.simulation.max_attempts is None
    assert config.primary.readout_z == -0.017
    assert config.primary.direction == (0.0, 0.0, -1.0)
    assert config.gas.composition == {'ar': 93.0, 'co2': 7.0}

    volume = config.build_volume()
    assert volume.bounds == pytest.approx((-0.0125, -0.0125, -0.0178, 0.0125, 0.0125, 0.0328))

    medium = config.build_medium()
    assert medium.composition_args() == ('ar', 93.0, 'co2', 7.0)
    assert medium.pressure_Torr == 750.0


def test_yaml_overrides(tmp_path):
    path = _write(tmp_path / 'run.yaml', {
        'simulation': {'n_events': 7, 'seed': 3},
        'gas': {'composition': {'ar': 90, 'co2': 10}},
        'primary': {'direction': [0, 0, -1]},
    })
    config = load_config(path)

    assert config.simulation.n_events == 7
    assert config.simulation.seed == 3
    assert config.simulation.max_avalanche_size == 10
    assert config.primary.direction == (0.0, 0.0, -1.0)
    assert config.build_medium().label() == 'ar/co2 90:10'


def test_paths_resolve_against_config_dir(tmp_path):
    path = _write(tmp_path / 'run.yaml', {
        'output': {'path': 'out/avalanche.h5'},
        'field': {'directory': 'lem'},
    })
    config = load_config(path)

    assert config.output_path == tmp_path.resolve() / 'out' / 'avalanche.h5'
    field_map = config.build_field_map()
    assert field_map.dielectrics == tmp_path.resolve() / 'lem' / 'dielectrics.dat'
    assert field_map.weighting_field == tmp_path.resolve() / 'lem' / 'geometry' / 'field_weight.result'


def test_absolute_output_path(tmp_path):
    target = tmp_path / 'abs.h5'
    config = config_from_dict({'output': {'path': str(target)}}, base_dir='/somewhere/else')
    assert config.output_path == target


def test_no_weighting_field():
    config = config_from_dict({'field': {'weighting_electrode': None}})
    assert config.build_field_map().weighting_field is None


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / 'empty.yaml'
    path.write_text('')
    assert load_config(path).simulation.n_events == 100


def test_unknown_keys_rejected():
    with pytest.raises(ValueError, match="n_event"):
        config_from_dict({'simulation': {'n_event': 5}})
    with pytest.raises(ValueError, match="detector"):
        config_from_dict({'detector': {}})


@pytest.mark.parametrize('data', [
    {'simulation': {'n_events': -1}},
    {'simulation': {'max_avalanche_size': 0}},
    {'simulation': {'max_attempts': -5}},
    {'volume': {'lattice_constant': 0.0}},
    {'primary': {'start_height': 0.5}},
    {'primary': {'direction': [0, -1]}},
    {'gas': {'composition': {'unobtainium': 100}}},
    {'gas': {'pressure': 0}},
])
def test_invalid_values(data):
    with pytest.raises(ValueError):
        config_from_dict(data)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / 'nope.yaml')


def test_save_and_reload(tmp_path):
    config = config_from_dict({'simulation': {'n_events': 12}})
    path = tmp_path / 'saved.yaml'
    save_config(config, path)

    reloaded = load_config(path)
    assert reloaded.simulation.n_events == 12
    assert reloaded.to_dict() == config.to_dict()


def test_example_config_loads():
    path = Path(__file__).parent.parent / 'examples' / 'config' / 'lem_ar_co2.yaml'
    config = load_config(path)
    assert config.to_dict() == load_config().to_dict()
