import os

import pytest

from filename_parser import DEFAULT_CHANNELS
from parameters import JoinParameters


def test_defaults_and_folders(plate_folder):
    params = JoinParameters(input_folder=str(plate_folder))

    assert params.channels == DEFAULT_CHANNELS
    assert params.plate_size == 96
    assert params.raw_data_folder == os.path.join(str(plate_folder), 'RAW_DATA')
    assert params.joint_folder == os.path.join(str(plate_folder), 'Joint_TIFs')
    params.validate()


def test_json_round_trip(plate_folder, tmp_path):
    params = JoinParameters(input_folder=str(plate_folder), channels=['DAPI', 'GFP'],
                            plate_size=384, erase_raw_data=True, failure_policy='abort')
    json_path = tmp_path / 'params.json'

    params.to_json(str(json_path))

    assert JoinParameters.from_json(str(json_path)) == params


def test_from_dict_ignores_unknown_keys(plate_folder):
    params = JoinParameters.from_dict({'input_folder': str(plate_folder), 'scan_pattern': 'S-Pattern'})

    assert params.input_folder == str(plate_folder)


@pytest.mark.parametrize('overrides', [
    {'channels': []},
    {'channels': ['GFP', 'GFP Long']},
    {'plate_size': 48},
    {'failure_policy': 'retry'},
])
def test_invalid_parameters(plate_folder, overrides):
    params = JoinParameters(input_folder=str(plate_folder), **overrides)

    with pytest.raises(ValueError):
        params.validate()


def test_missing_input_folder(tmp_path):
    with pytest.raises(ValueError):
        JoinParameters(input_folder=str(tmp_path / 'missing')).validate()
