import pytest

from conftest import write_plane
from joiner_cli import create_params, main, parse_args


def test_arguments_map_to_parameters(plate_folder):
    args = parse_args(['-i', str(plate_folder), '-c', 'Bright Field', 'DAPI',
                       '-p', '384', '--erase-raw-data', '--failure-policy', 'abort'])

    params = create_params(args)

    assert params.channels == ['Bright Field', 'DAPI']
    assert params.plate_size == 384
    assert params.erase_raw_data
    assert params.failure_policy == 'abort'


def test_params_json_overrides_flags(plate_folder, tmp_path):
    json_path = tmp_path / 'params.json'
    json_path.write_text('{"input_folder": "%s", "channels": ["GFP"], "plate_size": 24}' % plate_folder)

    params = create_params(parse_args(['-i', 'ignored', '--params-json', str(json_path)]))

    assert params.channels == ['GFP']
    assert params.plate_size == 24


def test_main_exit_codes(plate_folder, capsys):
    write_plane(plate_folder / 'B2_02_SP1_C1_Bright Field_T001.tif')

    with pytest.raises(SystemExit) as excinfo:
        main(['-i', str(plate_folder), '-c', 'Bright Field'])

    assert excinfo.value.code == 0
    assert 'Joined 1 of 1 groups' in capsys.readouterr().out


def test_main_reports_errors(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(['-i', str(tmp_path / 'missing')])

    assert excinfo.value.code == 1
    assert 'Input folder does not exist' in capsys.readouterr().err


def test_main_rejects_channel_selection_that_does_not_match(plate_folder, capsys):
    write_plane(plate_folder / 'B2_02_SP1_C1_Bright Field_T001.tif')

    with pytest.raises(SystemExit) as excinfo:
        main(['-i', str(plate_folder)])

    assert excinfo.value.code == 1
    assert 'were selected' in capsys.readouterr().err
