"""
Tests for filename parsing and channel vocabulary expansion.
"""

import pytest

from exceptions import FilenameError
from filename_parser import expand_channels, is_tiff, parse_filename

CHANNELS = ['Bright Field', 'DAPI', 'GFP']


def test_parse_fully_delimited_name():
    parsed = parse_filename('B2_02_SP3_Z4_C2_DAPI_T012.tif', CHANNELS)

    assert parsed.well == 'B2'
    assert parsed.read_step == '02'
    assert parsed.position == 3
    assert parsed.z_step == 4
    assert parsed.channel_index == 2
    assert parsed.channel_name == 'DAPI'
    assert parsed.timepoint == 12
    assert parsed.extension == '.tif'
    assert parsed.unrecognized == ()


def test_parse_concatenated_position_and_z():
    parsed = parse_filename('C3_01_SP10Z10_C1_GFP_T001.tif', CHANNELS)

    assert parsed.position == 10
    assert parsed.z_step == 10


def test_channel_name_with_space_is_one_token():
    parsed = parse_filename('B2_02_SP1_C1_Bright Field_T001.tif', CHANNELS)

    assert parsed.channel_name == 'Bright Field'
    assert parsed.z_step is None


def test_missing_z_and_timepoint_use_defaults():
    parsed = parse_filename('B2_02_SP1_C1.tif')

    assert parsed.z == 0
    assert parsed.t == 1


def test_tags_are_found_in_any_order():
    parsed = parse_filename('A1_03_T002_C1_Z5_SP2.tif')

    assert (parsed.position, parsed.z_step, parsed.channel_index, parsed.timepoint) == (2, 5, 1, 2)


def test_single_digit_index_parses():
    assert parse_filename('A1_01_SP7_Z0_C1_T009.tif').position == 7


def test_unknown_tokens_are_reported_not_dropped():
    parsed = parse_filename('B2_02_SP1_C1_Mystery_T001.tif', CHANNELS)

    assert parsed.channel_name is None
    assert parsed.unrecognized == ('Mystery',)


def test_well_row_and_column():
    parsed = parse_filename('AB12_01_SP1_Z0_C1_T001.tif')

    assert parsed.row == 'AB'
    assert parsed.column == 12


@pytest.mark.parametrize('name', ['Thumbs.tif', 'b2_02_SP1.tif', 'B2_x1_SP1.tif', 'B222_01_SP1.tif'])
def test_malformed_names_raise(name):
    with pytest.raises(FilenameError):
        parse_filename(name)


def test_normalized_name_serializes_back_to_itself():
    name = 'B2_02_SP1_Z0_C1_T001.tif'
    assert parse_filename(name).to_name() == name


def test_expand_colour_bright_field():
    assert expand_channels(['Colour Bright Field', 'DAPI']) == ['Red', 'Green', 'Blue', 'DAPI']


def test_expansion_drops_duplicates_and_blank_entries():
    assert expand_channels(['GFP', ' ', 'GFP', 'DAPI']) == ['GFP', 'DAPI']


def test_ambiguous_vocabulary_is_rejected():
    with pytest.raises(ValueError):
        expand_channels(['GFP', 'GFP Long'])


def test_is_tiff():
    assert is_tiff('a.tif')
    assert is_tiff('a.TIFF')
    assert not is_tiff('a.txt')
