"""
Tests for coordinate space discovery and group enumeration.
"""

from coordinate_space import build_coordinate_space, first_file_name, import_pattern


def _names(wells, positions, z_levels=(0,), channels=(1,), timepoints=(1,)):
    return [f"{well}_02_SP{p}_Z{z}_C{c}_T{t:03d}.tif"
            for well in wells for p in positions for z in z_levels
            for c in channels for t in timepoints]


def test_wells_and_maxima():
    names = _names(['B2', 'C3'], [1, 2, 3], z_levels=(0, 1, 2), timepoints=(1, 2))

    space = build_coordinate_space(names, channel_count=1)

    assert space.wells_in_use == ('B2', 'C3')
    assert space.max_position == 3
    assert space.max_z == 2
    assert space.max_timepoint == 2
    assert space.has_positions


def test_group_count_is_wells_times_positions_even_with_gaps():
    names = _names(['B2'], [1, 2, 3]) + _names(['C3'], [1]) + _names(['D4'], [2])

    groups = build_coordinate_space(names, channel_count=1).groups()

    assert len(groups) == 9
    assert [(g.well, g.position) for g in groups[:4]] == [('B2', 1), ('B2', 2), ('B2', 3), ('C3', 1)]
    assert len({g.first_file_name for g in groups}) == 9


def test_non_contiguous_wells_are_counted_once():
    names = _names(['B2'], [1]) + _names(['C3'], [1]) + _names(['B2'], [2])

    space = build_coordinate_space(names, channel_count=1)

    assert space.wells_in_use == ('B2', 'C3')
    assert len(space.groups()) == 4


def test_defaults_without_z_or_timepoints():
    space = build_coordinate_space(['B2_02_SP1_C1.tif', 'B2_02_SP2_C1.tif'], channel_count=2)

    assert space.max_z == 0
    assert space.max_timepoint == 1
    assert space.groups()[0].import_pattern == 'B2_02_SP1_Z<0-0>_C<1-2>_T<001-001>.tif'


def test_no_positions_gives_one_group_per_well():
    names = ['B2_02_Z0_C1_T001.tif', 'C3_02_Z0_C1_T001.tif', 'C3_02_Z0_C1_T002.tif']

    groups = build_coordinate_space(names, channel_count=1).groups()

    assert [g.first_file_name for g in groups] == ['B2_02_Z0_C1_T001.tif', 'C3_02_Z0_C1_T001.tif']
    assert groups[1].import_pattern == 'C3_02_Z<0-0>_C<1-1>_T<001-002>.tif'


def test_malformed_names_are_skipped_and_recorded():
    names = _names(['B2'], [1]) + ['Thumbs.tif', 'plate_overview.tif']

    space = build_coordinate_space(names, channel_count=1)

    assert space.wells_in_use == ('B2',)
    assert space.skipped == ('Thumbs.tif', 'plate_overview.tif')


def test_read_step_comes_from_each_well():
    names = ['B2_02_SP1_Z0_C1_T001.tif', 'C3_05_SP1_Z0_C1_T001.tif']

    groups = build_coordinate_space(names, channel_count=1).groups()

    assert [g.read_step for g in groups] == ['02', '05']


def test_first_file_and_pattern_format():
    assert first_file_name('B2', '02', 4) == 'B2_02_SP4_Z0_C1_T001.tif'
    assert import_pattern('B2', '02', 4, max_z=9, channel_count=4, max_timepoint=120) == \
        'B2_02_SP4_Z<0-9>_C<1-4>_T<001-120>.tif'


def test_output_name_has_joint_suffix():
    group = build_coordinate_space(_names(['B2'], [1]), channel_count=1).groups()[0]

    assert group.output_name == 'B2_02_SP1_Z0_C1_T001.tif_jointTIF.tif'


def test_highest_channel_index_is_recorded():
    space = build_coordinate_space(_names(['B2'], [1], channels=(1, 2, 3)), channel_count=3)

    assert space.max_channel_index == 3
    assert build_coordinate_space(['B2_02_SP1_Z0_T001.tif'], channel_count=1).max_channel_index == 0
