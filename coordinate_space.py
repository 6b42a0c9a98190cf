# coordinate_space.py
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from exceptions import FilenameError
from filename_parser import SEPARATOR, TIMEPOINT_WIDTH, parse_filename

logger = logging.getLogger(__name__)

JOINT_SUFFIX = '_jointTIF.tif'
OUTPUT_EXTENSION = '.tif'


@dataclass(frozen=True)
class Group:
    """One (well, position) unit joined into a single stack."""
    well: str
    read_step: str
    position: Optional[int]
    first_file_name: str
    import_pattern: str

    @property
    def output_name(self) -> str:
        return self.first_file_name + JOINT_SUFFIX


def _prefix(well: str, read_step: str, position: Optional[int]) -> str:
    tokens = [well, read_step]
    if position is not None:
        tokens.append(f"SP{position}")
    return SEPARATOR.join(tokens)


def first_file_name(well: str, read_step: str, position: Optional[int]) -> str:
    """Canonical name of the first plane of a group (Z0, C1, T001)."""
    first_t = f"{1:0{TIMEPOINT_WIDTH}d}"
    return f"{_prefix(well, read_step, position)}_Z0_C1_T{first_t}{OUTPUT_EXTENSION}"


def import_pattern(well: str, read_step: str, position: Optional[int],
                   max_z: int, channel_count: int, max_timepoint: int) -> str:
    """Multi-file pattern with inclusive ``<low-high>`` ranges for Z, C and T."""
    first_t = f"{1:0{TIMEPOINT_WIDTH}d}"
    last_t = f"{max_timepoint:0{TIMEPOINT_WIDTH}d}"
    return (f"{_prefix(well, read_step, position)}"
            f"_Z<0-{max_z}>_C<1-{channel_count}>_T<{first_t}-{last_t}>{OUTPUT_EXTENSION}")


@dataclass(frozen=True)
class CoordinateSpace:
    """Wells and index ranges observed across a normalized file set."""
    wells_in_use: Tuple[str, ...]
    read_steps: Dict[str, str]
    max_position: int = 1
    max_z: int = 0
    max_timepoint: int = 1
    channel_count: int = 1
    max_channel_index: int = 0
    has_positions: bool = False
    skipped: Tuple[str, ...] = field(default_factory=tuple)

    def groups(self) -> List[Group]:
        """Enumerate one group per (well, position), wells in first-seen order."""
        groups = []
        emitted = set()
        for well in self.wells_in_use:
            read_step = self.read_steps[well]
            for position in range(1, self.max_position + 1):
                pos = position if self.has_positions else None
                name = first_file_name(well, read_step, pos)
                if name in emitted:
                    continue
                emitted.add(name)
                groups.append(Group(
                    well=well,
                    read_step=read_step,
                    position=pos,
                    first_file_name=name,
                    import_pattern=import_pattern(well, read_step, pos, self.max_z,
                                                  self.channel_count, self.max_timepoint)
                ))
        return groups


def build_coordinate_space(filenames: Sequence[str], channel_count: int,
                           channels: Sequence[str] = ()) -> CoordinateSpace:
    """Scan normalized filenames once for wells and maximum indices.

    Args:
        filenames: Normalized filenames
        channel_count: Number of channels in the expanded vocabulary
        channels: Expanded vocabulary, used to recognize leftover channel tokens

    Returns:
        CoordinateSpace: The derived coordinate space
    """
    wells = OrderedDict()
    read_steps = {}
    skipped = []
    max_position = 1
    max_z = 0
    max_timepoint = 1
    max_channel_index = 0
    has_positions = False

    for filename in filenames:
        try:
            parsed = parse_filename(filename, channels)
        except FilenameError as e:
            logger.warning("Skipping %s", e)
            skipped.append(filename)
            continue
        if parsed.unrecognized:
            logger.warning("Unrecognized tokens %s in %s", list(parsed.unrecognized), filename)

        wells.setdefault(parsed.well, None)
        read_steps.setdefault(parsed.well, parsed.read_step)
        if parsed.position is not None:
            has_positions = True
            max_position = max(max_position, parsed.position)
        max_z = max(max_z, parsed.z)
        max_timepoint = max(max_timepoint, parsed.t)
        if parsed.channel_index is not None:
            max_channel_index = max(max_channel_index, parsed.channel_index)

    space = CoordinateSpace(
        wells_in_use=tuple(wells),
        read_steps=read_steps,
        max_position=max_position,
        max_z=max_z,
        max_timepoint=max_timepoint,
        channel_count=channel_count,
        max_channel_index=max_channel_index,
        has_positions=has_positions,
        skipped=tuple(skipped)
    )
    logger.info("%d wells, %d positions, %d z-levels, %d timepoints, %d channels",
                len(space.wells_in_use), space.max_position, space.max_z + 1,
                space.max_timepoint, space.channel_count)
    return space
