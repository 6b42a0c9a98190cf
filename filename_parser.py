# filename_parser.py
import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from exceptions import FilenameError


SEPARATOR = '_'
TIFF_EXTENSIONS = ('.tif', '.tiff')

COLOUR_BRIGHT_FIELD = 'Colour Bright Field'
COLOUR_BRIGHT_FIELD_CHANNELS = ('Red', 'Green', 'Blue')

DEFAULT_CHANNELS = [
    'Bright Field',
    'Colour Bright Field',
    'DAPI',
    'GFP',
    'RFP',
    'CY5',
    'Phase Contrast',
]

WELL_PATTERN = re.compile(r'^(?P<row>[A-Z]{1,2})(?P<column>\d{1,2})$')
READ_STEP_PATTERN = re.compile(r'^\d+$')

# A position token may still carry its Z tag before normalization (SP10Z3)
POSITION_PATTERN = re.compile(r'^SP(?P<position>\d+)(?:Z(?P<z_step>\d+))?$')
Z_PATTERN = re.compile(r'^Z(?P<z_step>\d+)$')
CHANNEL_INDEX_PATTERN = re.compile(r'^C(?P<channel_index>\d+)$')
TIMEPOINT_PATTERN = re.compile(r'^T(?P<timepoint>\d+)$')

TIMEPOINT_WIDTH = 3


def is_tiff(filename: str) -> bool:
    return filename.lower().endswith(TIFF_EXTENSIONS)


def expand_channels(channels: Iterable[str]) -> List[str]:
    """Expand the composite Colour Bright Field entry into its RGB channels.

    The composite name never shows up in tri-channel filenames, so the
    expansion has to happen before any filename is scanned. Entries keep
    their order and duplicates are dropped.

    Args:
        channels: Selected channel names in acquisition order

    Returns:
        list: Channel names with the composite entry replaced by Red, Green, Blue

    Raises:
        ValueError: If one expanded entry is a substring of another
    """
    expanded = []
    for channel in channels:
        channel = channel.strip()
        if not channel:
            continue
        if channel == COLOUR_BRIGHT_FIELD:
            members = COLOUR_BRIGHT_FIELD_CHANNELS
        else:
            members = (channel,)
        for member in members:
            if member not in expanded:
                expanded.append(member)

    for channel in expanded:
        for other in expanded:
            if channel != other and channel in other:
                raise ValueError(f"Channel '{channel}' is ambiguous: it is part of '{other}'")
    return expanded


@dataclass(frozen=True)
class FileName:
    """Structured fields of one instrument image filename."""
    well: str
    read_step: str
    position: Optional[int] = None
    z_step: Optional[int] = None
    channel_index: Optional[int] = None
    channel_name: Optional[str] = None
    timepoint: Optional[int] = None
    extension: str = '.tif'
    unrecognized: Tuple[str, ...] = ()

    @property
    def z(self) -> int:
        return 0 if self.z_step is None else self.z_step

    @property
    def t(self) -> int:
        return 1 if self.timepoint is None else self.timepoint

    @property
    def row(self) -> str:
        return WELL_PATTERN.match(self.well).group('row')

    @property
    def column(self) -> int:
        return int(WELL_PATTERN.match(self.well).group('column'))

    def to_name(self) -> str:
        """Serialize back to a fully delimited filename."""
        tokens = [self.well, self.read_step]
        if self.position is not None:
            tokens.append(f"SP{self.position}")
        if self.z_step is not None:
            tokens.append(f"Z{self.z_step}")
        if self.channel_index is not None:
            tokens.append(f"C{self.channel_index}")
        if self.channel_name is not None:
            tokens.append(self.channel_name)
        tokens.extend(self.unrecognized)
        if self.timepoint is not None:
            tokens.append(f"T{self.timepoint:0{TIMEPOINT_WIDTH}d}")
        return SEPARATOR.join(tokens) + self.extension


def parse_filename(filename: str, channels: Sequence[str] = ()) -> FileName:
    """Parse an instrument filename into its fields.

    Token 0 is the well and token 1 the read step. The remaining tokens are
    identified by their tag (SP, Z, C, T) or by membership in the channel
    vocabulary, in any order. Tokens that match neither are kept in
    ``unrecognized`` so that callers can report them.

    Args:
        filename: Filename with or without directory and extension
        channels: Expanded channel vocabulary

    Returns:
        FileName: Parsed fields

    Raises:
        FilenameError: If the well or read-step token is missing or malformed
    """
    basename = os.path.basename(filename)
    stem, extension = os.path.splitext(basename)
    tokens = stem.split(SEPARATOR)
    if len(tokens) < 2:
        raise FilenameError(basename, "expected at least a well and a read-step token")

    well, read_step = tokens[0], tokens[1]
    if not WELL_PATTERN.match(well):
        raise FilenameError(basename, f"'{well}' is not a well label")
    if not READ_STEP_PATTERN.match(read_step):
        raise FilenameError(basename, f"'{read_step}' is not a read step")

    fields = {}
    unrecognized = []
    for token in tokens[2:]:
        match = POSITION_PATTERN.match(token)
        if match:
            fields['position'] = int(match.group('position'))
            if match.group('z_step') is not None:
                fields['z_step'] = int(match.group('z_step'))
            continue
        match = Z_PATTERN.match(token)
        if match:
            fields['z_step'] = int(match.group('z_step'))
            continue
        match = CHANNEL_INDEX_PATTERN.match(token)
        if match:
            fields['channel_index'] = int(match.group('channel_index'))
            continue
        match = TIMEPOINT_PATTERN.match(token)
        if match:
            fields['timepoint'] = int(match.group('timepoint'))
            continue
        if token in channels:
            fields['channel_name'] = token
            continue
        unrecognized.append(token)

    return FileName(
        well=well,
        read_step=read_step,
        extension=extension or '.tif',
        unrecognized=tuple(unrecognized),
        **fields
    )
