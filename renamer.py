# renamer.py
import os
import logging
from collections import Counter
from typing import Dict, List, Sequence, Tuple

from exceptions import FileOperationError
from filename_parser import (SEPARATOR, CHANNEL_INDEX_PATTERN, POSITION_PATTERN, READ_STEP_PATTERN,
                             TIMEPOINT_PATTERN, TIMEPOINT_WIDTH, WELL_PATTERN, Z_PATTERN, is_tiff)

logger = logging.getLogger(__name__)

DEFAULT_Z_TOKEN = 'Z0'
DEFAULT_TIMEPOINT_TOKEN = f"T{1:0{TIMEPOINT_WIDTH}d}"


def _split(name: str) -> Tuple[List[str], str]:
    stem, extension = os.path.splitext(name)
    return stem.split(SEPARATOR), extension


def _join(tokens: List[str], extension: str) -> str:
    return SEPARATOR.join(tokens) + extension


def is_instrument_name(name: str) -> bool:
    tokens, _ = _split(name)
    return (len(tokens) >= 2 and WELL_PATTERN.match(tokens[0]) is not None
            and READ_STEP_PATTERN.match(tokens[1]) is not None)


def has_z_tag(name: str) -> bool:
    tokens, _ = _split(name)
    for token in tokens[2:]:
        if Z_PATTERN.match(token):
            return True
        match = POSITION_PATTERN.match(token)
        if match and match.group('z_step') is not None:
            return True
    return False


def has_position_tag(name: str) -> bool:
    tokens, _ = _split(name)
    return any(POSITION_PATTERN.match(token) for token in tokens[2:])


def separate_z_tags(names: Sequence[str]) -> Dict[str, str]:
    """Split concatenated position/Z tokens: ``SP10Z3`` becomes ``SP10_Z3``."""
    renamed = {}
    for name in names:
        tokens, extension = _split(name)
        new_tokens = []
        for token in tokens:
            match = POSITION_PATTERN.match(token)
            if match and match.group('z_step') is not None:
                new_tokens.append(f"SP{match.group('position')}")
                new_tokens.append(f"Z{match.group('z_step')}")
            else:
                new_tokens.append(token)
        renamed[name] = _join(new_tokens, extension)
    return renamed


def insert_default_z(names: Sequence[str]) -> Dict[str, str]:
    """Add a ``Z0`` token to every name that has none.

    The token goes right after the position token, or after the read step
    when the name has no position, which puts it in front of the channel
    index marker.
    """
    renamed = {}
    for name in names:
        if has_z_tag(name):
            renamed[name] = name
            continue
        tokens, extension = _split(name)
        insert_at = 2
        for index, token in enumerate(tokens[2:], start=2):
            if POSITION_PATTERN.match(token):
                insert_at = index + 1
                break
        tokens.insert(insert_at, DEFAULT_Z_TOKEN)
        renamed[name] = _join(tokens, extension)
    return renamed


def insert_channel_index(names: Sequence[str], channels: Sequence[str]) -> Dict[str, str]:
    """Add a ``C<n>`` token to every name that has none.

    ``n`` is the 1-based place of the name's channel token in the
    vocabulary. A name without a channel token gets ``C1`` when a single
    channel is selected and is left unchanged otherwise. The token goes
    right after the Z token.

    Args:
        names: Filenames with their Z token in place
        channels: Expanded channel vocabulary

    Returns:
        dict: Current name -> name with a channel index
    """
    channels = list(channels)
    renamed = {}
    for name in names:
        tokens, extension = _split(name)
        if any(CHANNEL_INDEX_PATTERN.match(token) for token in tokens[2:]):
            renamed[name] = name
            continue

        index = next((channels.index(token) + 1 for token in tokens[2:] if token in channels), None)
        if index is None and len(channels) == 1:
            index = 1
        if index is None:
            logger.warning("Cannot tell which channel %s holds; leaving it without a channel index", name)
            renamed[name] = name
            continue

        insert_at = 2
        for position, token in enumerate(tokens[2:], start=2):
            if Z_PATTERN.match(token) or POSITION_PATTERN.match(token):
                insert_at = position + 1
        tokens.insert(insert_at, f"C{index}")
        renamed[name] = _join(tokens, extension)
    return renamed


def insert_default_timepoint(names: Sequence[str]) -> Dict[str, str]:
    """Append ``T001`` to every name without a timepoint token."""
    renamed = {}
    for name in names:
        tokens, extension = _split(name)
        if not any(TIMEPOINT_PATTERN.match(token) for token in tokens[2:]):
            tokens.append(DEFAULT_TIMEPOINT_TOKEN)
        renamed[name] = _join(tokens, extension)
    return renamed


def strip_channel_names(names: Sequence[str], channels: Sequence[str]) -> Dict[str, str]:
    """Drop every channel-name token found in the vocabulary.

    When no name carries the first vocabulary entry, channel names are taken
    to be absent from the whole set and the names pass through unchanged.
    """
    if not channels:
        return {name: name for name in names}
    first_channel = channels[0]
    if not any(first_channel in _split(name)[0] for name in names):
        logger.info("No filename contains '%s'; leaving channel names untouched", first_channel)
        return {name: name for name in names}

    vocabulary = set(channels)
    renamed = {}
    for name in names:
        tokens, extension = _split(name)
        renamed[name] = _join([token for token in tokens if token not in vocabulary], extension)
    return renamed


def plan_renames(names: Sequence[str], channels: Sequence[str]) -> Dict[str, str]:
    """Compute the normalized name of every file.

    Z/position separation runs first, then missing channel indices are
    filled in while the channel names are still present, then channel
    names are stripped and missing timepoints default to T001. The plan is a
    mapping from each current name to its normalized name and is the
    identity for names that are already normalized. Names without a well
    and read-step prefix are left alone.

    Args:
        names: Current filenames (no directories)
        channels: Expanded channel vocabulary

    Returns:
        dict: Current name -> normalized name
    """
    foreign = [name for name in names if not is_instrument_name(name)]
    for name in foreign:
        logger.warning("%s does not follow the instrument naming scheme; not renaming it", name)
    names = [name for name in names if is_instrument_name(name)]
    plan = {name: name for name in names}

    any_z = any(has_z_tag(name) for name in names)
    any_position = any(has_position_tag(name) for name in names)

    if any_z and any_position:
        step = separate_z_tags(list(plan.values()))
        plan = {name: step[current] for name, current in plan.items()}
    elif not any_z:
        step = insert_default_z(list(plan.values()))
        plan = {name: step[current] for name, current in plan.items()}

    step = insert_channel_index(list(plan.values()), channels)
    plan = {name: step[current] for name, current in plan.items()}

    step = strip_channel_names(list(plan.values()), channels)
    plan = {name: step[current] for name, current in plan.items()}

    step = insert_default_timepoint(list(plan.values()))
    plan = {name: step[current] for name, current in plan.items()}

    duplicates = [target for target, count in Counter(plan.values()).items() if count > 1]
    if duplicates:
        raise FileOperationError(f"Normalization maps several files onto {duplicates[0]}")
    plan.update((name, name) for name in foreign)
    return plan


def apply_renames(folder: str, plan: Dict[str, str]) -> List[str]:
    """Rename files in ``folder`` following ``plan``.

    Returns:
        list: Sorted normalized names

    Raises:
        FileOperationError: If a target already exists or a rename fails
    """
    pending = {old: new for old, new in plan.items() if old != new}
    for old, new in pending.items():
        target = os.path.join(folder, new)
        if os.path.exists(target):
            raise FileOperationError(f"Cannot rename {old}: {new} already exists")

    for old, new in pending.items():
        try:
            os.rename(os.path.join(folder, old), os.path.join(folder, new))
        except OSError as e:
            raise FileOperationError(f"Failed to rename {old} to {new}: {e}") from e
        logger.debug("Renamed %s -> %s", old, new)

    logger.info("Renamed %d of %d files", len(pending), len(plan))
    return sorted(plan.values())


def list_tiff_files(folder: str) -> List[str]:
    return sorted(f for f in os.listdir(folder)
                  if is_tiff(f) and os.path.isfile(os.path.join(folder, f)))


def normalize_folder(folder: str, channels: Sequence[str]) -> List[str]:
    """Rename every TIFF in ``folder`` to its normalized form."""
    names = list_tiff_files(folder)
    plan = plan_renames(names, channels)
    return apply_renames(folder, plan)
