# stack_assembler.py
import os
import re
import time
import logging
import itertools
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import dask.array as da
from dask_image.imread import imread as dask_imread
from tifffile import TiffWriter

from exceptions import StackAssemblyError

logger = logging.getLogger(__name__)

DIMENSION_ORDER = 'TCZYX'

RANGE_PATTERN = re.compile(r'(?P<tag>[TCZ])<(?P<low>\d+)-(?P<high>\d+)>')


def _expand_range(low: str, high: str) -> List[str]:
    width = len(low)
    return [f"{value:0{width}d}" for value in range(int(low), int(high) + 1)]


def expand_import_pattern(pattern: str) -> Dict[Tuple[int, int, int], str]:
    """Expand a ``<low-high>`` import pattern into concrete filenames.

    Args:
        pattern: e.g. ``B2_02_SP1_Z<0-1>_C<1-2>_T<001-003>.tif``

    Returns:
        dict: (t, c, z) stack indices -> filename, T slowest and Z fastest
    """
    ranges = {'T': ['1'], 'C': ['1'], 'Z': ['0']}
    for match in RANGE_PATTERN.finditer(pattern):
        tag = match.group('tag')
        if int(match.group('low')) > int(match.group('high')):
            raise ValueError(f"Empty range for {tag} in pattern {pattern}")
        ranges[tag] = _expand_range(match.group('low'), match.group('high'))

    files = {}
    for t, c, z in itertools.product(range(len(ranges['T'])),
                                     range(len(ranges['C'])),
                                     range(len(ranges['Z']))):
        values = {'T': ranges['T'][t], 'C': ranges['C'][c], 'Z': ranges['Z'][z]}
        files[(t, c, z)] = RANGE_PATTERN.sub(lambda m: m.group('tag') + values[m.group('tag')], pattern)
    return files


def stack_shape(pattern: str) -> Tuple[int, int, int]:
    """Number of (T, C, Z) planes described by a pattern."""
    files = expand_import_pattern(pattern)
    num_t, num_c, num_z = (max(index[axis] for index in files) + 1 for axis in range(3))
    return num_t, num_c, num_z


def assemble_stack(folder: str, pattern: str):
    """Load every file matching ``pattern`` in ``folder`` as one TCZYX stack.

    Planes whose file is missing are filled with zeros of the same shape and
    dtype as the planes that exist.

    Args:
        folder: Directory holding the group's files
        pattern: Import pattern naming the group's files

    Returns:
        dask.array: Lazily loaded stack in TCZYX order

    Raises:
        StackAssemblyError: If no file matches or plane shapes disagree
    """
    files = expand_import_pattern(pattern)
    num_t, num_c, num_z = stack_shape(pattern)

    planes = {}
    for index, filename in files.items():
        filepath = os.path.join(folder, filename)
        if os.path.isfile(filepath):
            try:
                planes[index] = dask_imread(filepath)[0]
            except (OSError, ValueError) as e:
                raise StackAssemblyError(pattern, f"cannot read {filename}: {e}") from e

    if not planes:
        raise StackAssemblyError(pattern, f"no matching files in {folder}")

    reference = next(iter(planes.values()))
    for index, plane in planes.items():
        if plane.shape != reference.shape:
            raise StackAssemblyError(
                pattern, f"plane {files[index]} has shape {plane.shape}, expected {reference.shape}")

    missing = [files[index] for index in files if index not in planes]
    if missing:
        logger.warning("%d of %d planes missing for %s; filling with zeros (first: %s)",
                       len(missing), len(files), pattern, missing[0])

    timepoints = []
    for t in range(num_t):
        channels = []
        for c in range(num_c):
            z_planes = [planes.get((t, c, z), da.zeros(reference.shape, dtype=reference.dtype))
                        for z in range(num_z)]
            channels.append(da.stack(z_planes))
        timepoints.append(da.stack(channels))
    return da.stack(timepoints)


def save_joint_tif(stack, output_path: str, channel_names: Optional[Sequence[str]] = None) -> str:
    """Write a TCZYX stack as a single OME-TIFF.

    Args:
        stack: 5D array in TCZYX order
        output_path: Destination file
        channel_names: Names for the C axis; ignored if the count differs

    Returns:
        str: Path to saved output file
    """
    start_time = time.time()
    os.makedirs(os.path.dirname(output_path), exist_ok=True)

    data = np.asarray(stack.compute() if hasattr(stack, 'compute') else stack)
    if data.ndim != len(DIMENSION_ORDER):
        raise ValueError(f"Expected a {DIMENSION_ORDER} stack, got shape {data.shape}")

    metadata = {'axes': DIMENSION_ORDER}
    if channel_names and len(channel_names) == data.shape[1]:
        metadata['Channel'] = {'Name': list(channel_names)}

    with TiffWriter(output_path, bigtiff=True, ome=True) as tif:
        tif.write(
            data,
            photometric='minisblack',
            metadata=metadata
        )

    logger.info("Saved %s %s in %.1fs", output_path, data.shape, time.time() - start_time)
    return output_path
