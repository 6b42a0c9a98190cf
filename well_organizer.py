# well_organizer.py
import os
import shutil
import logging
from typing import Dict, List, Sequence

from exceptions import FileOperationError
from filename_parser import SEPARATOR, is_tiff

logger = logging.getLogger(__name__)


def organize_wells(input_folder: str, raw_data_folder: str, wells: Sequence[str]) -> Dict[str, List[str]]:
    """Move normalized files into one subdirectory per well.

    A file belongs to a well when its name starts with ``<well>_``. Files
    matching no well stay where they are.

    Args:
        input_folder: Folder holding the normalized files
        raw_data_folder: Destination root; ``<raw_data_folder>/<well>`` is created per well
        wells: Well labels in use

    Returns:
        dict: Well label -> names of the files moved into its folder

    Raises:
        FileOperationError: If a directory cannot be created or a move fails
    """
    moved = {well: [] for well in wells}
    filenames = sorted(f for f in os.listdir(input_folder)
                       if is_tiff(f) and os.path.isfile(os.path.join(input_folder, f)))

    for well in wells:
        well_folder = os.path.join(raw_data_folder, well)
        try:
            os.makedirs(well_folder, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"Cannot create {well_folder}: {e}") from e

    for filename in filenames:
        well = next((w for w in wells if filename.startswith(w + SEPARATOR)), None)
        if well is None:
            logger.warning("No well folder for %s; leaving it in place", filename)
            continue
        src = os.path.join(input_folder, filename)
        dst = os.path.join(raw_data_folder, well, filename)
        if os.path.exists(dst):
            raise FileOperationError(f"Cannot move {filename}: {dst} already exists")
        try:
            shutil.move(src, dst)
        except OSError as e:
            raise FileOperationError(f"Failed to move {filename} to {dst}: {e}") from e
        moved[well].append(filename)

    for well, files in moved.items():
        logger.info("Well %s: %d files", well, len(files))
    return moved


def erase_raw_data(raw_data_folder: str) -> None:
    """Delete every well folder under ``raw_data_folder`` and the folder itself.

    Raises:
        FileOperationError: If anything cannot be deleted
    """
    if not os.path.isdir(raw_data_folder):
        return
    try:
        for entry in sorted(os.listdir(raw_data_folder)):
            path = os.path.join(raw_data_folder, entry)
            if os.path.isdir(path):
                shutil.rmtree(path)
            else:
                os.remove(path)
        os.rmdir(raw_data_folder)
    except OSError as e:
        raise FileOperationError(f"Failed to erase {raw_data_folder}: {e}") from e
    logger.info("Erased raw data in %s", raw_data_folder)
