# joiner.py
import os
import time
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import pandas as pd

from coordinate_space import CoordinateSpace, Group, build_coordinate_space
from exceptions import FileOperationError, StackAssemblyError
from filename_parser import expand_channels
from parameters import JoinParameters
from plate_layout import well_labels
from renamer import list_tiff_files, normalize_folder
from stack_assembler import assemble_stack, save_joint_tif
from well_organizer import erase_raw_data, organize_wells

logger = logging.getLogger(__name__)

SUMMARY_FILENAME = 'joint_summary.csv'


@dataclass
class JoinSummary:
    """Outcome of one run."""
    output_folder: str
    processed: List[Group] = field(default_factory=list)
    failed: List[Tuple[Group, str]] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)
    raw_data_erased: bool = False

    @property
    def total(self) -> int:
        return len(self.processed) + len(self.failed)

    @property
    def success(self) -> bool:
        return not self.failed

    def message(self) -> str:
        """Human-readable completion message."""
        lines = [f"Joined {len(self.processed)} of {self.total} groups into {self.output_folder}"]
        if self.failed:
            lines.append(f"{len(self.failed)} groups failed:")
            lines.extend(f"  {group.first_file_name}: {reason}" for group, reason in self.failed)
        if self.skipped_files:
            lines.append(f"{len(self.skipped_files)} files did not match the naming scheme and were skipped")
        if self.raw_data_erased:
            lines.append("Raw data was erased; only the joined TIFFs remain.")
        else:
            lines.append("Raw data was kept in RAW_DATA, sorted by well.")
        return "\n".join(lines)

    def to_dataframe(self) -> pd.DataFrame:
        rows = [{'well': group.well, 'position': group.position, 'first_file': group.first_file_name,
                 'output': group.output_name, 'status': 'joined', 'error': ''}
                for group in self.processed]
        rows += [{'well': group.well, 'position': group.position, 'first_file': group.first_file_name,
                  'output': '', 'status': 'failed', 'error': reason}
                 for group, reason in self.failed]
        return pd.DataFrame(rows, columns=['well', 'position', 'first_file', 'output', 'status', 'error'])


class StackJoiner:
    def __init__(self, params: JoinParameters,
                 progress_callback: Optional[Callable[[int, int], None]] = None,
                 status_callback: Optional[Callable[[str], None]] = None,
                 complete_callback: Optional[Callable[[JoinSummary], None]] = None):
        """Initialize the StackJoiner.

        Args:
            params (JoinParameters): Configuration parameters for the run
            progress_callback: Called with (groups done, total groups)
            status_callback: Called with status messages
            complete_callback: Called with the JoinSummary at the end of the run
        """
        # Validate and store parameters
        self.params = params
        params.validate()

        self.progress_callback = progress_callback
        self.status_callback = status_callback
        self.complete_callback = complete_callback

        # Core attributes from parameters
        self.input_folder = params.input_folder
        self.raw_data_folder = params.raw_data_folder
        self.output_folder = params.joint_folder
        self.channel_names = expand_channels(params.channels)

        self.coordinate_space = None
        self.groups = []

    def emit_progress(self, current: int, total: int):
        """Send progress update.

        Args:
            current (int): Groups processed so far
            total (int): Total number of groups
        """
        if self.progress_callback:
            self.progress_callback(current, total)

    def emit_status(self, status: str):
        logger.info("%s", status)
        if self.status_callback:
            self.status_callback(status)

    def emit_complete(self, summary: JoinSummary):
        if self.complete_callback:
            self.complete_callback(summary)

    def normalize(self) -> List[str]:
        """Rename the raw files in place and return the normalized names."""
        names = list_tiff_files(self.input_folder)
        if not names:
            raise FileNotFoundError(f"No TIFF files found in {self.input_folder}")
        self.emit_status(f"Renaming {len(names)} files...")
        return normalize_folder(self.input_folder, self.channel_names)

    def scan_coordinate_space(self, filenames: List[str]) -> CoordinateSpace:
        space = build_coordinate_space(filenames, len(self.channel_names), self.channel_names)
        if not space.wells_in_use:
            raise FileNotFoundError(f"No file in {self.input_folder} follows the well naming scheme")

        plate_wells = set(well_labels(self.params.plate_size))
        outside = [well for well in space.wells_in_use if well not in plate_wells]
        if outside:
            logger.warning("Wells %s are outside a %d-well plate", outside, self.params.plate_size)

        # Files without any C index leave nothing to compare against
        if space.max_channel_index and space.max_channel_index != space.channel_count:
            raise ValueError(
                f"Files carry {space.max_channel_index} channels but {space.channel_count} were selected "
                f"({self.channel_names}); select the acquisition's channels with --channels")

        self.emit_status(f"{len(space.wells_in_use)} wells: {list(space.wells_in_use)}")
        self.emit_status(f"{space.max_position} positions")
        self.emit_status(f"{space.max_z + 1} z-levels")
        self.emit_status(f"{space.max_timepoint} timepoints")
        self.emit_status(f"{space.channel_count} channels: {self.channel_names}")
        self.coordinate_space = space
        return space

    def join_group(self, group: Group) -> str:
        """Assemble one group from its well folder and save the joint TIFF.

        Args:
            group (Group): The group to join

        Returns:
            str: Path to the saved stack
        """
        well_folder = os.path.join(self.raw_data_folder, group.well)
        output_path = os.path.join(self.output_folder, group.well, group.output_name)
        stack = assemble_stack(well_folder, group.import_pattern)
        try:
            return save_joint_tif(stack, output_path, self.channel_names)
        except (OSError, ValueError) as e:
            raise StackAssemblyError(group.first_file_name, str(e)) from e

    def write_summary(self, summary: JoinSummary) -> str:
        os.makedirs(self.output_folder, exist_ok=True)
        summary_path = os.path.join(self.output_folder, SUMMARY_FILENAME)
        summary.to_dataframe().to_csv(summary_path, index=False)
        return summary_path

    def run(self) -> JoinSummary:
        """Main execution method: rename, organize, join, and clean up."""
        stime = time.time()
        summary = JoinSummary(output_folder=self.output_folder)

        self.emit_status("Normalizing filenames...")
        filenames = self.normalize()
        space = self.scan_coordinate_space(filenames)
        summary.skipped_files = list(space.skipped)

        self.emit_status("Sorting files into well folders...")
        try:
            organize_wells(self.input_folder, self.raw_data_folder, space.wells_in_use)
        except FileOperationError:
            logger.exception("Aborting: could not sort files into well folders")
            raise

        self.groups = space.groups()
        total = len(self.groups)
        self.emit_progress(0, total)
        for i, group in enumerate(self.groups, start=1):
            gtime = time.time()
            self.emit_status(f"Joining {group.first_file_name}")
            try:
                self.join_group(group)
            except StackAssemblyError as e:
                logger.error("Group %s failed: %s", group.first_file_name, e)
                summary.failed.append((group, str(e)))
                if self.params.failure_policy == 'abort':
                    self.write_summary(summary)
                    raise
            else:
                summary.processed.append(group)
                logger.debug("Completed %s in %.1fs", group.first_file_name, time.time() - gtime)
            self.emit_progress(i, total)

        try:
            if self.params.erase_raw_data:
                if summary.success:
                    self.emit_status("Erasing raw data...")
                    erase_raw_data(self.raw_data_folder)
                    summary.raw_data_erased = True
                else:
                    logger.warning("Keeping raw data because %d groups failed", len(summary.failed))
        finally:
            self.write_summary(summary)

        logger.info("Processing complete. Total time: %.1fs", time.time() - stime)
        self.emit_complete(summary)
        return summary
