#!/usr/bin/env python3
import argparse
import logging
import sys
from parameters import JoinParameters, FAILURE_POLICIES
from filename_parser import DEFAULT_CHANNELS
from plate_layout import PLATE_LAYOUTS
from joiner import StackJoiner, JoinSummary

"""
Plate-imager TIFF joining CLI

Usage:
    # Rename, sort by well and join every position into one TCZYX stack:
    python3 joiner_cli.py -i /path/to/plate/export \
                          --channels "Bright Field" DAPI GFP \
                          --plate-size 96

    # Same, deleting RAW_DATA once every group is joined:
    python3 joiner_cli.py -i /path/to/plate/export -c "Colour Bright Field" --erase-raw-data
"""


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Rename plate-imager TIFFs and join them per well position")

    # Required arguments
    parser.add_argument('--input-folder', '-i', required=True,
                       help="Folder containing the exported TIFF files")

    # Acquisition description
    parser.add_argument('--channels', '-c', nargs='+',
                       default=list(DEFAULT_CHANNELS),
                       help="Channels used in the acquisition, in acquisition order "
                            "(default: all known channels; the run stops when the files carry a different count)")

    parser.add_argument('--plate-size', '-p', type=int,
                       choices=sorted(PLATE_LAYOUTS),
                       default=96,
                       help="Number of wells on the plate (default: 96)")

    # Post-processing
    parser.add_argument('--erase-raw-data', '-e',
                       action='store_true',
                       help="Delete RAW_DATA after every group was joined")

    parser.add_argument('--failure-policy',
                       choices=FAILURE_POLICIES,
                       default='continue',
                       help="Continue with the next group or abort when a group fails (default: continue)")

    # Advanced options
    parser.add_argument('--params-json',
                       help="Path to a JSON file containing parameters (overrides other arguments)")

    parser.add_argument('--log-level',
                       default='WARNING',
                       help="Logging level (default: WARNING)")

    return parser.parse_args(argv)


def create_params(args: argparse.Namespace) -> JoinParameters:
    """Create parameters from parsed arguments."""
    if args.params_json:
        return JoinParameters.from_json(args.params_json)

    params_dict = {
        'input_folder': args.input_folder,
        'channels': args.channels,
        'plate_size': args.plate_size,
        'erase_raw_data': args.erase_raw_data,
        'failure_policy': args.failure_policy
    }

    return JoinParameters.from_dict(params_dict)


class StatusDisplay:
    """Two persistent terminal lines: latest status and group progress."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self.status_line = ''
        self.progress_line = ''

    def print_status(self):
        if self.status_line or self.progress_line:
            self.stream.write('\033[2K\033[A\033[2K\r')
        self.stream.write(f"{self.status_line}\n{self.progress_line}\r")
        self.stream.flush()

    def on_status(self, status: str):
        self.status_line = status
        self.print_status()

    def on_progress(self, current: int, total: int):
        percent = 100 * current // total if total else 100
        filled = percent // 5
        self.progress_line = f"Progress: [{'#' * filled}{'.' * (20 - filled)}] {current}/{total} ({percent}%)"
        self.print_status()

    def on_complete(self, summary: JoinSummary):
        self.stream.write("\n" + summary.message() + "\n")
        self.stream.flush()


def main(argv=None):
    """Main CLI entry point."""
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    try:
        params = create_params(args)
        display = StatusDisplay()
        joiner = StackJoiner(
            params=params,
            progress_callback=display.on_progress,
            status_callback=display.on_status,
            complete_callback=display.on_complete
        )

        print("Starting joining process...")
        summary = joiner.run()
        sys.exit(0 if summary.success else 1)

    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
