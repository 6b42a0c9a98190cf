# parameters.py
from dataclasses import dataclass, field
from typing import Dict, Any, List
import json
import os

from filename_parser import DEFAULT_CHANNELS, expand_channels
from plate_layout import PLATE_LAYOUTS

RAW_DATA_FOLDER = 'RAW_DATA'
JOINT_FOLDER = 'Joint_TIFs'
FAILURE_POLICIES = ['continue', 'abort']


@dataclass
class JoinParameters:
    """Parameters for renaming and joining plate-imager TIFF sequences."""
    # Required parameters
    input_folder: str

    # Channels checked by the user, in acquisition order
    channels: List[str] = field(default_factory=lambda: list(DEFAULT_CHANNELS))

    # Plate format (number of wells)
    plate_size: int = 96

    # Delete RAW_DATA once every group has been joined
    erase_raw_data: bool = False

    # What to do when one group cannot be joined
    failure_policy: str = 'continue'

    def __post_init__(self):
        """Validate and process parameters after initialization."""
        # Convert relative path to absolute
        self.input_folder = os.path.abspath(self.input_folder)
        self.plate_size = int(self.plate_size)

    def validate(self) -> None:
        """
        Validate parameters and raise appropriate errors.

        Raises:
            ValueError: If parameters are invalid or incompatible
        """
        if not os.path.isdir(self.input_folder):
            raise ValueError(f"Input folder does not exist: {self.input_folder}")

        if not self.channels:
            raise ValueError("At least one channel must be selected")
        # Raises if a channel name is contained in another one
        expand_channels(self.channels)

        if self.plate_size not in PLATE_LAYOUTS:
            raise ValueError(f"Plate size must be one of {sorted(PLATE_LAYOUTS)}")

        if self.failure_policy not in FAILURE_POLICIES:
            raise ValueError(f"Failure policy must be one of {FAILURE_POLICIES}")

    @property
    def raw_data_folder(self) -> str:
        """Path to folder holding the per-well raw files."""
        return os.path.join(self.input_folder, RAW_DATA_FOLDER)

    @property
    def joint_folder(self) -> str:
        """Path to folder containing joined stacks."""
        return os.path.join(self.input_folder, JOINT_FOLDER)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'JoinParameters':
        """
        Create parameters from a dictionary.

        Args:
            data: Dictionary containing parameter values

        Returns:
            JoinParameters: New instance with values from dictionary
        """
        valid_fields = {k for k in cls.__dataclass_fields__}
        filtered_data = {k: v for k, v in data.items() if k in valid_fields and v is not None}
        return cls(**filtered_data)

    @classmethod
    def from_json(cls, json_path: str) -> 'JoinParameters':
        """Create parameters from a JSON file."""
        with open(json_path) as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to a dictionary."""
        return {k: getattr(self, k) for k in self.__dataclass_fields__}

    def to_json(self, json_path: str) -> None:
        """Save parameters to a JSON file."""
        with open(json_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
