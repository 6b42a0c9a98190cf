import numpy as np
import pytest
import tifffile


def write_plane(path, value=0, shape=(8, 8), dtype=np.uint16):
    """Write a constant single-plane TIFF."""
    tifffile.imwrite(str(path), np.full(shape, value, dtype=dtype))
    return path


@pytest.fixture
def plate_folder(tmp_path):
    """Empty export folder for a plate run."""
    folder = tmp_path / "plate_export"
    folder.mkdir()
    return folder
