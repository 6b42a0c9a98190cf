# plate_layout.py
import string
from typing import List, Tuple

# plate size -> (rows, columns)
PLATE_LAYOUTS = {
    1: (1, 1),
    2: (1, 2),
    6: (2, 3),
    24: (4, 6),
    96: (8, 12),
    384: (16, 24),
}


def plate_dimensions(plate_size: int) -> Tuple[int, int]:
    if plate_size not in PLATE_LAYOUTS:
        raise ValueError(f"Unsupported plate size {plate_size}; choose from {sorted(PLATE_LAYOUTS)}")
    return PLATE_LAYOUTS[plate_size]


def row_labels(plate_size: int) -> List[str]:
    rows, _ = plate_dimensions(plate_size)
    return list(string.ascii_uppercase[:rows])


def column_labels(plate_size: int) -> List[str]:
    _, columns = plate_dimensions(plate_size)
    return [str(column) for column in range(1, columns + 1)]


def well_labels(plate_size: int) -> List[str]:
    """All well labels of a plate in row-major order (A1, A2, ..., B1, ...)."""
    return [row + column for row in row_labels(plate_size) for column in column_labels(plate_size)]
