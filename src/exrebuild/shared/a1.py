from __future__ import annotations

import re

MAX_COLUMNS = 16_384
MAX_ROWS = 1_048_576

_A1_PATTERN = re.compile(r"^\$?([A-Za-z]{1,3})\$?([1-9][0-9]*)$")
_COLUMN_LABEL_PATTERN = re.compile(r"^[A-Za-z]{1,3}$")


def split_a1(value: str) -> tuple[str, int]:
    """Split A1 notation into normalized (column_label, row_index).

    Absolute markers (``$A$1``) are accepted and dropped. The column and row
    must both fall inside the worksheet grid (``A1:XFD1048576``).
    """
    match = _A1_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid cell reference: {value}")
    column = match.group(1).upper()
    row = int(match.group(2))
    if column_label_to_index(column) > MAX_COLUMNS or row > MAX_ROWS:
        raise ValueError(f"Cell reference out of range: {value}")
    return column, row


def cell_to_coordinates(value: str) -> tuple[int, int]:
    """Convert an A1 reference into 1-based (column, row) coordinates."""
    column, row = split_a1(value)
    return column_label_to_index(column), row


def is_valid_cell(value: str) -> bool:
    """Return whether ``value`` is an in-grid A1 cell reference."""
    try:
        cell_to_coordinates(value)
    except ValueError:
        return False
    return True


def normalize_cell(value: str) -> str:
    """Return the upper-cased, relative form of an A1 reference."""
    column, row = split_a1(value)
    return f"{column}{row}"


def column_label_to_index(label: str) -> int:
    """Convert Excel-style column label (A/AA) to 1-based index."""
    normalized = label.strip().upper()
    if not _COLUMN_LABEL_PATTERN.match(normalized):
        raise ValueError(f"Invalid column label: {label}")
    index = 0
    for char in normalized:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index


def normalize_column_label(label: str) -> str:
    """Validate a column label against the grid and return it upper-cased."""
    if column_label_to_index(label) > MAX_COLUMNS:
        raise ValueError(f"Column label out of range: {label}")
    return label.strip().upper()


def column_index_to_label(index: int) -> str:
    """Convert 1-based column index to Excel-style column label."""
    if index < 1:
        raise ValueError("Column index must be positive.")
    chunks: list[str] = []
    current = index
    while current > 0:
        current -= 1
        chunks.append(chr(ord("A") + (current % 26)))
        current //= 26
    return "".join(reversed(chunks))


def range_bounds(start: str, end: str) -> tuple[int, int, int, int]:
    """Return (min_col, min_row, max_col, max_row) of the rectangle start:end."""
    start_col, start_row = cell_to_coordinates(start)
    end_col, end_row = cell_to_coordinates(end)
    return (
        min(start_col, end_col),
        min(start_row, end_row),
        max(start_col, end_col),
        max(start_row, end_row),
    )


def normalize_range(start: str, end: str) -> str:
    """Build a normalized ``TL:BR`` range string from two corner cells."""
    min_col, min_row, max_col, max_row = range_bounds(start, end)
    return (
        f"{column_index_to_label(min_col)}{min_row}:"
        f"{column_index_to_label(max_col)}{max_row}"
    )


def ranges_intersect(
    left: tuple[int, int, int, int], right: tuple[int, int, int, int]
) -> bool:
    """Return whether two (min_col, min_row, max_col, max_row) boxes overlap."""
    return not (
        left[2] < right[0]
        or right[2] < left[0]
        or left[3] < right[1]
        or right[3] < left[1]
    )
