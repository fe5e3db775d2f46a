from __future__ import annotations

from .a1 import (
    MAX_COLUMNS,
    MAX_ROWS,
    cell_to_coordinates,
    column_index_to_label,
    column_label_to_index,
    is_valid_cell,
    normalize_cell,
    normalize_column_label,
    normalize_range,
    range_bounds,
    ranges_intersect,
    split_a1,
)
from .output_path import apply_conflict_policy, next_available_path, resolve_output_path

__all__ = [
    "MAX_COLUMNS",
    "MAX_ROWS",
    "apply_conflict_policy",
    "cell_to_coordinates",
    "column_index_to_label",
    "column_label_to_index",
    "is_valid_cell",
    "next_available_path",
    "normalize_cell",
    "normalize_column_label",
    "normalize_range",
    "range_bounds",
    "ranges_intersect",
    "resolve_output_path",
    "split_a1",
]
