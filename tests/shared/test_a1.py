from __future__ import annotations

import pytest

from exrebuild.shared.a1 import (
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


def test_column_roundtrip() -> None:
    assert column_label_to_index("A") == 1
    assert column_label_to_index("AA") == 27
    assert column_label_to_index("XFD") == 16384
    assert column_index_to_label(1) == "A"
    assert column_index_to_label(27) == "AA"
    assert column_index_to_label(16384) == "XFD"


def test_split_a1() -> None:
    assert split_a1("b12") == ("B", 12)
    assert split_a1("$C$3") == ("C", 3)


def test_split_a1_rejects_invalid() -> None:
    with pytest.raises(ValueError, match="Invalid cell reference"):
        split_a1("1A")
    with pytest.raises(ValueError, match="Invalid cell reference"):
        split_a1("A0")


def test_split_a1_rejects_out_of_grid() -> None:
    with pytest.raises(ValueError, match="out of range"):
        split_a1("XFE1")
    with pytest.raises(ValueError, match="out of range"):
        split_a1("A1048577")


def test_is_valid_cell() -> None:
    assert is_valid_cell("A1")
    assert is_valid_cell("XFD1048576")
    assert not is_valid_cell("ZZ9999999")
    assert not is_valid_cell("")
    assert not is_valid_cell("A1:B2")


def test_cell_to_coordinates_and_normalize() -> None:
    assert cell_to_coordinates("c5") == (3, 5)
    assert normalize_cell("$aa$10") == "AA10"


def test_normalize_column_label() -> None:
    assert normalize_column_label("xfd") == "XFD"
    with pytest.raises(ValueError, match="out of range"):
        normalize_column_label("XFE")


def test_range_bounds_orders_corners() -> None:
    assert range_bounds("C3", "A1") == (1, 1, 3, 3)
    assert normalize_range("D6", "B4") == "B4:D6"


def test_ranges_intersect() -> None:
    assert ranges_intersect((1, 1, 2, 2), (2, 2, 3, 3))
    assert not ranges_intersect((1, 1, 2, 2), (3, 1, 4, 2))
    assert not ranges_intersect((1, 1, 2, 2), (1, 3, 2, 4))
