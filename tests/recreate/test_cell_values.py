from __future__ import annotations

from datetime import datetime

import pytest

from exrebuild.engine import OpenpyxlWorkbook
from exrebuild.models import CellMetadata
from exrebuild.recreate.cell_values import (
    NO_WRITE,
    CellWrite,
    apply_cell_write,
    coerce_text,
    dispatch_cell,
)


def test_formula_wins_over_value() -> None:
    cell = CellMetadata(address="B4", value=3, formula="SUM(B2:B3)")
    assert dispatch_cell(cell) == CellWrite(action="formula", value="SUM(B2:B3)")


def test_value_written_when_formulas_disabled() -> None:
    cell = CellMetadata(address="B4", value=3, formula="SUM(B2:B3)")
    assert dispatch_cell(cell, preserve_formulas=False) == CellWrite(
        action="number", value=3
    )


def test_blank_formula_falls_back_to_value() -> None:
    cell = CellMetadata(address="A1", value=1, formula=" ")
    assert dispatch_cell(cell) == CellWrite(action="number", value=1)
    assert dispatch_cell(CellMetadata(address="A2", formula="\t")) == NO_WRITE


def test_typed_values() -> None:
    assert dispatch_cell(CellMetadata(address="A1", value=True)).action == "bool"
    assert dispatch_cell(CellMetadata(address="A1", value=1.5)).action == "number"
    stamp = datetime(2024, 5, 6, 7, 8)
    assert dispatch_cell(CellMetadata(address="A1", value=stamp)) == CellWrite(
        action="datetime", value=stamp
    )
    assert dispatch_cell(CellMetadata(address="A1")) is NO_WRITE


def test_unknown_kind_numeric_text_becomes_number() -> None:
    cell = CellMetadata.model_validate(
        {"address": "A1", "value": {"kind": "decimal", "value": "42.5"}}
    )
    assert dispatch_cell(cell) == CellWrite(action="number", value=42.5)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1000.5", CellWrite(action="number", value=1000.5)),
        ("-3", CellWrite(action="number", value=-3.0)),
        ("1e3", CellWrite(action="number", value=1000.0)),
        (".5", CellWrite(action="number", value=0.5)),
        ("abc", CellWrite(action="string", value="abc")),
        ("1,000", CellWrite(action="string", value="1,000")),
        ("nan", CellWrite(action="string", value="nan")),
        ("1e999", CellWrite(action="string", value="1e999")),
        ("", CellWrite(action="string", value="")),
    ],
)
def test_coerce_text(text: str, expected: CellWrite) -> None:
    assert coerce_text(text) == expected


def test_apply_cell_write() -> None:
    workbook = OpenpyxlWorkbook()
    apply_cell_write(workbook, "Sheet", "A1", CellWrite(action="number", value=2))
    apply_cell_write(workbook, "Sheet", "A2", CellWrite(action="string", value="x"))
    apply_cell_write(workbook, "Sheet", "A3", NO_WRITE)
    sheet = workbook.workbook["Sheet"]
    assert sheet["A1"].value == 2
    assert sheet["A2"].value == "x"
    assert sheet["A3"].value is None


def test_apply_cell_write_rejects_inconsistent_write() -> None:
    workbook = OpenpyxlWorkbook()
    with pytest.raises(ValueError, match="Inconsistent cell write"):
        apply_cell_write(workbook, "Sheet", "A1", CellWrite(action="bool", value="x"))
