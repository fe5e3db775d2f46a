from __future__ import annotations

from collections.abc import Callable

import pytest

from exrebuild.config import RecreateOptions
from exrebuild.engine import OpenpyxlWorkbook
from exrebuild.errors import RecreateError
from exrebuild.models import CellMetadata, Hyperlink, SheetMetadata
from exrebuild.recreate.context import RecreateContext
from exrebuild.recreate.sheet import (
    SheetReconstructor,
    resolve_link_type,
    resolve_sheet_name,
)


def test_resolve_sheet_name() -> None:
    assert resolve_sheet_name(SheetMetadata(name="Data"), 0, "Sheet") == "Data"
    assert resolve_sheet_name(SheetMetadata(), 1, "Sheet") == "Sheet2"
    assert resolve_sheet_name(SheetMetadata(), 0, "Tab") == "Tab1"


@pytest.mark.parametrize(
    ("link", "expected"),
    [
        ("https://example.com", "External"),
        ("mailto:ops@example.com", "External"),
        ("Other!A1", "Location"),
        ("#Other!A1:B2", "Location"),
    ],
)
def test_resolve_link_type_infers_from_link(link: str, expected: str) -> None:
    assert resolve_link_type(Hyperlink(link=link)) == expected


def test_resolve_link_type_prefers_declared_type() -> None:
    assert (
        resolve_link_type(Hyperlink(link="https://x.test", link_type="Location"))
        == "Location"
    )


def test_reconstruct_populates_sheet() -> None:
    workbook = OpenpyxlWorkbook()
    context = RecreateContext(workbook, RecreateOptions())
    sheet = SheetMetadata(
        name="Data",
        visible=False,
        col_widths={"A": 18},
        row_heights={2: 24},
        cells=[
            CellMetadata(address="A1", value="Total"),
            CellMetadata(address="B1", value=5),
            CellMetadata(
                address="C1",
                value="docs",
                hyperlink=Hyperlink(link="https://example.com"),
            ),
        ],
    )
    name = SheetReconstructor(context).reconstruct(sheet, 0)
    worksheet = workbook.workbook["Data"]
    assert name == "Data"
    assert worksheet.sheet_state == "hidden"
    assert worksheet.column_dimensions["A"].width == 18
    assert worksheet.row_dimensions[2].height == 24
    assert worksheet["B1"].value == 5
    assert worksheet["C1"].hyperlink.target == "https://example.com"
    assert context.diagnostics == []


def test_formula_failure_is_fatal(
    failing_workbook: Callable[..., OpenpyxlWorkbook],
) -> None:
    workbook = failing_workbook(set_cell_formula=ValueError("bad formula"))
    context = RecreateContext(workbook, RecreateOptions())
    sheet = SheetMetadata(
        name="Data", cells=[CellMetadata(address="B4", formula="SUM(")]
    )
    with pytest.raises(RecreateError, match="bad formula") as excinfo:
        SheetReconstructor(context).reconstruct(sheet, 0)
    assert excinfo.value.detail.phase == "cells"
    assert excinfo.value.detail.sheet == "Data"
    assert excinfo.value.detail.target == "B4"


def test_value_failure_is_recorded(
    failing_workbook: Callable[..., OpenpyxlWorkbook],
) -> None:
    workbook = failing_workbook(
        when=lambda _method, address: address == "A1",
        set_cell_string=ValueError("rejected"),
    )
    context = RecreateContext(workbook, RecreateOptions())
    sheet = SheetMetadata(
        name="Data",
        cells=[
            CellMetadata(address="A1", value="x"),
            CellMetadata(address="A2", value="y"),
        ],
    )
    SheetReconstructor(context).reconstruct(sheet, 0)
    assert workbook.workbook["Data"]["A2"].value == "y"
    assert [(d.kind, d.target) for d in context.diagnostics] == [("cell_value", "A1")]


def test_sheet_creation_failure_is_fatal() -> None:
    workbook = OpenpyxlWorkbook()
    workbook.new_sheet("Data")
    context = RecreateContext(workbook, RecreateOptions())
    with pytest.raises(RecreateError) as excinfo:
        SheetReconstructor(context).reconstruct(SheetMetadata(name="data"), 1)
    assert excinfo.value.detail.phase == "sheet"
    assert "already exists" in excinfo.value.detail.message


def test_bad_geometry_is_recorded() -> None:
    workbook = OpenpyxlWorkbook()
    context = RecreateContext(workbook, RecreateOptions())
    sheet = SheetMetadata(name="Data", col_widths={"A": -1}, row_heights={0: 10})
    SheetReconstructor(context).reconstruct(sheet, 0)
    assert [d.kind for d in context.diagnostics] == ["column_width", "row_height"]


def test_optional_features_are_skipped_when_disabled(png_bytes: bytes) -> None:
    workbook = OpenpyxlWorkbook()
    options = RecreateOptions(preserve_data_validation=False, preserve_images=False)
    context = RecreateContext(workbook, options)
    sheet = SheetMetadata.model_validate(
        {
            "name": "Data",
            "dataValidations": [{"type": "list", "formula1": '"a,b"', "range": "A1"}],
            "images": [{"cell": "B2", "file": png_bytes}],
        }
    )
    SheetReconstructor(context).reconstruct(sheet, 0)
    worksheet = workbook.workbook["Data"]
    assert worksheet.data_validations.dataValidation == []
    assert worksheet._images == []
