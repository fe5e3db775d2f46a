from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache
import importlib.util
from io import BytesIO
from pathlib import Path

import pytest

from exrebuild.engine import OpenpyxlWorkbook, StyleDescriptor, StyleRegistration
from exrebuild.models import DefinedName, DocumentProperties, MetadataDocument


@lru_cache(maxsize=1)
def _has_pillow() -> bool:
    """Return True if Pillow (PIL) is importable."""
    return importlib.util.find_spec("PIL") is not None


class FailingWorkbook(OpenpyxlWorkbook):
    """openpyxl collaborator that raises on selected methods.

    ``failures`` maps a method name to the exception it raises. An optional
    ``when`` predicate limits the failure to matching first arguments.
    """

    def __init__(
        self,
        failures: dict[str, Exception],
        when: Callable[[str, object], bool] | None = None,
    ) -> None:
        super().__init__()
        self.failures = failures
        self.when = when
        self.calls: list[str] = []

    def _maybe_fail(self, method: str, first: object) -> None:
        self.calls.append(method)
        exc = self.failures.get(method)
        if exc is None:
            return
        if self.when is None or self.when(method, first):
            raise exc

    def new_sheet(self, name: str) -> int:
        self._maybe_fail("new_sheet", name)
        return super().new_sheet(name)

    def new_style(self, descriptor: StyleDescriptor) -> StyleRegistration:
        self._maybe_fail("new_style", descriptor)
        return super().new_style(descriptor)

    def set_cell_formula(self, sheet: str, address: str, formula: str) -> None:
        self._maybe_fail("set_cell_formula", address)
        super().set_cell_formula(sheet, address, formula)

    def set_cell_number(self, sheet: str, address: str, value: int | float) -> None:
        self._maybe_fail("set_cell_number", address)
        super().set_cell_number(sheet, address, value)

    def set_cell_string(self, sheet: str, address: str, value: str) -> None:
        self._maybe_fail("set_cell_string", address)
        super().set_cell_string(sheet, address, value)

    def set_sheet_visible(self, sheet: str, visible: bool) -> None:
        self._maybe_fail("set_sheet_visible", sheet)
        super().set_sheet_visible(sheet, visible)

    def set_defined_name(self, defined_name: DefinedName) -> None:
        self._maybe_fail("set_defined_name", defined_name.name)
        super().set_defined_name(defined_name)

    def set_doc_props(self, properties: DocumentProperties) -> None:
        self._maybe_fail("set_doc_props", properties)
        super().set_doc_props(properties)

    def save(self, path: Path) -> None:
        self._maybe_fail("save", path)
        super().save(path)


@pytest.fixture
def failing_workbook() -> Callable[..., FailingWorkbook]:
    """Factory for collaborators with injected failures."""

    def _make(
        when: Callable[[str, object], bool] | None = None, **failures: Exception
    ) -> FailingWorkbook:
        return FailingWorkbook(failures, when)

    return _make


@pytest.fixture
def png_bytes() -> bytes:
    """Return a tiny PNG image."""
    if not _has_pillow():
        pytest.skip("Pillow is required for image tests.")
    from PIL import Image

    buffer = BytesIO()
    Image.new("RGB", (4, 2), color=(255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sales_document() -> MetadataDocument:
    """Small one-sheet document with values, a number and a formula."""
    return MetadataDocument.model_validate(
        {
            "filename": "sales.xlsx",
            "sheets": [
                {
                    "index": 0,
                    "name": "Data",
                    "cells": [
                        {"address": "A1", "value": "Name"},
                        {"address": "B1", "value": "Amount"},
                        {"address": "A2", "value": "Widget"},
                        {"address": "B2", "value": {"kind": "float", "value": 1000.5}},
                        {"address": "B4", "formula": "SUM(B2:B3)"},
                    ],
                }
            ],
        }
    )
