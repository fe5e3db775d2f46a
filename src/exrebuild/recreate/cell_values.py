"""Typed cell-value dispatch.

Each cell resolves to exactly one write: its formula, its typed value, or
nothing. Text values that read as decimal numbers are written as numbers so
arithmetic on them keeps working after reconstruction.
"""

from __future__ import annotations

from datetime import datetime
import math
import re

from pydantic import BaseModel, ConfigDict

from exrebuild.engine.base import WorkbookCollaborator
from exrebuild.models import (
    BoolValue,
    CellMetadata,
    FloatValue,
    IntValue,
    StringValue,
    TimestampValue,
    UnrecognizedValue,
)
from exrebuild.types import CellWriteAction

_NUMERIC_TEXT_PATTERN = re.compile(
    r"^[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$"
)


class CellWrite(BaseModel):
    """The single write chosen for one cell."""

    model_config = ConfigDict(frozen=True)

    action: CellWriteAction
    value: bool | int | float | datetime | str | None = None


NO_WRITE = CellWrite(action="none")


def dispatch_cell(cell: CellMetadata, *, preserve_formulas: bool = True) -> CellWrite:
    """Choose the write for a cell; a non-blank formula wins over a value."""
    if cell.formula.strip() and preserve_formulas:
        return CellWrite(action="formula", value=cell.formula)
    value = cell.value
    if value is None:
        return NO_WRITE
    if isinstance(value, (FloatValue, IntValue)):
        return CellWrite(action="number", value=value.value)
    if isinstance(value, BoolValue):
        return CellWrite(action="bool", value=value.value)
    if isinstance(value, TimestampValue):
        return CellWrite(action="datetime", value=value.value)
    if isinstance(value, (StringValue, UnrecognizedValue)):
        return coerce_text(value.value)
    return coerce_text(str(value))


def coerce_text(text: str) -> CellWrite:
    """Write decimal-number text as a number, anything else as a string."""
    if _NUMERIC_TEXT_PATTERN.match(text):
        number = float(text)
        if math.isfinite(number):
            return CellWrite(action="number", value=number)
    return CellWrite(action="string", value=text)


def apply_cell_write(
    workbook: WorkbookCollaborator, sheet: str, address: str, write: CellWrite
) -> None:
    """Perform the chosen write against the collaborator."""
    value = write.value
    if write.action == "none":
        return
    if write.action == "formula" and isinstance(value, str):
        workbook.set_cell_formula(sheet, address, value)
    elif write.action == "number" and isinstance(value, (int, float)):
        workbook.set_cell_number(sheet, address, value)
    elif write.action == "bool" and isinstance(value, bool):
        workbook.set_cell_bool(sheet, address, value)
    elif write.action == "datetime" and isinstance(value, datetime):
        workbook.set_cell_datetime(sheet, address, value)
    elif write.action == "string" and isinstance(value, str):
        workbook.set_cell_string(sheet, address, value)
    else:
        raise ValueError(f"Inconsistent cell write: {write.action}={value!r}")


__all__ = ["NO_WRITE", "CellWrite", "apply_cell_write", "coerce_text", "dispatch_cell"]
