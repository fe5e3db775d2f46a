from __future__ import annotations

from .assembler import DocumentAssembler, RecreateResult, reconstruct, save
from .cell_values import CellWrite, apply_cell_write, dispatch_cell
from .context import RecreateContext
from .sheet import SheetReconstructor, resolve_link_type, resolve_sheet_name
from .style_registry import StyleRegistry, build_descriptor
from .validator import validate

__all__ = [
    "CellWrite",
    "DocumentAssembler",
    "RecreateContext",
    "RecreateResult",
    "SheetReconstructor",
    "StyleRegistry",
    "apply_cell_write",
    "build_descriptor",
    "dispatch_cell",
    "reconstruct",
    "resolve_link_type",
    "resolve_sheet_name",
    "save",
    "validate",
]
