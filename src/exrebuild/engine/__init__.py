from __future__ import annotations

from .base import StyleDescriptor, StyleRegistration, WorkbookCollaborator
from .openpyxl_workbook import PLACEHOLDER_SHEET_NAME, OpenpyxlWorkbook
from .styles import StyleBundle, build_style_bundle, normalize_hex_color

__all__ = [
    "PLACEHOLDER_SHEET_NAME",
    "OpenpyxlWorkbook",
    "StyleBundle",
    "StyleDescriptor",
    "StyleRegistration",
    "WorkbookCollaborator",
    "build_style_bundle",
    "normalize_hex_color",
]
