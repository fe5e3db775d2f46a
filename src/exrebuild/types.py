from __future__ import annotations

from typing import Literal

CellWriteAction = Literal["formula", "number", "bool", "datetime", "string", "none"]
HyperlinkType = Literal["External", "Location"]
OnConflictPolicy = Literal["overwrite", "skip", "rename"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

RecreatePhase = Literal[
    "properties",
    "sheet",
    "cells",
    "defined_names",
    "save",
]
DiagnosticKind = Literal[
    "style",
    "visibility",
    "column_width",
    "row_height",
    "cell_value",
    "cell_style",
    "hyperlink",
    "merge",
    "data_validation",
    "image",
    "protection",
    "placeholder",
    "active_sheet",
]
