"""Recreate Excel workbooks from structured metadata."""

from __future__ import annotations

from .config import RecreateOptions, default_options
from .errors import Diagnostic, RecreateError, RecreateErrorDetail
from .io import load_metadata, parse_metadata, recreate_from_json
from .models import (
    CellMetadata,
    DataValidationRule,
    DefinedName,
    DocumentProperties,
    Hyperlink,
    ImageFormat,
    ImagePlacement,
    MergedCell,
    MetadataDocument,
    SheetMetadata,
    SheetProtection,
    StyleDetails,
)
from .recreate import RecreateResult, reconstruct, save, validate

__all__ = [
    "CellMetadata",
    "DataValidationRule",
    "DefinedName",
    "Diagnostic",
    "DocumentProperties",
    "Hyperlink",
    "ImageFormat",
    "ImagePlacement",
    "MergedCell",
    "MetadataDocument",
    "RecreateError",
    "RecreateErrorDetail",
    "RecreateOptions",
    "RecreateResult",
    "SheetMetadata",
    "SheetProtection",
    "StyleDetails",
    "default_options",
    "load_metadata",
    "parse_metadata",
    "recreate_from_json",
    "reconstruct",
    "save",
    "validate",
]
