"""Metadata document models consumed by the reconstruction engine.

The models accept both snake_case field names and the camelCase keys written
by the metadata extractor. They are frozen: the engine reads them, never
mutates them.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from datetime import date, datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .types import HyperlinkType


class _MetadataModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class FloatValue(_MetadataModel):
    """Floating-point cell value."""

    kind: Literal["float"] = "float"
    value: float


class IntValue(_MetadataModel):
    """Integer cell value."""

    kind: Literal["int"] = "int"
    value: int


class BoolValue(_MetadataModel):
    """Boolean cell value."""

    kind: Literal["bool"] = "bool"
    value: bool


class TimestampValue(_MetadataModel):
    """Date/time cell value."""

    kind: Literal["timestamp"] = "timestamp"
    value: datetime


class StringValue(_MetadataModel):
    """Text cell value."""

    kind: Literal["string"] = "string"
    value: str


class UnrecognizedValue(_MetadataModel):
    """Value of a kind the engine does not know, kept in textual form."""

    kind: Literal["unknown"] = "unknown"
    value: str


CellValue = Annotated[
    Union[
        FloatValue,
        IntValue,
        BoolValue,
        TimestampValue,
        StringValue,
        UnrecognizedValue,
    ],
    Field(discriminator="kind"),
]

_VALUE_MODELS = (
    FloatValue,
    IntValue,
    BoolValue,
    TimestampValue,
    StringValue,
    UnrecognizedValue,
)
_KNOWN_KINDS = frozenset(model.model_fields["kind"].default for model in _VALUE_MODELS)


def coerce_cell_value(raw: object) -> object:
    """Resolve a raw metadata value into one CellValue variant.

    JSON scalars map onto their natural variant. Mappings must carry a
    ``kind``; an unknown kind is preserved as ``UnrecognizedValue`` with the
    textual form of its ``value``.
    """
    if raw is None or isinstance(raw, _VALUE_MODELS):
        return raw
    # bool is an int subclass; test it first.
    if isinstance(raw, bool):
        return BoolValue(value=raw)
    if isinstance(raw, int):
        return IntValue(value=raw)
    if isinstance(raw, float):
        return FloatValue(value=raw)
    if isinstance(raw, datetime):
        return TimestampValue(value=raw)
    if isinstance(raw, date):
        return TimestampValue(value=datetime.combine(raw, datetime.min.time()))
    if isinstance(raw, str):
        return StringValue(value=raw)
    if isinstance(raw, Mapping):
        kind = raw.get("kind")
        if kind in _KNOWN_KINDS:
            return raw
        inner = raw.get("value")
        return UnrecognizedValue(value="" if inner is None else str(inner))
    return UnrecognizedValue(value=str(raw))


class Hyperlink(_MetadataModel):
    """Hyperlink attached to a cell."""

    link: str
    tooltip: str | None = None
    link_type: HyperlinkType | None = Field(
        default=None,
        description="'External' for URLs, 'Location' for in-workbook targets. "
        "Inferred from the link when omitted.",
    )


class CellMetadata(_MetadataModel):
    """One cell of a sheet."""

    address: str
    value: CellValue | None = None
    formula: str = ""
    style_id: int = 0
    hyperlink: Hyperlink | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _resolve_value_variant(cls, raw: object) -> object:
        return coerce_cell_value(raw)

    @property
    def is_empty(self) -> bool:
        """True when the cell has neither a value nor a non-blank formula."""
        return self.value is None and not self.formula.strip()


class FontStyle(_MetadataModel):
    bold: bool = False
    italic: bool = False
    underline: str = ""
    strike: bool = False
    family: str = ""
    size: float = 0
    color: str = ""


class FillStyle(_MetadataModel):
    type: str = ""
    pattern: int = 0
    color: list[str] = Field(default_factory=list)
    shading: int = 0


class BorderSpec(_MetadataModel):
    type: str
    color: str = ""
    style: int | str = 0


class AlignmentStyle(_MetadataModel):
    horizontal: str = ""
    vertical: str = ""
    wrap_text: bool = False
    text_rotation: int = 0
    indent: int = 0
    shrink_to_fit: bool = False


class ProtectionStyle(_MetadataModel):
    hidden: bool = False
    locked: bool = False


class StyleDetails(_MetadataModel):
    """Style record keyed by its source-assigned identifier."""

    font: FontStyle | None = None
    fill: FillStyle | None = None
    border: list[BorderSpec] = Field(default_factory=list)
    alignment: AlignmentStyle | None = None
    number_format: int = Field(
        default=0, description="Built-in number format id; 0 means none."
    )
    custom_number_format: str | None = Field(
        default=None, description="Custom number format code; wins over the id."
    )
    protection: ProtectionStyle | None = None


class MergedCell(_MetadataModel):
    start_cell: str
    end_cell: str


class DataValidationRule(_MetadataModel):
    """Data validation rule scoped to a range expression."""

    type: str = ""
    operator: str = ""
    formula1: str = ""
    formula2: str = ""
    show_error: bool = False
    error_title: str | None = None
    error_message: str | None = None
    range: str = ""


class SheetProtection(_MetadataModel):
    """Sheet protection flags.

    The ``edit_*`` and ``select_*`` flags describe what the user is still
    allowed to do on the protected sheet.
    """

    protected: bool = False
    password: str = ""
    edit_objects: bool = False
    edit_scenarios: bool = False
    select_locked_cells: bool = False
    select_unlocked_cells: bool = False


class ImageFormat(_MetadataModel):
    """Placement and presentation of a picture.

    ``positioning`` follows the producer's vocabulary: ``oneCell`` (the
    default when empty) moves with its anchor cell, ``twoCell`` also resizes
    with the cells it spans, ``absolute`` stays fixed on the sheet.
    """

    alt_text: str = ""
    lock_aspect_ratio: bool = False
    positioning: str = ""
    offset_x: int = Field(default=0, description="Horizontal offset in pixels.")
    offset_y: int = Field(default=0, description="Vertical offset in pixels.")
    scale_x: float = 1.0
    scale_y: float = 1.0


class ImagePlacement(_MetadataModel):
    """Picture anchored at a cell."""

    cell: str
    extension: str = Field(default="", description="File extension, e.g. '.png'.")
    file: bytes = Field(description="Raw image bytes; base64 text in JSON.")
    format: ImageFormat = Field(default_factory=ImageFormat)

    @field_validator("file", mode="before")
    @classmethod
    def _decode_base64(cls, raw: object) -> object:
        if isinstance(raw, str):
            try:
                return base64.b64decode(raw, validate=True)
            except binascii.Error as exc:
                raise ValueError(f"Image data is not valid base64: {exc}") from exc
        return raw


class SheetMetadata(_MetadataModel):
    """One worksheet description."""

    index: int = Field(default=0, description="Zero-based position hint.")
    name: str = ""
    visible: bool = True
    col_widths: dict[str, float] = Field(default_factory=dict)
    row_heights: dict[int, float] = Field(default_factory=dict)
    cells: list[CellMetadata] = Field(default_factory=list)
    merged_cells: list[MergedCell] = Field(default_factory=list)
    data_validations: list[DataValidationRule] = Field(default_factory=list)
    protection: SheetProtection | None = None
    images: list[ImagePlacement] = Field(default_factory=list)


class DocumentProperties(_MetadataModel):
    """Core document properties copied verbatim into the workbook."""

    title: str = ""
    subject: str = ""
    creator: str = ""
    keywords: str = ""
    description: str = ""
    last_modified_by: str = ""
    category: str = ""
    version: str = ""
    revision: str = ""
    content_status: str = ""
    identifier: str = ""
    language: str = ""
    created: datetime | None = None
    modified: datetime | None = None

    @field_validator("created", "modified", mode="before")
    @classmethod
    def _blank_timestamp_is_none(cls, raw: object) -> object:
        if isinstance(raw, str) and not raw.strip():
            return None
        return raw


class DefinedName(_MetadataModel):
    """Named range; an empty scope (or 'Workbook') is document-global."""

    name: str
    refers_to: str
    scope: str = ""


class MetadataDocument(_MetadataModel):
    """Root of a metadata description."""

    filename: str = ""
    properties: DocumentProperties = Field(default_factory=DocumentProperties)
    sheets: list[SheetMetadata] = Field(default_factory=list)
    styles: dict[int, StyleDetails] = Field(default_factory=dict)
    defined_names: list[DefinedName] = Field(default_factory=list)


__all__ = [
    "AlignmentStyle",
    "BoolValue",
    "BorderSpec",
    "CellMetadata",
    "CellValue",
    "DataValidationRule",
    "DefinedName",
    "DocumentProperties",
    "FillStyle",
    "FloatValue",
    "FontStyle",
    "Hyperlink",
    "ImageFormat",
    "ImagePlacement",
    "IntValue",
    "MergedCell",
    "MetadataDocument",
    "ProtectionStyle",
    "SheetMetadata",
    "SheetProtection",
    "StringValue",
    "StyleDetails",
    "TimestampValue",
    "UnrecognizedValue",
    "coerce_cell_value",
]
