from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from exrebuild.models import (
    AlignmentStyle,
    BorderSpec,
    DataValidationRule,
    DefinedName,
    DocumentProperties,
    FillStyle,
    FontStyle,
    ImagePlacement,
    ProtectionStyle,
    SheetProtection,
)
from exrebuild.types import HyperlinkType


class StyleDescriptor(BaseModel):
    """Engine-facing style request holding only the parts that were specified."""

    model_config = ConfigDict(frozen=True)

    font: FontStyle | None = None
    fill: FillStyle | None = None
    borders: tuple[BorderSpec, ...] = Field(default_factory=tuple)
    alignment: AlignmentStyle | None = None
    number_format: int | str | None = None
    protection: ProtectionStyle | None = None

    def cache_key(self) -> str:
        """Return a stable key used to deduplicate identical descriptors."""
        return self.model_dump_json()


class StyleRegistration(BaseModel):
    """Generated id for a registered style and the parts that were dropped."""

    model_config = ConfigDict(frozen=True)

    style_id: int
    issues: tuple[str, ...] = Field(
        default_factory=tuple,
        description="One entry per style part left out, as '<part>: <reason>'.",
    )


@runtime_checkable
class WorkbookCollaborator(Protocol):
    """Capability surface the reconstruction engine drives.

    Methods signal rejection by raising ``ValueError`` (or the engine's own
    ``TypeError``); the caller decides whether that is fatal.
    """

    def sheet_names(self) -> list[str]: ...

    def new_sheet(self, name: str) -> int: ...

    def delete_sheet(self, name: str) -> None: ...

    def rename_sheet(self, old_name: str, new_name: str) -> None: ...

    def remove_placeholder_sheet(self) -> bool: ...

    def set_sheet_visible(self, sheet: str, visible: bool) -> None: ...

    def set_active_sheet(self, index: int) -> None: ...

    def set_col_width(self, sheet: str, column: str, width: float) -> None: ...

    def set_row_height(self, sheet: str, row: int, height: float) -> None: ...

    def new_style(self, descriptor: StyleDescriptor) -> StyleRegistration: ...

    def set_cell_formula(self, sheet: str, address: str, formula: str) -> None: ...

    def set_cell_number(self, sheet: str, address: str, value: int | float) -> None: ...

    def set_cell_bool(self, sheet: str, address: str, value: bool) -> None: ...

    def set_cell_datetime(self, sheet: str, address: str, value: datetime) -> None: ...

    def set_cell_string(self, sheet: str, address: str, value: str) -> None: ...

    def set_cell_style(self, sheet: str, address: str, style_id: int) -> None: ...

    def set_cell_hyperlink(
        self,
        sheet: str,
        address: str,
        link: str,
        link_type: HyperlinkType,
        tooltip: str | None = None,
    ) -> None: ...

    def merge_cells(self, sheet: str, start: str, end: str) -> None: ...

    def add_data_validation(self, sheet: str, rule: DataValidationRule) -> None: ...

    def add_image(self, sheet: str, image: ImagePlacement) -> None: ...

    def protect_sheet(self, sheet: str, protection: SheetProtection) -> None: ...

    def set_defined_name(self, defined_name: DefinedName) -> None: ...

    def set_doc_props(self, properties: DocumentProperties) -> None: ...

    def save(self, path: Path) -> None: ...


__all__ = ["StyleDescriptor", "StyleRegistration", "WorkbookCollaborator"]
