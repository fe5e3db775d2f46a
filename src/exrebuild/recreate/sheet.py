from __future__ import annotations

import logging
import re

from exrebuild.errors import RecreateError
from exrebuild.models import CellMetadata, Hyperlink, SheetMetadata
from exrebuild.types import HyperlinkType

from .cell_values import apply_cell_write, dispatch_cell
from .context import RecreateContext

logger = logging.getLogger(__name__)

# openpyxl descriptors raise TypeError, Pillow raises OSError subclasses.
_COLLABORATOR_ERRORS = (ValueError, TypeError, KeyError, OSError)
_URL_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")


def resolve_sheet_name(sheet: SheetMetadata, position: int, default_name: str) -> str:
    """Return the sheet's name, synthesizing ``<default><position+1>`` when empty."""
    if sheet.name:
        return sheet.name
    return f"{default_name}{position + 1}"


def resolve_link_type(hyperlink: Hyperlink) -> HyperlinkType:
    """Return the declared link type, or infer it from the link text."""
    if hyperlink.link_type is not None:
        return hyperlink.link_type
    if _URL_SCHEME_PATTERN.match(hyperlink.link):
        return "External"
    return "Location"


class SheetReconstructor:
    """Rebuild one worksheet from its metadata.

    Steps run in a fixed order (geometry, cells, merges, validations, images,
    protection) so later steps always see the cells they refer to.
    """

    def __init__(self, context: RecreateContext) -> None:
        self.context = context
        self.workbook = context.workbook
        self.options = context.options

    def reconstruct(self, sheet: SheetMetadata, position: int) -> str:
        """Create and populate one sheet; return the name it was created with.

        Raises:
            RecreateError: If the sheet cannot be created or a formula cannot
                be written.
        """
        name = resolve_sheet_name(sheet, position, self.options.default_sheet_name)
        try:
            self.workbook.new_sheet(name)
        except _COLLABORATOR_ERRORS as exc:
            raise RecreateError.from_exception("sheet", exc, sheet=name) from exc
        logger.debug("Created sheet %s (position=%d).", name, position)

        try:
            self.workbook.set_sheet_visible(name, sheet.visible)
        except _COLLABORATOR_ERRORS as exc:
            self.context.record("visibility", exc, sheet=name)
        self._apply_dimensions(name, sheet)
        for cell in sheet.cells:
            self._apply_cell(name, cell)
        self._apply_merges(name, sheet)
        if self.options.preserve_data_validation:
            self._apply_data_validations(name, sheet)
        if self.options.preserve_images:
            self._apply_images(name, sheet)
        if sheet.protection is not None and sheet.protection.protected:
            try:
                self.workbook.protect_sheet(name, sheet.protection)
            except _COLLABORATOR_ERRORS as exc:
                self.context.record("protection", exc, sheet=name)
        return name

    def _apply_dimensions(self, name: str, sheet: SheetMetadata) -> None:
        for column, width in sheet.col_widths.items():
            try:
                self.workbook.set_col_width(name, column, width)
            except _COLLABORATOR_ERRORS as exc:
                self.context.record("column_width", exc, sheet=name, target=column)
        for row, height in sheet.row_heights.items():
            try:
                self.workbook.set_row_height(name, row, height)
            except _COLLABORATOR_ERRORS as exc:
                self.context.record("row_height", exc, sheet=name, target=str(row))

    def _apply_cell(self, name: str, cell: CellMetadata) -> None:
        if self.options.skip_empty_cells and cell.is_empty:
            return
        write = dispatch_cell(cell, preserve_formulas=self.options.preserve_formulas)
        try:
            apply_cell_write(self.workbook, name, cell.address, write)
        except _COLLABORATOR_ERRORS as exc:
            if write.action == "formula":
                raise RecreateError.from_exception(
                    "cells", exc, sheet=name, target=cell.address
                ) from exc
            self.context.record("cell_value", exc, sheet=name, target=cell.address)

        if self.options.preserve_styles and cell.style_id != 0:
            new_id = self.context.styles.remap(cell.style_id)
            if new_id is not None:
                try:
                    self.workbook.set_cell_style(name, cell.address, new_id)
                except _COLLABORATOR_ERRORS as exc:
                    self.context.record(
                        "cell_style", exc, sheet=name, target=cell.address
                    )

        if cell.hyperlink is not None:
            try:
                self.workbook.set_cell_hyperlink(
                    name,
                    cell.address,
                    cell.hyperlink.link,
                    resolve_link_type(cell.hyperlink),
                    cell.hyperlink.tooltip,
                )
            except _COLLABORATOR_ERRORS as exc:
                self.context.record("hyperlink", exc, sheet=name, target=cell.address)

    def _apply_merges(self, name: str, sheet: SheetMetadata) -> None:
        for merge in sheet.merged_cells:
            try:
                self.workbook.merge_cells(name, merge.start_cell, merge.end_cell)
            except _COLLABORATOR_ERRORS as exc:
                self.context.record(
                    "merge",
                    exc,
                    sheet=name,
                    target=f"{merge.start_cell}:{merge.end_cell}",
                )

    def _apply_data_validations(self, name: str, sheet: SheetMetadata) -> None:
        for rule in sheet.data_validations:
            try:
                self.workbook.add_data_validation(name, rule)
            except _COLLABORATOR_ERRORS as exc:
                self.context.record("data_validation", exc, sheet=name, target=rule.range)

    def _apply_images(self, name: str, sheet: SheetMetadata) -> None:
        for image in sheet.images:
            try:
                self.workbook.add_image(name, image)
            except _COLLABORATOR_ERRORS as exc:
                self.context.record("image", exc, sheet=name, target=image.cell)
