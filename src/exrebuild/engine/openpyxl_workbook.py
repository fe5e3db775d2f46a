from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from io import BytesIO
import logging
from pathlib import Path
import re

from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.drawing.fill import Blip
from openpyxl.drawing.geometry import PresetGeometry2D
from openpyxl.drawing.image import Image as OpenpyxlImage
from openpyxl.drawing.picture import PictureFrame, PictureLocking
from openpyxl.drawing.spreadsheet_drawing import (
    AbsoluteAnchor,
    AnchorMarker,
    OneCellAnchor,
    TwoCellAnchor,
)
from openpyxl.drawing.xdr import XDRPoint2D, XDRPositiveSize2D
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.utils.units import DEFAULT_ROW_HEIGHT, pixels_to_EMU, points_to_pixels
from openpyxl.workbook.defined_name import DefinedName as OpenpyxlDefinedName
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.hyperlink import Hyperlink as OpenpyxlHyperlink
from openpyxl.worksheet.worksheet import Worksheet

from exrebuild.models import (
    DataValidationRule,
    DefinedName,
    DocumentProperties,
    ImagePlacement,
    SheetProtection,
)
from exrebuild.shared.a1 import (
    MAX_ROWS,
    cell_to_coordinates,
    is_valid_cell,
    normalize_column_label,
    range_bounds,
    ranges_intersect,
)
from exrebuild.types import HyperlinkType

from .base import StyleDescriptor, StyleRegistration
from .styles import StyleBundle, build_style_bundle

logger = logging.getLogger(__name__)

PLACEHOLDER_SHEET_NAME = "Sheet"
MAX_SHEET_NAME_LENGTH = 31
MAX_COLUMN_WIDTH = 255
MAX_ROW_HEIGHT = 409
DEFAULT_COLUMN_PIXELS = 64

_INVALID_SHEET_CHARS = re.compile(r"[\\/*?:\[\]]")
_DEFINED_NAME_PATTERN = re.compile(r"^[A-Za-z_\\][A-Za-z0-9_.\\]*$")
_GLOBAL_SCOPES = frozenset({"", "workbook"})
_DOC_PROPERTY_FIELDS = {
    "title": "title",
    "subject": "subject",
    "creator": "creator",
    "keywords": "keywords",
    "description": "description",
    "last_modified_by": "lastModifiedBy",
    "category": "category",
    "version": "version",
    "revision": "revision",
    "content_status": "contentStatus",
    "identifier": "identifier",
    "language": "language",
}


class OpenpyxlWorkbook:
    """Workbook collaborator backed by an in-memory openpyxl workbook.

    A freshly created workbook carries openpyxl's default ``Sheet``; it is
    tracked as the placeholder until ``remove_placeholder_sheet`` drops it.
    """

    def __init__(self, workbook: Workbook | None = None) -> None:
        if workbook is None:
            workbook = Workbook()
            self._placeholder: str | None = PLACEHOLDER_SHEET_NAME
        else:
            self._placeholder = None
        self.workbook = workbook
        self._styles: list[StyleBundle] = []
        self._registrations: dict[str, StyleRegistration] = {}

    # Sheets

    def sheet_names(self) -> list[str]:
        return list(self.workbook.sheetnames)

    def new_sheet(self, name: str) -> int:
        """Create a worksheet at the end and return its position."""
        _validate_sheet_name(name)
        if name.casefold() in {title.casefold() for title in self.workbook.sheetnames}:
            raise ValueError(f"Sheet already exists: {name}")
        self.workbook.create_sheet(title=name)
        return len(self.workbook.sheetnames) - 1

    def delete_sheet(self, name: str) -> None:
        self.workbook.remove(self._sheet(name))
        if name == self._placeholder:
            self._placeholder = None

    def rename_sheet(self, old_name: str, new_name: str) -> None:
        sheet = self._sheet(old_name)
        _validate_sheet_name(new_name)
        if new_name.casefold() != old_name.casefold() and new_name.casefold() in {
            title.casefold() for title in self.workbook.sheetnames
        }:
            raise ValueError(f"Sheet already exists: {new_name}")
        sheet.title = new_name
        if old_name == self._placeholder:
            self._placeholder = None

    def remove_placeholder_sheet(self) -> bool:
        """Drop the default sheet created with the workbook, if still present."""
        if self._placeholder is None or self._placeholder not in self.workbook.sheetnames:
            return False
        logger.debug("Removing placeholder sheet %s.", self._placeholder)
        self.delete_sheet(self._placeholder)
        return True

    def set_sheet_visible(self, sheet: str, visible: bool) -> None:
        self._sheet(sheet).sheet_state = "visible" if visible else "hidden"

    def set_active_sheet(self, index: int) -> None:
        worksheets = self.workbook.worksheets
        if not 0 <= index < len(worksheets):
            raise ValueError(f"Sheet index out of range: {index}")
        self.workbook.active = index
        for position, worksheet in enumerate(worksheets):
            worksheet.sheet_view.tabSelected = position == index

    def set_col_width(self, sheet: str, column: str, width: float) -> None:
        label = normalize_column_label(column)
        if not 0 <= width <= MAX_COLUMN_WIDTH:
            raise ValueError(f"Column width out of range: {width}")
        self._sheet(sheet).column_dimensions[label].width = width

    def set_row_height(self, sheet: str, row: int, height: float) -> None:
        if not 1 <= row <= MAX_ROWS:
            raise ValueError(f"Row number out of range: {row}")
        if not 0 <= height <= MAX_ROW_HEIGHT:
            raise ValueError(f"Row height out of range: {height}")
        self._sheet(sheet).row_dimensions[row].height = height

    # Styles

    def new_style(self, descriptor: StyleDescriptor) -> StyleRegistration:
        """Register a style under a 1-based id; identical styles share one.

        Malformed parts are dropped and listed in the registration's issues.
        """
        key = descriptor.cache_key()
        existing = self._registrations.get(key)
        if existing is not None:
            return existing
        bundle, issues = build_style_bundle(descriptor)
        self._styles.append(bundle)
        registration = StyleRegistration(
            style_id=len(self._styles), issues=tuple(issues)
        )
        self._registrations[key] = registration
        return registration

    def set_cell_style(self, sheet: str, address: str, style_id: int) -> None:
        if not 1 <= style_id <= len(self._styles):
            raise ValueError(f"Unknown style id: {style_id}")
        bundle = self._styles[style_id - 1]
        cell = self._cell(sheet, address)
        if bundle.font is not None:
            cell.font = bundle.font
        if bundle.fill is not None:
            cell.fill = bundle.fill
        if bundle.border is not None:
            cell.border = bundle.border
        if bundle.alignment is not None:
            cell.alignment = bundle.alignment
        if bundle.number_format is not None:
            cell.number_format = bundle.number_format
        if bundle.protection is not None:
            cell.protection = bundle.protection

    # Cell content

    def set_cell_formula(self, sheet: str, address: str, formula: str) -> None:
        text = formula.strip()
        if not text:
            raise ValueError("Formula is empty.")
        cell = self._cell(sheet, address)
        cell.value = text if text.startswith("=") else f"={text}"

    def set_cell_number(self, sheet: str, address: str, value: int | float) -> None:
        if isinstance(value, bool):
            raise ValueError("Boolean is not a number.")
        self._cell(sheet, address).value = value

    def set_cell_bool(self, sheet: str, address: str, value: bool) -> None:
        self._cell(sheet, address).value = bool(value)

    def set_cell_datetime(self, sheet: str, address: str, value: datetime) -> None:
        if value.tzinfo is not None:
            value = value.replace(tzinfo=None)
        self._cell(sheet, address).value = value

    def set_cell_string(self, sheet: str, address: str, value: str) -> None:
        cell = self._cell(sheet, address)
        try:
            cell.value = value
        except IllegalCharacterError as exc:
            raise ValueError(f"Illegal character in cell text: {exc}") from exc
        # openpyxl treats a leading '=' as a formula; keep it literal.
        if value.startswith("="):
            cell.data_type = "s"

    def set_cell_hyperlink(
        self,
        sheet: str,
        address: str,
        link: str,
        link_type: HyperlinkType,
        tooltip: str | None = None,
    ) -> None:
        if not link:
            raise ValueError("Hyperlink target is empty.")
        cell = self._cell(sheet, address)
        previous = cell.value
        if link_type == "External":
            hyperlink = OpenpyxlHyperlink(ref=cell.coordinate, target=link, tooltip=tooltip)
        else:
            hyperlink = OpenpyxlHyperlink(
                ref=cell.coordinate, location=link.lstrip("#"), tooltip=tooltip
            )
        cell.hyperlink = hyperlink
        # The setter copies the link into empty cells; keep the cell's own value.
        if previous is None:
            cell.value = None

    # Ranges and sheet features

    def merge_cells(self, sheet: str, start: str, end: str) -> None:
        worksheet = self._sheet(sheet)
        bounds = range_bounds(start, end)
        if bounds[0] == bounds[2] and bounds[1] == bounds[3]:
            return
        overlapped = [
            str(existing)
            for existing in worksheet.merged_cells.ranges
            if ranges_intersect(bounds, existing.bounds)
        ]
        if overlapped:
            raise ValueError(
                "Merge range overlaps existing merged ranges: "
                + ", ".join(overlapped)
                + "."
            )
        worksheet.merge_cells(
            start_row=bounds[1],
            start_column=bounds[0],
            end_row=bounds[3],
            end_column=bounds[2],
        )

    def add_data_validation(self, sheet: str, rule: DataValidationRule) -> None:
        worksheet = self._sheet(sheet)
        if not rule.range.strip():
            raise ValueError("Data validation range is empty.")
        try:
            validation = DataValidation(
                type=rule.type or None,
                operator=rule.operator or None,
                formula1=_strip_formula_prefix(rule.formula1),
                formula2=_strip_formula_prefix(rule.formula2),
                showErrorMessage=rule.show_error,
                errorTitle=rule.error_title,
                error=rule.error_message,
                sqref=rule.range.strip(),
            )
        except TypeError as exc:
            raise ValueError(str(exc)) from exc
        worksheet.add_data_validation(validation)

    def add_image(self, sheet: str, image: ImagePlacement) -> None:
        worksheet = self._sheet(sheet)
        column, row = cell_to_coordinates(image.cell)
        image_format = image.format
        picture = OpenpyxlImage(BytesIO(image.file))
        scale_x = image_format.scale_x if image_format.scale_x > 0 else 1.0
        scale_y = image_format.scale_y if image_format.scale_y > 0 else 1.0
        picture.width = int(picture.width * scale_x)
        picture.height = int(picture.height * scale_y)
        anchor = _build_anchor(
            worksheet,
            image_format.positioning,
            column - 1,
            row - 1,
            (image_format.offset_x, image_format.offset_y),
            (picture.width, picture.height),
        )
        anchor.pic = _picture_frame(
            len(worksheet._charts) + len(worksheet._images) + 1,
            image_format.alt_text,
            image_format.lock_aspect_ratio,
        )
        picture.anchor = anchor
        worksheet.add_image(picture)
        logger.debug(
            "Placed %s image at %s!%s (%s).",
            image.extension or "unnamed",
            sheet,
            image.cell,
            image_format.positioning or "oneCell",
        )

    def protect_sheet(self, sheet: str, protection: SheetProtection) -> None:
        settings = self._sheet(sheet).protection
        # Workbook flags mark actions as locked; metadata flags mark them allowed.
        settings.objects = not protection.edit_objects
        settings.scenarios = not protection.edit_scenarios
        settings.selectLockedCells = not protection.select_locked_cells
        settings.selectUnlockedCells = not protection.select_unlocked_cells
        if protection.password:
            settings.password = protection.password
        settings.sheet = True

    # Document level

    def set_defined_name(self, defined_name: DefinedName) -> None:
        name = defined_name.name.strip()
        if not _DEFINED_NAME_PATTERN.match(name) or is_valid_cell(name):
            raise ValueError(f"Invalid defined name: {defined_name.name!r}")
        refers_to = _strip_formula_prefix(defined_name.refers_to)
        if not refers_to:
            raise ValueError(f"Defined name {name} has no reference.")
        scope = defined_name.scope.strip()
        if scope.casefold() in _GLOBAL_SCOPES:
            container = self.workbook.defined_names
        else:
            container = self._sheet(scope).defined_names
        if name.casefold() in {existing.casefold() for existing in container}:
            raise ValueError(f"Defined name already exists in scope: {name}")
        container.add(OpenpyxlDefinedName(name, attr_text=refers_to))

    def set_doc_props(self, properties: DocumentProperties) -> None:
        target = self.workbook.properties
        try:
            for field_name, attribute in _DOC_PROPERTY_FIELDS.items():
                value = getattr(properties, field_name)
                if value:
                    setattr(target, attribute, value)
            if properties.created is not None:
                target.created = _to_utc_naive(properties.created)
            if properties.modified is not None:
                target.modified = _to_utc_naive(properties.modified)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    def save(self, path: Path) -> None:
        try:
            self.workbook.save(path)
        except IndexError as exc:
            # Raised by openpyxl when every sheet is hidden.
            raise ValueError(str(exc)) from exc

    # Helpers

    def _sheet(self, name: str) -> Worksheet:
        if name not in self.workbook.sheetnames:
            raise ValueError(f"Sheet not found: {name}")
        return self.workbook[name]

    def _cell(self, sheet: str, address: str) -> Cell:
        column, row = cell_to_coordinates(address)
        return self._sheet(sheet).cell(row=row, column=column)


def _validate_sheet_name(name: str) -> None:
    if not name or not name.strip():
        raise ValueError("Sheet name is empty.")
    if len(name) > MAX_SHEET_NAME_LENGTH:
        raise ValueError(
            f"Sheet name exceeds {MAX_SHEET_NAME_LENGTH} characters: {name}"
        )
    if _INVALID_SHEET_CHARS.search(name):
        raise ValueError(f"Sheet name contains invalid characters: {name}")
    if name.startswith("'") or name.endswith("'"):
        raise ValueError(f"Sheet name cannot start or end with an apostrophe: {name}")


def _strip_formula_prefix(value: str) -> str | None:
    text = value.strip()
    if text.startswith("="):
        text = text[1:]
    return text or None


def _build_anchor(
    worksheet: Worksheet,
    positioning: str,
    column: int,
    row: int,
    offset: tuple[int, int],
    size: tuple[int, int],
) -> OneCellAnchor | AbsoluteAnchor | TwoCellAnchor:
    """Anchor a picture whose top-left corner sits at a zero-based cell."""
    mode = positioning.strip() or "oneCell"
    offset_x, offset_y = offset
    width, height = size
    extent = XDRPositiveSize2D(pixels_to_EMU(width), pixels_to_EMU(height))
    start = AnchorMarker(
        col=column,
        colOff=pixels_to_EMU(offset_x),
        row=row,
        rowOff=pixels_to_EMU(offset_y),
    )
    if mode == "oneCell":
        return OneCellAnchor(_from=start, ext=extent)
    if mode == "absolute":
        x = sum(_column_pixels(worksheet, index) for index in range(column))
        y = sum(_row_pixels(worksheet, index) for index in range(row))
        position = XDRPoint2D(
            pixels_to_EMU(x + offset_x), pixels_to_EMU(y + offset_y)
        )
        return AbsoluteAnchor(pos=position, ext=extent)
    if mode == "twoCell":
        end_column, end_x = _walk_grid(
            column, offset_x + width, lambda index: _column_pixels(worksheet, index)
        )
        end_row, end_y = _walk_grid(
            row, offset_y + height, lambda index: _row_pixels(worksheet, index)
        )
        end = AnchorMarker(
            col=end_column,
            colOff=pixels_to_EMU(end_x),
            row=end_row,
            rowOff=pixels_to_EMU(end_y),
        )
        return TwoCellAnchor(editAs="twoCell", _from=start, to=end)
    raise ValueError(f"Unsupported image positioning: {positioning!r}")


def _walk_grid(
    start: int, distance: int, size_of: Callable[[int], int]
) -> tuple[int, int]:
    """Return the zero-based index and inner offset ``distance`` pixels on."""
    index = start
    remaining = max(distance, 0)
    while remaining >= size_of(index):
        remaining -= size_of(index)
        index += 1
    return index, remaining


def _column_pixels(worksheet: Worksheet, index: int) -> int:
    label = get_column_letter(index + 1)
    if label in worksheet.column_dimensions:
        dimension = worksheet.column_dimensions[label]
        if dimension.hidden or not dimension.width:
            return 0
        return round(dimension.width * 7 + 5)
    return DEFAULT_COLUMN_PIXELS


def _row_pixels(worksheet: Worksheet, index: int) -> int:
    row = index + 1
    if row in worksheet.row_dimensions:
        dimension = worksheet.row_dimensions[row]
        if dimension.hidden:
            return 0
        if dimension.height is not None:
            return points_to_pixels(dimension.height)
    return points_to_pixels(DEFAULT_ROW_HEIGHT)


def _picture_frame(
    frame_id: int, alt_text: str, lock_aspect_ratio: bool
) -> PictureFrame:
    frame = PictureFrame()
    properties = frame.nvPicPr.cNvPr
    properties.id = frame_id
    properties.name = f"Image {frame_id}"
    properties.descr = alt_text or "Picture"
    if lock_aspect_ratio:
        frame.nvPicPr.cNvPicPr.picLocks = PictureLocking(noChangeAspect=True)
    # The relationship id is filled in when the drawing part is written.
    frame.blipFill.blip = Blip(cstate="print")
    frame.spPr.prstGeom = PresetGeometry2D(prst="rect")
    frame.spPr.ln = None
    return frame


def _to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


__all__ = ["PLACEHOLDER_SHEET_NAME", "OpenpyxlWorkbook"]
