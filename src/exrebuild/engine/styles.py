"""Conversion of style descriptors into openpyxl style objects.

Pattern and border-style numbers follow the metadata producer's numbering
(0 = none, 1 = solid / thin, ...); names are accepted as well.
"""

from __future__ import annotations

from collections.abc import Callable
import re
from typing import Any, Final

from openpyxl.styles import (
    Alignment,
    Border,
    Font,
    GradientFill,
    PatternFill,
    Protection,
    Side,
)
from openpyxl.styles.fills import Fill
from openpyxl.styles.numbers import BUILTIN_FORMATS
from pydantic import BaseModel, ConfigDict

from exrebuild.models import (
    AlignmentStyle,
    BorderSpec,
    FillStyle,
    FontStyle,
    ProtectionStyle,
)

from .base import StyleDescriptor

_HEX_COLOR_PATTERN = re.compile(r"^#?(?:[0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$")

PATTERN_FILL_TYPES: Final[tuple[str | None, ...]] = (
    None,
    "solid",
    "mediumGray",
    "darkGray",
    "lightGray",
    "darkHorizontal",
    "darkVertical",
    "darkDown",
    "darkUp",
    "darkGrid",
    "darkTrellis",
    "lightHorizontal",
    "lightVertical",
    "lightDown",
    "lightUp",
    "lightGrid",
    "lightTrellis",
    "gray125",
    "gray0625",
)

BORDER_STYLES: Final[tuple[str | None, ...]] = (
    None,
    "thin",
    "medium",
    "dashed",
    "dotted",
    "thick",
    "double",
    "hair",
    "mediumDashed",
    "dashDot",
    "mediumDashDot",
    "dashDotDot",
    "mediumDashDotDot",
    "slantDashDot",
)

_GRADIENT_DEGREES: Final[dict[int, float]] = {0: 90, 1: 270, 2: 0, 3: 180, 4: 45, 5: 135}
_BORDER_SIDES: Final[frozenset[str]] = frozenset(
    {"left", "right", "top", "bottom", "diagonalDown", "diagonalUp"}
)


class StyleBundle(BaseModel):
    """openpyxl style objects for one registered style; None means untouched."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    font: Font | None = None
    fill: Fill | None = None
    border: Border | None = None
    alignment: Alignment | None = None
    number_format: str | None = None
    protection: Protection | None = None


def build_style_bundle(descriptor: StyleDescriptor) -> tuple[StyleBundle, list[str]]:
    """Translate a descriptor into openpyxl objects, one part at a time.

    A malformed part (bad color, unknown pattern or number format id) is left
    out of the bundle and reported as ``"<part>: <reason>"``; the remaining
    parts are still built.

    Returns:
        The bundle and the issues for the parts that were dropped.
    """
    builders: tuple[tuple[str, object, Callable[[Any], object]], ...] = (
        ("font", descriptor.font, _build_font),
        ("fill", descriptor.fill, _build_fill),
        ("border", descriptor.borders or None, _build_border),
        ("alignment", descriptor.alignment, _build_alignment),
        ("number_format", descriptor.number_format, _resolve_number_format),
        ("protection", descriptor.protection, _build_protection),
    )
    parts: dict[str, object] = {}
    issues: list[str] = []
    for part, spec, builder in builders:
        if spec is None:
            continue
        try:
            parts[part] = builder(spec)
        except (ValueError, TypeError) as exc:
            issues.append(f"{part}: {exc}")
    return StyleBundle(**parts), issues


def normalize_hex_color(value: str) -> str:
    """Normalize HEX input into AARRGGBB form for workbook internals."""
    text = value.strip().upper()
    if not _HEX_COLOR_PATTERN.match(text):
        raise ValueError(
            f"Invalid color {value!r}. Use 'RRGGBB', 'AARRGGBB', "
            "'#RRGGBB', or '#AARRGGBB'."
        )
    raw = text.lstrip("#")
    return raw if len(raw) == 8 else f"FF{raw}"


def _build_font(font: FontStyle) -> Font:
    return Font(
        name=font.family or None,
        size=font.size or None,
        bold=font.bold,
        italic=font.italic,
        underline=font.underline or None,
        strike=font.strike,
        color=normalize_hex_color(font.color) if font.color else None,
    )


def _build_fill(fill: FillStyle) -> Fill:
    colors = [normalize_hex_color(color) for color in fill.color]
    if fill.type == "gradient":
        degree = _GRADIENT_DEGREES.get(fill.shading)
        if degree is None:
            raise ValueError(f"Unsupported gradient shading: {fill.shading}")
        stops = colors if len(colors) > 1 else colors * 2
        return GradientFill(type="linear", degree=degree, stop=stops)
    if fill.type not in {"", "pattern"}:
        raise ValueError(f"Unsupported fill type: {fill.type}")
    if not 0 <= fill.pattern < len(PATTERN_FILL_TYPES):
        raise ValueError(f"Unsupported fill pattern: {fill.pattern}")
    fill_type = PATTERN_FILL_TYPES[fill.pattern]
    start = colors[0]
    end = colors[1] if len(colors) > 1 else start
    return PatternFill(fill_type=fill_type, start_color=start, end_color=end)


def _build_border(borders: tuple[BorderSpec, ...]) -> Border:
    sides: dict[str, Side] = {}
    for spec in borders:
        if spec.type not in _BORDER_SIDES:
            raise ValueError(f"Unsupported border type: {spec.type}")
        sides[spec.type] = Side(
            style=_resolve_border_style(spec.style),
            color=normalize_hex_color(spec.color) if spec.color else None,
        )
    diagonal = sides.get("diagonalDown") or sides.get("diagonalUp")
    return Border(
        left=sides.get("left", Side()),
        right=sides.get("right", Side()),
        top=sides.get("top", Side()),
        bottom=sides.get("bottom", Side()),
        diagonal=diagonal or Side(),
        diagonalDown="diagonalDown" in sides,
        diagonalUp="diagonalUp" in sides,
    )


def _resolve_border_style(style: int | str) -> str | None:
    if isinstance(style, str):
        return style or None
    if not 0 <= style < len(BORDER_STYLES):
        raise ValueError(f"Unsupported border style: {style}")
    return BORDER_STYLES[style]


def _build_alignment(alignment: AlignmentStyle) -> Alignment:
    return Alignment(
        horizontal=alignment.horizontal or None,
        vertical=alignment.vertical or None,
        wrap_text=alignment.wrap_text or None,
        text_rotation=alignment.text_rotation,
        indent=alignment.indent,
        shrink_to_fit=alignment.shrink_to_fit or None,
    )


def _build_protection(protection: ProtectionStyle) -> Protection:
    return Protection(locked=protection.locked, hidden=protection.hidden)


def _resolve_number_format(number_format: int | str | None) -> str | None:
    if number_format is None:
        return None
    if isinstance(number_format, str):
        return number_format
    code = BUILTIN_FORMATS.get(number_format)
    if code is None:
        raise ValueError(f"Unknown built-in number format id: {number_format}")
    return code


__all__ = [
    "BORDER_STYLES",
    "PATTERN_FILL_TYPES",
    "StyleBundle",
    "build_style_bundle",
    "normalize_hex_color",
]
