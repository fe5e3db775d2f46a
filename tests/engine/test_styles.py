from __future__ import annotations

from openpyxl.styles import GradientFill, PatternFill
import pytest

from exrebuild.engine import StyleDescriptor, build_style_bundle, normalize_hex_color
from exrebuild.models import (
    AlignmentStyle,
    BorderSpec,
    FillStyle,
    FontStyle,
    ProtectionStyle,
)


def test_normalize_hex_color() -> None:
    assert normalize_hex_color("#ff0000") == "FFFF0000"
    assert normalize_hex_color("80FF0000") == "80FF0000"
    with pytest.raises(ValueError, match="Invalid color"):
        normalize_hex_color("red")


def test_empty_descriptor_touches_nothing() -> None:
    bundle, issues = build_style_bundle(StyleDescriptor())
    assert bundle.font is None
    assert bundle.fill is None
    assert bundle.border is None
    assert bundle.alignment is None
    assert bundle.number_format is None
    assert bundle.protection is None
    assert issues == []


def test_font_and_protection() -> None:
    bundle, issues = build_style_bundle(
        StyleDescriptor(
            font=FontStyle(bold=True, size=14, family="Arial", color="FF0000"),
            protection=ProtectionStyle(locked=False, hidden=True),
        )
    )
    assert issues == []
    assert bundle.font is not None
    assert bundle.font.b is True
    assert bundle.font.name == "Arial"
    assert bundle.font.sz == 14
    assert bundle.font.color.rgb == "FFFF0000"
    assert bundle.protection is not None
    assert bundle.protection.locked is False
    assert bundle.protection.hidden is True


def test_pattern_fill() -> None:
    bundle, _ = build_style_bundle(
        StyleDescriptor(fill=FillStyle(type="pattern", pattern=1, color=["FFFF00"]))
    )
    assert isinstance(bundle.fill, PatternFill)
    assert bundle.fill.fill_type == "solid"
    assert bundle.fill.fgColor.rgb == "FFFFFF00"


def test_unknown_pattern_drops_only_the_fill() -> None:
    bundle, issues = build_style_bundle(
        StyleDescriptor(
            font=FontStyle(italic=True),
            fill=FillStyle(type="pattern", pattern=99, color=["FFFF00"]),
        )
    )
    assert bundle.fill is None
    assert bundle.font is not None
    assert bundle.font.i is True
    assert issues == ["fill: Unsupported fill pattern: 99"]


def test_gradient_fill() -> None:
    bundle, _ = build_style_bundle(
        StyleDescriptor(
            fill=FillStyle(type="gradient", shading=0, color=["FFFFFF", "000000"])
        )
    )
    assert isinstance(bundle.fill, GradientFill)
    assert bundle.fill.degree == 90


def test_borders() -> None:
    bundle, _ = build_style_bundle(
        StyleDescriptor(
            borders=(
                BorderSpec(type="left", style=1, color="000000"),
                BorderSpec(type="bottom", style="double"),
            )
        )
    )
    assert bundle.border is not None
    assert bundle.border.left.style == "thin"
    assert bundle.border.left.color.rgb == "FF000000"
    assert bundle.border.bottom.style == "double"
    assert bundle.border.top.style is None


def test_unknown_border_side_drops_only_the_border() -> None:
    bundle, issues = build_style_bundle(
        StyleDescriptor(
            borders=(BorderSpec(type="middle"),),
            alignment=AlignmentStyle(horizontal="right"),
        )
    )
    assert bundle.border is None
    assert bundle.alignment is not None
    assert bundle.alignment.horizontal == "right"
    assert len(issues) == 1
    assert issues[0].startswith("border: Unsupported border type")


def test_alignment() -> None:
    bundle, _ = build_style_bundle(
        StyleDescriptor(
            alignment=AlignmentStyle(horizontal="center", wrap_text=True, indent=2)
        )
    )
    assert bundle.alignment is not None
    assert bundle.alignment.horizontal == "center"
    assert bundle.alignment.wrap_text is True
    assert bundle.alignment.indent == 2


def test_number_formats() -> None:
    bundle, _ = build_style_bundle(StyleDescriptor(number_format=14))
    assert bundle.number_format == "mm-dd-yy"
    bundle, _ = build_style_bundle(StyleDescriptor(number_format="0.000"))
    assert bundle.number_format == "0.000"


def test_unknown_number_format_id_keeps_other_parts() -> None:
    bundle, issues = build_style_bundle(
        StyleDescriptor(font=FontStyle(bold=True), number_format=164)
    )
    assert bundle.number_format is None
    assert bundle.font is not None
    assert bundle.font.b is True
    assert issues == ["number_format: Unknown built-in number format id: 164"]


def test_every_bad_part_is_reported() -> None:
    bundle, issues = build_style_bundle(
        StyleDescriptor(
            font=FontStyle(color="not-a-color"),
            number_format=999,
            protection=ProtectionStyle(locked=True),
        )
    )
    assert [issue.split(":")[0] for issue in issues] == ["font", "number_format"]
    assert bundle.protection is not None
