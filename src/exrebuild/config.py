from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RecreateOptions(BaseModel):
    """Options controlling what a reconstruction run writes."""

    model_config = ConfigDict(frozen=True)

    preserve_formulas: bool = Field(
        default=True, description="Write formulas and defined names."
    )
    preserve_styles: bool = Field(default=True, description="Apply cell styles.")
    preserve_data_validation: bool = Field(
        default=True, description="Apply data-validation rules."
    )
    preserve_images: bool = Field(default=True, description="Insert sheet images.")
    skip_empty_cells: bool = Field(
        default=True, description="Omit cells with neither value nor formula."
    )
    default_sheet_name: str = Field(
        default="Sheet", description="Prefix for synthesized sheet names."
    )


def default_options() -> RecreateOptions:
    """Return the recommended default options."""
    return RecreateOptions()
