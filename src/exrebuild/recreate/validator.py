from __future__ import annotations

from exrebuild.models import MetadataDocument
from exrebuild.shared.a1 import is_valid_cell


def validate(document: MetadataDocument | None) -> list[str]:
    """Report structural problems in a metadata document.

    Pure and read-only. Checks sheet presence, sheet names, cell addresses
    and merge endpoints; overlapping merges, duplicate styles and formula
    syntax are left to the workbook at apply time.

    Returns:
        Advisory issue strings; empty when nothing was found.
    """
    if document is None:
        return ["metadata is None"]

    issues: list[str] = []
    if not document.sheets:
        issues.append("no sheets found in metadata")

    for index, sheet in enumerate(document.sheets):
        if not sheet.name:
            issues.append(f"sheet {index} has no name")
        for cell in sheet.cells:
            if not is_valid_cell(cell.address):
                issues.append(f"invalid cell address: {cell.address}")
        for merge in sheet.merged_cells:
            if not is_valid_cell(merge.start_cell):
                issues.append(f"invalid merge start cell: {merge.start_cell}")
            if not is_valid_cell(merge.end_cell):
                issues.append(f"invalid merge end cell: {merge.end_cell}")
    return issues
