from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from exrebuild.config import RecreateOptions, default_options
from exrebuild.engine.base import WorkbookCollaborator
from exrebuild.engine.openpyxl_workbook import OpenpyxlWorkbook
from exrebuild.errors import Diagnostic, RecreateError
from exrebuild.models import MetadataDocument

from .context import RecreateContext
from .sheet import SheetReconstructor

logger = logging.getLogger(__name__)

_COLLABORATOR_ERRORS = (ValueError, TypeError, KeyError)


class RecreateResult(BaseModel):
    """Output of a reconstruction run.

    Attributes:
        workbook: The populated workbook collaborator, owned by the caller.
        sheet_names: Names the sheets were created with, in metadata order.
        style_map: Metadata style id -> generated style id.
        diagnostics: Best-effort failures that did not stop the run.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    workbook: WorkbookCollaborator
    sheet_names: list[str] = Field(default_factory=list)
    style_map: dict[int, int] = Field(default_factory=dict)
    diagnostics: list[Diagnostic] = Field(default_factory=list)


class DocumentAssembler:
    """Drive one metadata document into a workbook in a fixed phase order."""

    def __init__(
        self,
        document: MetadataDocument,
        options: RecreateOptions | None = None,
        *,
        workbook: WorkbookCollaborator | None = None,
    ) -> None:
        self.document = document
        self.options = options or default_options()
        if workbook is None:
            workbook = OpenpyxlWorkbook()
        self.context = RecreateContext(workbook, self.options)

    @property
    def workbook(self) -> WorkbookCollaborator:
        return self.context.workbook

    def assemble(self) -> RecreateResult:
        """Run every phase; the first fatal failure raises RecreateError."""
        self._apply_properties()
        if self.options.preserve_styles and self.document.styles:
            self.context.styles.register_all(self.document.styles)
        if self.document.sheets:
            self._remove_placeholder()
        sheet_names = self._reconstruct_sheets()
        if self.options.preserve_formulas and self.document.defined_names:
            self._apply_defined_names()
        self._select_active_sheet(sheet_names)
        logger.info(
            "Recreated %d sheet(s) with %d diagnostic(s).",
            len(sheet_names),
            len(self.context.diagnostics),
        )
        return RecreateResult(
            workbook=self.workbook,
            sheet_names=sheet_names,
            style_map=dict(self.context.styles.remap_table),
            diagnostics=list(self.context.diagnostics),
        )

    def _apply_properties(self) -> None:
        try:
            self.workbook.set_doc_props(self.document.properties)
        except _COLLABORATOR_ERRORS as exc:
            raise RecreateError.from_exception("properties", exc) from exc

    def _remove_placeholder(self) -> None:
        try:
            self.workbook.remove_placeholder_sheet()
        except _COLLABORATOR_ERRORS as exc:
            self.context.record("placeholder", exc)

    def _reconstruct_sheets(self) -> list[str]:
        reconstructor = SheetReconstructor(self.context)
        return [
            reconstructor.reconstruct(sheet, position)
            for position, sheet in enumerate(self.document.sheets)
        ]

    def _apply_defined_names(self) -> None:
        for defined_name in self.document.defined_names:
            try:
                self.workbook.set_defined_name(defined_name)
            except _COLLABORATOR_ERRORS as exc:
                raise RecreateError.from_exception(
                    "defined_names", exc, target=defined_name.name
                ) from exc

    def _select_active_sheet(self, sheet_names: list[str]) -> None:
        """Activate the first visible sheet in metadata order."""
        for sheet, name in zip(self.document.sheets, sheet_names):
            if not sheet.visible:
                continue
            try:
                self.workbook.set_active_sheet(self.workbook.sheet_names().index(name))
            except _COLLABORATOR_ERRORS as exc:
                self.context.record("active_sheet", exc, sheet=name)
            return


def reconstruct(
    document: MetadataDocument,
    options: RecreateOptions | None = None,
    *,
    workbook: WorkbookCollaborator | None = None,
) -> RecreateResult:
    """Rebuild a workbook from metadata.

    Args:
        document: Decoded metadata; never mutated.
        options: Reconstruction options; defaults when omitted.
        workbook: Optional collaborator to populate instead of a fresh
            openpyxl workbook.

    Returns:
        Result holding the workbook and the collected diagnostics.

    Raises:
        RecreateError: On a fatal failure (properties, sheet creation,
            formula write, defined name).
    """
    return DocumentAssembler(document, options, workbook=workbook).assemble()


def save(target: RecreateResult | WorkbookCollaborator, path: str | Path) -> Path:
    """Persist a reconstructed workbook and return the written path.

    Raises:
        RecreateError: If the collaborator cannot serialize the workbook.
    """
    workbook = target.workbook if isinstance(target, RecreateResult) else target
    output_path = Path(path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(output_path)
    except (OSError, ValueError, TypeError) as exc:
        raise RecreateError.from_exception(
            "save", exc, target=str(output_path)
        ) from exc
    logger.debug("Saved workbook to %s.", output_path)
    return output_path
