from __future__ import annotations

import logging

from exrebuild.config import RecreateOptions
from exrebuild.engine.base import WorkbookCollaborator
from exrebuild.errors import Diagnostic
from exrebuild.types import DiagnosticKind

from .style_registry import StyleRegistry

logger = logging.getLogger(__name__)


class RecreateContext:
    """State owned by one reconstruction run.

    Nothing here is shared between runs, so independent runs into separate
    workbooks need no locking.
    """

    def __init__(self, workbook: WorkbookCollaborator, options: RecreateOptions) -> None:
        self.workbook = workbook
        self.options = options
        self.diagnostics: list[Diagnostic] = []
        self.styles = StyleRegistry(workbook, self.diagnostics)

    def record(
        self,
        kind: DiagnosticKind,
        exc: Exception,
        *,
        sheet: str | None = None,
        target: str | None = None,
    ) -> None:
        """Record a best-effort failure and keep going."""
        message = str(exc) or type(exc).__name__
        logger.warning(
            "Skipped %s (sheet=%s, target=%s): %s", kind, sheet, target, message
        )
        self.diagnostics.append(
            Diagnostic(kind=kind, sheet=sheet, target=target, message=message)
        )
