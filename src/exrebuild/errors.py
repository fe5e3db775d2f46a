from __future__ import annotations

from pydantic import BaseModel

from .types import DiagnosticKind, RecreatePhase


class RecreateErrorDetail(BaseModel):
    """Structured context of a fatal reconstruction failure."""

    phase: RecreatePhase
    sheet: str | None = None
    target: str | None = None
    message: str


class Diagnostic(BaseModel):
    """A best-effort failure that did not stop the run."""

    kind: DiagnosticKind
    sheet: str | None = None
    target: str | None = None
    message: str


class RecreateError(RuntimeError):
    """Fatal reconstruction error with structured detail."""

    def __init__(self, detail: RecreateErrorDetail) -> None:
        super().__init__(_format_detail(detail))
        self.detail = detail

    @classmethod
    def from_exception(
        cls,
        phase: RecreatePhase,
        exc: Exception,
        *,
        sheet: str | None = None,
        target: str | None = None,
    ) -> RecreateError:
        """Build a RecreateError wrapping a collaborator exception."""
        return cls(
            RecreateErrorDetail(
                phase=phase, sheet=sheet, target=target, message=str(exc)
            )
        )


def _format_detail(detail: RecreateErrorDetail) -> str:
    parts = [f"failed to recreate {detail.phase.replace('_', ' ')}"]
    if detail.sheet is not None:
        parts.append(f"in sheet {detail.sheet!r}")
    if detail.target is not None:
        parts.append(f"at {detail.target}")
    return f"{' '.join(parts)}: {detail.message}"


__all__ = ["Diagnostic", "RecreateError", "RecreateErrorDetail"]
