from __future__ import annotations

from collections.abc import Mapping
import logging
from types import MappingProxyType

from exrebuild.engine.base import StyleDescriptor, WorkbookCollaborator
from exrebuild.errors import Diagnostic
from exrebuild.models import StyleDetails

logger = logging.getLogger(__name__)


def build_descriptor(details: StyleDetails) -> StyleDescriptor:
    """Copy only the specified parts of a style into a descriptor.

    A fill without colors, an empty border list and a zero number format are
    treated as absent so they never produce a visible default.
    """
    fill = details.fill if details.fill is not None and details.fill.color else None
    number_format: int | str | None = None
    if details.custom_number_format:
        number_format = details.custom_number_format
    elif details.number_format:
        number_format = details.number_format
    return StyleDescriptor(
        font=details.font,
        fill=fill,
        borders=tuple(details.border),
        alignment=details.alignment,
        number_format=number_format,
        protection=details.protection,
    )


class StyleRegistry:
    """Run-scoped map from metadata style ids to collaborator style ids."""

    def __init__(
        self,
        workbook: WorkbookCollaborator,
        diagnostics: list[Diagnostic] | None = None,
    ) -> None:
        self._workbook = workbook
        self._diagnostics = diagnostics if diagnostics is not None else []
        self._remap: dict[int, int] = {}

    @property
    def remap_table(self) -> Mapping[int, int]:
        """Read-only view of old id -> new id."""
        return MappingProxyType(self._remap)

    def register(self, old_id: int, details: StyleDetails) -> int | None:
        """Register one style; return its new id, or None when rejected.

        Parts the collaborator dropped become ``style`` diagnostics while the
        rest of the style stays registered.
        """
        descriptor = build_descriptor(details)
        try:
            registration = self._workbook.new_style(descriptor)
        except (ValueError, TypeError) as exc:
            logger.warning("Style %s rejected: %s", old_id, exc)
            self._diagnostics.append(
                Diagnostic(kind="style", target=str(old_id), message=str(exc))
            )
            return None
        for issue in registration.issues:
            logger.warning("Style %s partially applied: %s", old_id, issue)
            self._diagnostics.append(
                Diagnostic(kind="style", target=str(old_id), message=issue)
            )
        self._remap[old_id] = registration.style_id
        return registration.style_id

    def register_all(self, styles: Mapping[int, StyleDetails]) -> None:
        """Register every style in ascending id order."""
        for old_id in sorted(styles):
            self.register(old_id, styles[old_id])
        logger.debug("Registered %d of %d styles.", len(self._remap), len(styles))

    def remap(self, old_id: int) -> int | None:
        return self._remap.get(old_id)
