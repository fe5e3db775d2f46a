from __future__ import annotations

import logging
from pathlib import Path

from .config import RecreateOptions
from .models import MetadataDocument
from .recreate.assembler import RecreateResult, reconstruct, save

logger = logging.getLogger(__name__)


def parse_metadata(data: str | bytes) -> MetadataDocument:
    """Decode a metadata JSON document.

    Args:
        data: JSON text or bytes.

    Returns:
        Validated metadata document.

    Raises:
        pydantic.ValidationError: If the JSON is malformed or does not match
            the metadata schema.
    """
    return MetadataDocument.model_validate_json(data)


def load_metadata(path: str | Path) -> MetadataDocument:
    """Read and decode a metadata JSON file.

    Raises:
        OSError: If the file cannot be read.
        pydantic.ValidationError: If the content is not valid metadata.
    """
    source = Path(path)
    logger.debug("Loading metadata from %s.", source)
    return parse_metadata(source.read_bytes())


def recreate_from_json(
    json_path: str | Path,
    output_path: str | Path,
    options: RecreateOptions | None = None,
) -> RecreateResult:
    """Load metadata, rebuild the workbook and save it in one call.

    Args:
        json_path: Metadata JSON file.
        output_path: Destination workbook path.
        options: Reconstruction options; defaults when omitted.

    Returns:
        Result of the reconstruction run.
    """
    document = load_metadata(json_path)
    result = reconstruct(document, options)
    save(result, output_path)
    return result


__all__ = ["load_metadata", "parse_metadata", "recreate_from_json"]
