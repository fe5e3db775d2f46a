from __future__ import annotations

from pathlib import Path

from exrebuild.types import OnConflictPolicy

DEFAULT_SUFFIX = ".xlsx"


def resolve_output_path(
    input_path: Path,
    *,
    out_dir: Path | None,
    out_name: str | None,
    default_suffix: str = DEFAULT_SUFFIX,
) -> Path:
    """Build an output workbook path from a metadata path and optional overrides."""
    target_dir = out_dir or input_path.parent
    name = normalize_output_name(input_path, out_name, default_suffix=default_suffix)
    return (target_dir / name).resolve()


def normalize_output_name(
    input_path: Path,
    out_name: str | None,
    *,
    default_suffix: str,
) -> str:
    """Normalize output filename with extension fallback behavior."""
    if out_name:
        candidate = Path(out_name)
        return (
            candidate.name if candidate.suffix else f"{candidate.name}{default_suffix}"
        )
    return _build_recreated_default_name(input_path.stem, default_suffix)


def _build_recreated_default_name(stem: str, default_suffix: str) -> str:
    """Build default output name without chaining `_recreated` repeatedly."""
    if stem.casefold().endswith("_recreated"):
        return f"{stem}{default_suffix}"
    return f"{stem}_recreated{default_suffix}"


def apply_conflict_policy(
    output_path: Path, on_conflict: OnConflictPolicy
) -> tuple[Path, str | None, bool]:
    """Apply output conflict policy to a resolved output path.

    Returns:
        Tuple of (final path, optional warning, whether the write is skipped).
    """
    if not output_path.exists():
        return output_path, None, False
    if on_conflict == "skip":
        return (
            output_path,
            f"Output exists; skipping write: {output_path.name}",
            True,
        )
    if on_conflict == "rename":
        renamed = next_available_path(output_path)
        return (
            renamed,
            f"Output exists; renamed to: {renamed.name}",
            False,
        )
    return output_path, None, False


def next_available_path(path: Path) -> Path:
    """Return the next available path by appending a numeric suffix."""
    if not path.exists():
        return path
    stem = path.stem
    suffix = path.suffix
    for idx in range(1, 10_000):
        candidate = path.with_name(f"{stem}_{idx}{suffix}")
        if not candidate.exists():
            return candidate
    raise RuntimeError(f"Failed to resolve unique path for {path}")
