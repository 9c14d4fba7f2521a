"""Path utilities for the perfume-extractor project."""

from pathlib import Path

SOURCE_EXTENSIONS = (".csv", ".xlsx", ".xlsm")


def get_workspace_root() -> Path:
    """Get the project workspace root directory.

    The workspace root is the parent directory of the src/ directory.
    This is calculated from the location of this file to work correctly
    regardless of where the module is imported from.

    Returns:
        Path: The workspace root directory.
    """
    return Path(__file__).parent.parent.parent.parent


def ensure_dir(path: Path) -> None:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Path to the directory to ensure.

    Returns:
        None
    """
    path.mkdir(parents=True, exist_ok=True)


def list_source_files(dirpath: Path) -> list[Path]:
    """List all catalog files (CSV, XLSX, XLSM) in a directory and subdirectories.

    Args:
        dirpath: Path to the directory.

    Returns:
        List of Path objects, sorted alphabetically.
    """
    if not dirpath.exists():
        return []
    return sorted(
        p for p in dirpath.rglob("*")
        if p.is_file() and p.suffix.lower() in SOURCE_EXTENSIONS
    )
