"""Filesystem helpers. Failures here are infrastructure failures, not test failures."""

import filecmp
import shutil
from pathlib import Path

from ..core.errors import FilesystemError
from ..core.log import get_logger

logger = get_logger(__name__)


def ensure_dir(path: Path) -> Path:
    """Ensure directory exists and return it."""
    try:
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        return path
    except PermissionError as e:
        raise FilesystemError(f"Permission denied creating directory {path}") from e
    except OSError as e:
        raise FilesystemError(f"Error creating directory {path}: {e}") from e


def recreate_dir(path: Path) -> Path:
    """Remove a directory with all its contents and create it empty."""
    path = Path(path)
    try:
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
    except OSError as e:
        raise FilesystemError(f"Error removing {path}: {e}") from e
    logger.debug("Recreating directory %s", path)
    return ensure_dir(path)


def safe_remove(path: Path) -> bool:
    """Safely remove a file or directory, returning success status."""
    try:
        path = Path(path)
        if path.is_dir():
            shutil.rmtree(path)
            return True
        elif path.exists():
            path.unlink()
            return True
        else:
            return False
    except OSError as e:
        logger.warning("Failed to remove %s: %s", path, e)
        return False


def move_file(src: Path, dst: Path) -> None:
    """Move a file, replacing dst. Works across filesystems."""
    try:
        shutil.move(str(src), str(dst))
        logger.debug("Moved %s to %s", src, dst)
    except OSError as e:
        raise FilesystemError(f"Error moving {src} to {dst}: {e}") from e


def files_equal(first: Path, second: Path) -> bool:
    """Byte-compare two files."""
    try:
        return filecmp.cmp(first, second, shallow=False)
    except OSError as e:
        raise FilesystemError(f"Error comparing {first} and {second}: {e}") from e


def read_text(path: Path, encoding: str = "utf-8", errors: str = "strict") -> str:
    """Read text file with proper error handling."""
    try:
        return Path(path).read_text(encoding=encoding, errors=errors)
    except FileNotFoundError as e:
        raise FilesystemError(f"File not found: {path}") from e
    except UnicodeDecodeError as e:
        raise FilesystemError(f"Encoding error reading {path}: {e}") from e
    except OSError as e:
        raise FilesystemError(f"Error reading {path}: {e}") from e
