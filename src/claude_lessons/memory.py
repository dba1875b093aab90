"""Read and write the project memory file (CLAUDE.md)."""

import contextlib
import logging
import os
from pathlib import Path

from filelock import FileLock

from .config import MEMORY_FILE_NAME

logger = logging.getLogger(__name__)


def memory_file_path(project_root: str | Path) -> Path:
    """Location of the memory file for a project."""
    return Path(project_root).resolve() / MEMORY_FILE_NAME


def read_memory_file(path: Path) -> str:
    """Return the memory file content verbatim, or "" if it does not exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


def write_memory_file(path: Path, content: str) -> None:
    """
    Replace the memory file content.

    Uses:
    - File lock so concurrent writers do not interleave
    - Temp file + atomic rename so readers never see a partial file
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    lock_file = path.with_name(f".{path.name}.lock")

    with FileLock(lock_file):
        temp_file = path.with_suffix(path.suffix + ".tmp." + str(os.getpid()))
        try:
            temp_file.write_text(content, encoding="utf-8")
            os.replace(temp_file, path)
        except OSError:
            with contextlib.suppress(OSError):
                temp_file.unlink()
            raise

    logger.info(f"Wrote {len(content)} characters to {path}")
