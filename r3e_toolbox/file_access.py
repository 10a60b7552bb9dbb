"""
Async text file access with structured results.
"""

import asyncio
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


@dataclass
class FileResult:
    """Outcome of a read or write."""
    success: bool
    path: str
    data: Optional[str] = None
    error: Optional[str] = None


def _read(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _write_atomic(path: Path, text: str) -> None:
    """Write to a temp file next to the target, then rename over it."""
    fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        # mkstemp creates 0600; keep the permissions of the file being replaced
        if path.exists():
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


async def read_text(source: PathLike) -> FileResult:
    """
    Read a UTF-8 text file.

    Args:
        source: File path.

    Returns:
        FileResult with data on success, error message otherwise.
    """
    path = Path(source)
    try:
        data = await asyncio.to_thread(_read, path)
    except (OSError, UnicodeDecodeError) as e:
        return FileResult(success=False, path=str(path), error=f"Failed to read {path}: {e}")
    return FileResult(success=True, path=str(path), data=data)


async def write_text(destination: PathLike, text: str) -> FileResult:
    """
    Write a UTF-8 text file.

    The previous content stays intact if writing fails.

    Args:
        destination: File path; its directory must exist.
        text: Content to write.

    Returns:
        FileResult describing the outcome.
    """
    path = Path(destination)
    try:
        await asyncio.to_thread(_write_atomic, path, text)
    except OSError as e:
        return FileResult(success=False, path=str(path), error=f"Failed to write {path}: {e}")
    return FileResult(success=True, path=str(path))
