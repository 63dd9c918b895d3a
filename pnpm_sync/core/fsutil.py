"""Small filesystem helpers shared by prepare and copy."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path


def ensure_folder(path: str | Path) -> None:
    """Create *path* and any missing parents; no-op if it already exists."""
    Path(path).mkdir(parents=True, exist_ok=True)


async def ensure_folder_async(path: str | Path) -> None:
    await asyncio.to_thread(ensure_folder, path)


def to_posix(path: str) -> str:
    """Convert a host path to forward slashes regardless of ``os.sep``."""
    return path.replace(os.sep, "/") if os.sep != "/" else path


def relative_posix(target: str | Path, start: str | Path) -> str:
    """Relative path from *start* to *target*, always with forward slashes."""
    return to_posix(os.path.relpath(target, start))
