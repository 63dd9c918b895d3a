"""Runtime data models for the copy phase."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class SyncItem:
    """An existing entry under a target folder, pending deletion until reconciled."""

    absolute_path: Path
    is_directory: bool
    is_file: bool


@dataclass
class SyncResult:
    """Outcome of one copy run."""

    file_count: int
    elapsed_time: float  # seconds
    source_path: Path | None = None
    target_count: int = 0
    linked_count: int = 0
    unchanged_count: int = 0
    deleted_count: int = 0
