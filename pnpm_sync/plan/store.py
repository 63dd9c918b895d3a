"""SyncPlanStore — read-merge-write of ``<project>/node_modules/.pnpm-sync.json``.

The write is a plain full-file rewrite. Two writers updating the same
document concurrently will race; callers serialize per source package.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from pnpm_sync.core.config import SOURCE_FOLDER, SYNC_PLAN_FILENAME
from pnpm_sync.core.fsutil import ensure_folder, relative_posix
from pnpm_sync.events import (
    LogCallback,
    LogMessage,
    LogMessageKind,
    PrepareReplacingFileDetails,
    PrepareWritingFileDetails,
    structlog_callback,
)
from pnpm_sync.exceptions import SyncPlanFormatError
from pnpm_sync.plan.models import PostbuildInjectedCopy, SyncPlan, TargetFolder


def plan_path_for(project_folder: str | Path) -> Path:
    return Path(project_folder) / "node_modules" / SYNC_PLAN_FILENAME


def read_plan_document(plan_path: str | Path) -> dict[str, Any] | None:
    """Load the raw JSON object, or ``None`` if the file does not exist."""
    path = Path(plan_path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SyncPlanFormatError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise SyncPlanFormatError(f"{path} does not contain a JSON object")
    return data


def parse_plan_document(data: dict[str, Any], plan_path: str | Path) -> SyncPlan:
    try:
        return SyncPlan.model_validate(data)
    except ValidationError as e:
        raise SyncPlanFormatError(f"Invalid .pnpm-sync.json at {plan_path}: {e}") from e


class SyncPlanStore:
    """Writes one plan document per source package.

    *version* is the plan schema version stamped into every document; an
    existing document with any other version is discarded, not merged.
    """

    def __init__(self, version: str, *, log_callback: LogCallback = structlog_callback) -> None:
        self._version = version
        self._log = log_callback

    def _new_plan(self) -> SyncPlan:
        return SyncPlan(
            version=self._version,
            postbuild_injected_copy=PostbuildInjectedCopy(source_folder=SOURCE_FOLDER),
        )

    def load(self, project_folder: str | Path) -> SyncPlan | None:
        """Existing plan for *project_folder* if present and version-compatible."""
        plan_path = plan_path_for(project_folder)
        data = read_plan_document(plan_path)
        if data is None:
            return None

        actual_version = data.get("version")
        if actual_version != self._version:
            self._log(
                LogMessage(
                    message=(
                        f"The .pnpm-sync.json file in {plan_path} has an incompatible version; "
                        "regenerating it."
                    ),
                    kind=LogMessageKind.VERBOSE,
                    details=PrepareReplacingFileDetails(
                        pnpm_sync_json_path=str(plan_path),
                        project_folder=str(project_folder),
                        actual_version=None if actual_version is None else str(actual_version),
                        expected_version=self._version,
                    ),
                )
            )
            return None

        return parse_plan_document(data, plan_path)

    def update(
        self,
        source_project_folder: str | Path,
        target_folders: Iterable[str | Path],
        lockfile_id: str | None = None,
    ) -> Path:
        """Merge *target_folders* into the source package's plan and rewrite it.

        With *lockfile_id*, entries previously written under the same id are
        dropped first, so a rerun replaces only its own contribution. Entries
        already present by ``folderPath`` are kept as they are.
        """
        plan_path = plan_path_for(source_project_folder)
        plan_folder = plan_path.parent

        plan = self.load(source_project_folder) or self._new_plan()
        entries = plan.postbuild_injected_copy.target_folders
        if lockfile_id is not None:
            entries = [entry for entry in entries if entry.lockfile_id != lockfile_id]

        known = {entry.folder_path for entry in entries}
        for folder_path in sorted(relative_posix(t, plan_folder) for t in target_folders):
            if folder_path in known:
                continue
            known.add(folder_path)
            entries.append(TargetFolder(folder_path=folder_path, lockfile_id=lockfile_id))
        plan.postbuild_injected_copy.target_folders = entries

        self._log(
            LogMessage(
                message=f"Writing {plan_path}",
                kind=LogMessageKind.VERBOSE,
                details=PrepareWritingFileDetails(
                    pnpm_sync_json_path=str(plan_path),
                    project_folder=str(source_project_folder),
                ),
            )
        )
        ensure_folder(plan_folder)
        plan_path.write_text(plan.to_json(), encoding="utf-8")
        return plan_path
