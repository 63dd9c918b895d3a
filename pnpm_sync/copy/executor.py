"""SyncExecutor — reconcile target folders against a source package via hard links.

For one ``.pnpm-sync.json``:

1. Gate on the document ``version`` (exact match, else abort before any I/O).
2. Ask the package file lister for the source's shipped files.
3. Inventory every existing target folder; everything starts pending deletion.
4. Clear type changes: a target folder where the source now has a file, or a
   target file where the source now has a folder, is removed up front.
5. For each (file x target), with bounded concurrency: link if missing, skip if
   the target already shares the source's inode, else unlink and relink.
6. Delete what is still pending: files first, then folders left empty.

Filesystem calls run in worker threads; the pending-deletion map and the
counters are only touched on the event loop thread.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import structlog

from pnpm_sync.core.concurrency import for_each_async
from pnpm_sync.core.config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_SYNC_PLAN_PATH,
    RESERVED_TARGET_NAMES,
)
from pnpm_sync.core.fsutil import ensure_folder_async
from pnpm_sync.copy.models import SyncItem, SyncResult
from pnpm_sync.copy.packlist import list_package_files
from pnpm_sync.events import (
    CopyErrorIncompatibleSyncFileDetails,
    CopyErrorNoSyncFileDetails,
    CopyFinishingDetails,
    CopyStartingDetails,
    LogCallback,
    LogMessage,
    LogMessageKind,
    structlog_callback,
)
from pnpm_sync.exceptions import IncompatibleSyncPlanError
from pnpm_sync.plan.store import parse_plan_document, read_plan_document

log = structlog.get_logger("pnpm_sync.copy")

PackageFileLister = Callable[[Path], list[str]]


def inventory_target(
    target: Path,
    reserved_names: frozenset[str] = RESERVED_TARGET_NAMES,
) -> dict[Path, SyncItem]:
    """Every file and folder under *target*, keyed by absolute path.

    Reserved top-level names (pnpm's own ``node_modules``) are skipped
    entirely so they can never be scheduled for deletion.
    """
    items: dict[Path, SyncItem] = {}
    if not target.is_dir():
        return items

    for dirpath, dirnames, filenames in os.walk(target):
        current = Path(dirpath)
        if current == target:
            dirnames[:] = [d for d in dirnames if d not in reserved_names]
            filenames = [f for f in filenames if f not in reserved_names]
        for name in list(dirnames):
            path = current / name
            if path.is_symlink():
                # Not descended into; removed like a file.
                dirnames.remove(name)
                items[path] = SyncItem(absolute_path=path, is_directory=False, is_file=True)
            else:
                items[path] = SyncItem(absolute_path=path, is_directory=True, is_file=False)
        for name in filenames:
            path = current / name
            items[path] = SyncItem(absolute_path=path, is_directory=False, is_file=True)
    return items


def _same_inode(source: Path, destination: Path) -> bool:
    src = os.stat(source)
    dst = os.lstat(destination)
    return (src.st_dev, src.st_ino) == (dst.st_dev, dst.st_ino)


def _relink(source: Path, destination: Path) -> None:
    os.unlink(destination)
    os.link(source, destination)


def _remove_folder_if_empty(path: Path) -> bool:
    if os.listdir(path):
        return False
    os.rmdir(path)
    return True


@dataclass
class _CopyRun:
    """Mutable state of a single execute() call."""

    source_path: Path
    targets: list[Path]
    pending: dict[Path, SyncItem] = field(default_factory=dict)
    linked: int = 0
    unchanged: int = 0
    deleted: int = 0

    def forget_tree(self, folder: Path) -> None:
        """Drop *folder* and everything inventoried beneath it."""
        self.pending.pop(folder, None)
        for path in [p for p in self.pending if folder in p.parents]:
            del self.pending[path]

    def settle(self, destination: Path, target: Path) -> None:
        """Drop *destination* and its folders up to *target* from pending deletion."""
        self.pending.pop(destination, None)
        for parent in destination.parents:
            if parent == target:
                break
            self.pending.pop(parent, None)


class SyncExecutor:
    """Executes ``.pnpm-sync.json`` plans written by the same pnpm-sync *version*."""

    def __init__(
        self,
        version: str,
        *,
        list_files: PackageFileLister = list_package_files,
        concurrency: int = DEFAULT_CONCURRENCY,
        log_callback: LogCallback = structlog_callback,
        reserved_names: frozenset[str] = RESERVED_TARGET_NAMES,
    ) -> None:
        self._version = version
        self._list_files = list_files
        self._concurrency = concurrency
        self._log = log_callback
        self._reserved_names = reserved_names

    async def execute(self, plan_path: str | Path = DEFAULT_SYNC_PLAN_PATH) -> SyncResult:
        """Run one plan; returns the number of source files and elapsed seconds."""
        plan_path = Path(os.path.abspath(plan_path))
        self._log(
            LogMessage(
                message=f"Starting copy for {plan_path}",
                kind=LogMessageKind.VERBOSE,
                details=CopyStartingDetails(pnpm_sync_json_path=str(plan_path)),
            )
        )

        data = read_plan_document(plan_path)
        if data is None:
            self._log(
                LogMessage(
                    message=(
                        "You are executing pnpm-sync for a package, but we can not find "
                        f"the .pnpm-sync.json at {plan_path}"
                    ),
                    kind=LogMessageKind.WARNING,
                    details=CopyErrorNoSyncFileDetails(pnpm_sync_json_path=str(plan_path)),
                )
            )
            return SyncResult(file_count=0, elapsed_time=0.0)

        actual_version = data.get("version")
        if actual_version != self._version:
            error = IncompatibleSyncPlanError(
                str(plan_path),
                None if actual_version is None else str(actual_version),
                self._version,
            )
            self._log(
                LogMessage(
                    message=str(error),
                    kind=LogMessageKind.ERROR,
                    details=CopyErrorIncompatibleSyncFileDetails(
                        pnpm_sync_json_path=str(plan_path),
                        actual_version=error.actual_version,
                        expected_version=self._version,
                    ),
                )
            )
            raise error

        plan = parse_plan_document(data, plan_path)
        started = time.perf_counter()

        plan_folder = plan_path.parent
        copy_spec = plan.postbuild_injected_copy
        run = _CopyRun(
            source_path=Path(os.path.abspath(plan_folder / copy_spec.source_folder)),
            targets=[
                Path(os.path.abspath(plan_folder / target.folder_path))
                for target in copy_spec.target_folders
            ],
        )

        files = await asyncio.to_thread(self._list_files, run.source_path)

        for target in run.targets:
            run.pending.update(
                await asyncio.to_thread(inventory_target, target, self._reserved_names)
            )

        await self._clear_type_changes(run, files)

        async def _reconcile(pair: tuple[str, Path]) -> None:
            relative, target = pair
            await self._reconcile_file(run, relative, target)

        await for_each_async(
            ((relative, target) for relative in files for target in run.targets),
            _reconcile,
            concurrency=self._concurrency,
        )
        await self._delete_orphans(run)

        elapsed = time.perf_counter() - started
        self._log(
            LogMessage(
                message=f"Synced {len(files)} files from {run.source_path}",
                kind=LogMessageKind.INFO,
                details=CopyFinishingDetails(
                    pnpm_sync_json_path=str(plan_path),
                    source_path=str(run.source_path),
                    file_count=len(files),
                    execution_time_in_ms=round(elapsed * 1000, 3),
                ),
            )
        )
        return SyncResult(
            file_count=len(files),
            elapsed_time=elapsed,
            source_path=run.source_path,
            target_count=len(run.targets),
            linked_count=run.linked,
            unchanged_count=run.unchanged,
            deleted_count=run.deleted,
        )

    async def _clear_type_changes(self, run: _CopyRun, files: list[str]) -> None:
        """Remove inventoried entries whose kind no longer matches the source.

        Runs before the concurrent phase so no two link tasks race on the
        same removal.
        """
        for target in run.targets:
            for relative in files:
                destination = target / relative
                # Shallowest first; a removed file has no inventoried children.
                for ancestor in reversed(list(Path(relative).parents)[:-1]):
                    item = run.pending.get(target / ancestor)
                    if item is not None and item.is_file:
                        await asyncio.to_thread(os.unlink, item.absolute_path)
                        del run.pending[item.absolute_path]
                        run.deleted += 1
                        log.debug("copy.type_changed", path=str(item.absolute_path))

                item = run.pending.get(destination)
                if item is not None and item.is_directory:
                    await asyncio.to_thread(shutil.rmtree, destination)
                    run.forget_tree(destination)
                    run.deleted += 1
                    log.debug("copy.type_changed", path=str(destination))

    async def _reconcile_file(self, run: _CopyRun, relative: str, target: Path) -> None:
        source = run.source_path / relative
        destination = target / relative

        if destination not in run.pending:
            await ensure_folder_async(destination.parent)
            await asyncio.to_thread(os.link, source, destination)
            run.linked += 1
        elif await asyncio.to_thread(_same_inode, source, destination):
            run.unchanged += 1
        else:
            await asyncio.to_thread(_relink, source, destination)
            run.linked += 1

        run.settle(destination, target)

    async def _delete_orphans(self, run: _CopyRun) -> None:
        orphans = list(run.pending.values())
        for item in orphans:
            if item.is_file:
                await asyncio.to_thread(os.unlink, item.absolute_path)
                run.deleted += 1

        # Deepest first, so a folder emptied by its children's removal goes too.
        folders = sorted(
            (item.absolute_path for item in orphans if item.is_directory),
            key=lambda p: len(p.parts),
            reverse=True,
        )
        for folder in folders:
            if await asyncio.to_thread(_remove_folder_if_empty, folder):
                run.deleted += 1
            else:
                log.debug("copy.folder_not_empty", folder=str(folder))
        run.pending.clear()


async def execute_sync_plan(
    plan_path: str | Path = DEFAULT_SYNC_PLAN_PATH,
    *,
    version: str,
    list_files: PackageFileLister = list_package_files,
    concurrency: int = DEFAULT_CONCURRENCY,
    log_callback: LogCallback = structlog_callback,
) -> SyncResult:
    """Convenience wrapper: build a :class:`SyncExecutor` and run one plan."""
    executor = SyncExecutor(
        version,
        list_files=list_files,
        concurrency=concurrency,
        log_callback=log_callback,
    )
    return await executor.execute(plan_path)
