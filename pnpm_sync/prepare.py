"""Prepare phase — lockfile -> one ``.pnpm-sync.json`` per injected source package."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from pnpm_sync.events import (
    LogCallback,
    LogMessage,
    LogMessageKind,
    PrepareErrorUnsupportedFormatDetails,
    PrepareErrorUnsupportedPnpmVersionDetails,
    PrepareFinishingDetails,
    PrepareStartingDetails,
    structlog_callback,
)
from pnpm_sync.exceptions import (
    InputNotFoundError,
    UnsupportedLockfileError,
    UnsupportedPnpmVersionError,
)
from pnpm_sync.lockfile.model import Lockfile
from pnpm_sync.lockfile.reader import read_pnpm_lockfile
from pnpm_sync.plan.store import SyncPlanStore
from pnpm_sync.resolver.injected import resolve_injected_dependencies
from pnpm_sync.resolver.layouts import select_layout
from pnpm_sync.resolver.modules_manifest import read_modules_manifest

# (lockfile_path, *, ignore_incompatible) -> Lockfile | None
LockfileReader = Callable[..., "Lockfile | None"]


@dataclass
class PrepareResult:
    plan_paths: list[Path] = field(default_factory=list)
    skipped: bool = False


def prepare(
    lockfile_path: str | Path,
    dot_pnpm_folder: str | Path,
    *,
    version: str,
    lockfile_id: str | None = None,
    read_lockfile: LockfileReader = read_pnpm_lockfile,
    log_callback: LogCallback = structlog_callback,
) -> PrepareResult:
    """Resolve injected dependencies from *lockfile_path* and write their plans.

    *dot_pnpm_folder* is the pnpm virtual store (``node_modules/.pnpm``).
    Missing inputs raise :class:`InputNotFoundError`. An unsupported lockfile
    schema or pnpm version is reported as an error event and the lockfile is
    skipped (``PrepareResult.skipped``), so a caller iterating over several
    lockfiles can continue.
    """
    lockfile_path = Path(os.path.abspath(lockfile_path))
    dot_pnpm_folder = Path(os.path.abspath(dot_pnpm_folder))

    if not lockfile_path.is_file():
        raise InputNotFoundError("pnpm-lock.yaml", str(lockfile_path))
    if not dot_pnpm_folder.is_dir():
        raise InputNotFoundError(".pnpm folder", str(dot_pnpm_folder))

    log_callback(
        LogMessage(
            message=f"Starting prepare for {lockfile_path}",
            kind=LogMessageKind.VERBOSE,
            details=PrepareStartingDetails(
                lockfile_path=str(lockfile_path),
                dot_pnpm_folder=str(dot_pnpm_folder),
            ),
        )
    )
    started = time.perf_counter()

    lockfile = read_lockfile(lockfile_path, ignore_incompatible=True)
    manifest = read_modules_manifest(dot_pnpm_folder)
    try:
        if lockfile is None:
            raise UnsupportedLockfileError(None)
        layout = select_layout(manifest.pnpm_version, lockfile.lockfile_version)
    except UnsupportedPnpmVersionError as e:
        log_callback(
            LogMessage(
                message=(
                    f"The pnpm version {e.pnpm_version!r} is not supported; "
                    "pnpm-sync requires pnpm 8, 9 or 10"
                ),
                kind=LogMessageKind.ERROR,
                details=PrepareErrorUnsupportedPnpmVersionDetails(
                    lockfile_path=str(lockfile_path),
                    pnpm_version=e.pnpm_version,
                ),
            )
        )
        return PrepareResult(skipped=True)
    except UnsupportedLockfileError as e:
        log_callback(
            LogMessage(
                message=(
                    f"The pnpm-lock.yaml format (lockfileVersion={e.lockfile_version!r}) "
                    f"is not supported with pnpm {manifest.pnpm_version}"
                ),
                kind=LogMessageKind.ERROR,
                details=PrepareErrorUnsupportedFormatDetails(
                    lockfile_path=str(lockfile_path),
                    lockfile_version=e.lockfile_version,
                ),
            )
        )
        return PrepareResult(skipped=True)

    source_to_targets = resolve_injected_dependencies(
        lockfile,
        lockfile_folder=lockfile_path.parent,
        store_path=dot_pnpm_folder,
        layout=layout,
        max_length=manifest.virtual_store_dir_max_length,
    )

    store = SyncPlanStore(version, log_callback=log_callback)
    result = PrepareResult()
    for source_folder in sorted(source_to_targets):
        targets = source_to_targets[source_folder]
        if not targets:
            continue
        result.plan_paths.append(store.update(source_folder, targets, lockfile_id))

    elapsed = time.perf_counter() - started
    log_callback(
        LogMessage(
            message=f"Regenerated {len(result.plan_paths)} .pnpm-sync.json file(s)",
            kind=LogMessageKind.INFO,
            details=PrepareFinishingDetails(
                lockfile_path=str(lockfile_path),
                dot_pnpm_folder=str(dot_pnpm_folder),
                execution_time_in_ms=round(elapsed * 1000, 3),
            ),
        )
    )
    return result
