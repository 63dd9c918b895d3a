"""Injected-dependency resolution — lockfile graph -> source/target folders."""

from __future__ import annotations

import os
from collections import deque
from pathlib import Path

import structlog

from pnpm_sync.core.config import (
    DEFAULT_VIRTUAL_STORE_DIR_MAX_LENGTH,
    FILE_PROTOCOL,
    TARBALL_SUFFIXES,
)
from pnpm_sync.exceptions import CorruptLockfileError
from pnpm_sync.lockfile.model import Lockfile
from pnpm_sync.resolver.layouts import StoreLayout

log = structlog.get_logger("pnpm_sync.resolver")

# dependency name -> version qualifiers it is installed under
InjectedDependencySet = dict[str, set[str]]
# absolute source package folder -> absolute store install folders
SourceToTargets = dict[Path, set[Path]]


def _qualifier_path(qualifier: str) -> str:
    """``file:../libs/a(react@17.0.2)`` -> ``../libs/a``."""
    return qualifier.split("(", 1)[0][len(FILE_PROTOCOL):]


def is_injected_version(version: str) -> bool:
    """True for ``file:`` folder references; tarballs are installed, not synced."""
    if not version.startswith(FILE_PROTOCOL):
        return False
    return not _qualifier_path(version).endswith(TARBALL_SUFFIXES)


def find_injected_dependencies(lockfile: Lockfile, layout: StoreLayout) -> InjectedDependencySet:
    """Every ``(name, qualifier)`` reachable from an importer over ``file:`` edges.

    Each pair is expanded at most once, so cycles among local packages
    terminate.
    """
    injected: InjectedDependencySet = {}
    visited: set[tuple[str, str]] = set()
    worklist: deque[tuple[str, str]] = deque()

    def _discover(name: str, qualifier: str) -> None:
        pair = (name, qualifier)
        if pair in visited:
            return
        visited.add(pair)
        injected.setdefault(name, set()).add(qualifier)
        worklist.append(pair)

    for importer in lockfile.importers.values():
        for name, version in importer.all_dependencies():
            if is_injected_version(version):
                _discover(name, version)

    while worklist:
        name, qualifier = worklist.popleft()
        package_key = layout.package_key(name, qualifier)
        entry = lockfile.packages.get(package_key)
        if entry is None:
            raise CorruptLockfileError(package_key)
        for dep_name, dep_version in entry.all_dependencies():
            if is_injected_version(dep_version):
                _discover(dep_name, dep_version)

    log.debug("resolver.injected_found", packages=len(injected), pairs=len(visited))
    return injected


def source_folder_for(qualifier: str, lockfile_folder: str | Path) -> Path:
    """Absolute folder of the workspace package a ``file:`` qualifier points to."""
    return Path(os.path.abspath(os.path.join(lockfile_folder, _qualifier_path(qualifier))))


def resolve_injected_dependencies(
    lockfile: Lockfile,
    *,
    lockfile_folder: str | Path,
    store_path: str | Path,
    layout: StoreLayout,
    max_length: int = DEFAULT_VIRTUAL_STORE_DIR_MAX_LENGTH,
) -> SourceToTargets:
    """Map each injected source package folder to the store folders mirroring it."""
    store_path = os.path.abspath(store_path)
    source_to_targets: SourceToTargets = {}
    for name, qualifiers in find_injected_dependencies(lockfile, layout).items():
        for qualifier in qualifiers:
            source = source_folder_for(qualifier, lockfile_folder)
            target = layout.install_path(store_path, name, qualifier, max_length)
            source_to_targets.setdefault(source, set()).add(target)
    return source_to_targets
