"""pnpm-lock.yaml model and reader."""

from pnpm_sync.lockfile.model import (
    DependencyMeta,
    Importer,
    Lockfile,
    PackageEntry,
    VersionSpecifier,
    resolve_version_specifier,
)
from pnpm_sync.lockfile.reader import read_pnpm_lockfile

__all__ = [
    "DependencyMeta",
    "Importer",
    "Lockfile",
    "PackageEntry",
    "VersionSpecifier",
    "read_pnpm_lockfile",
    "resolve_version_specifier",
]
