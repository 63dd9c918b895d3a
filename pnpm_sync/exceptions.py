"""Custom exceptions for pnpm-sync."""

from __future__ import annotations


class PnpmSyncError(Exception):
    """Base exception for all pnpm-sync errors."""


class InputNotFoundError(PnpmSyncError):
    """Raised when a required input path (lockfile, store folder) does not exist."""

    def __init__(self, kind: str, path: str):
        self.kind = kind
        self.path = path
        super().__init__(f"The input {kind} path does not exist: {path}")


class UnsupportedLockfileError(PnpmSyncError):
    """Raised when the lockfile schema version is not recognized."""

    def __init__(self, lockfile_version: str | None):
        self.lockfile_version = lockfile_version
        super().__init__(f"Unsupported pnpm-lock.yaml format (lockfileVersion={lockfile_version})")


class CorruptLockfileError(PnpmSyncError):
    """Raised when the dependency graph references a package key that is not in the package table."""

    def __init__(self, package_key: str):
        self.package_key = package_key
        super().__init__(f"Cannot find package {package_key!r} in the lockfile packages table")


class SyncPlanFormatError(PnpmSyncError):
    """Raised when a .pnpm-sync.json document cannot be parsed."""


class IncompatibleSyncPlanError(PnpmSyncError):
    """Raised when a .pnpm-sync.json document was written by a different pnpm-sync version."""

    def __init__(self, path: str, actual_version: str | None, expected_version: str):
        self.path = path
        self.actual_version = actual_version
        self.expected_version = expected_version
        super().__init__(
            f"The .pnpm-sync.json file in {path} has an incompatible version "
            f"({actual_version!r}, expected {expected_version!r}); "
            "it is outdated; regenerate it and try again"
        )


class UnsupportedPnpmVersionError(PnpmSyncError):
    """Raised when the installed pnpm version has no known store layout."""

    def __init__(self, pnpm_version: str | None):
        self.pnpm_version = pnpm_version
        super().__init__(f"Unsupported pnpm version: {pnpm_version}")
