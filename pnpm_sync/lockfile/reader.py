"""Parse pnpm-lock.yaml into a :class:`Lockfile`.

Two on-disk layouts are understood:

* v6 (pnpm 8): the ``packages`` table carries both metadata and edges, keyed
  by dependency path (``/react@17.0.2``, ``file:libs/a(react@17.0.2)``).
* v9 (pnpm 9/10): metadata lives in ``packages`` and edges in ``snapshots``,
  keyed by ``name@version``. Snapshots are folded into the package table so
  the resolver sees one table whatever the layout.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml

from pnpm_sync.exceptions import UnsupportedLockfileError
from pnpm_sync.lockfile.model import DependencyMeta, Importer, Lockfile, PackageEntry

log = structlog.get_logger("pnpm_sync.lockfile")

SUPPORTED_LOCKFILE_MAJORS = frozenset({"6", "9"})


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _str_map(value: Any) -> dict[str, str]:
    return {str(k): str(v) for k, v in _as_dict(value).items()}


def _parse_importer(raw: dict) -> Importer:
    meta = {
        str(name): DependencyMeta(injected=_as_dict(entry).get("injected"))
        for name, entry in _as_dict(raw.get("dependenciesMeta")).items()
    }
    return Importer(
        dependencies=dict(_as_dict(raw.get("dependencies"))),
        dev_dependencies=dict(_as_dict(raw.get("devDependencies"))),
        optional_dependencies=dict(_as_dict(raw.get("optionalDependencies"))),
        dependencies_meta=meta,
    )


def _parse_package(raw: Any) -> PackageEntry:
    raw = _as_dict(raw)
    return PackageEntry(
        dependencies=_str_map(raw.get("dependencies")),
        optional_dependencies=_str_map(raw.get("optionalDependencies")),
    )


def parse_lockfile(data: dict[str, Any]) -> Lockfile:
    """Build a :class:`Lockfile` from already-loaded YAML data."""
    lockfile_version = str(data.get("lockfileVersion", ""))

    raw_importers = _as_dict(data.get("importers"))
    if not raw_importers:
        # Single-project lockfiles keep the root importer's maps at top level.
        raw_importers = {".": data}
    importers = {str(key): _parse_importer(_as_dict(raw)) for key, raw in raw_importers.items()}

    packages: dict[str, PackageEntry] = {
        str(key): _parse_package(raw) for key, raw in _as_dict(data.get("packages")).items()
    }
    for key, raw in _as_dict(data.get("snapshots")).items():
        packages[str(key)] = _parse_package(raw)

    return Lockfile(lockfile_version=lockfile_version, importers=importers, packages=packages)


def read_pnpm_lockfile(
    lockfile_path: str | Path,
    *,
    ignore_incompatible: bool = True,
) -> Lockfile | None:
    """Read and parse a pnpm-lock.yaml file.

    Returns ``None`` when the file does not exist. With
    ``ignore_incompatible=False`` an unrecognized ``lockfileVersion`` raises
    :class:`UnsupportedLockfileError`; otherwise the lockfile is returned as-is
    and the caller decides.
    """
    path = Path(lockfile_path)
    if not path.is_file():
        return None

    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    lockfile = parse_lockfile(_as_dict(data))

    if lockfile.major_version not in SUPPORTED_LOCKFILE_MAJORS and not ignore_incompatible:
        raise UnsupportedLockfileError(lockfile.lockfile_version)

    log.debug(
        "lockfile.loaded",
        path=str(path),
        lockfile_version=lockfile.lockfile_version,
        importers=len(lockfile.importers),
        packages=len(lockfile.packages),
    )
    return lockfile
