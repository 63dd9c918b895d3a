"""Shared pytest fixtures for pnpm-sync tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pnpm_sync.events import LogMessage

# pnpm 8 layout: packages keyed by dependency path, edges inline.
V6_LOCKFILE = """\
lockfileVersion: '6.0'

settings:
  autoInstallPeers: true
  excludeLinksFromLockfile: false

importers:

  .: {}

  apps/app1:
    dependencies:
      lib1:
        specifier: workspace:*
        version: file:libraries/lib1(react@17.0.2)
      react:
        specifier: 17.0.2
        version: 17.0.2
    dependenciesMeta:
      lib1:
        injected: true

  libraries/lib1:
    dependencies:
      lib2:
        specifier: workspace:*
        version: link:../lib2

  libraries/lib2: {}

packages:

  /react@17.0.2:
    resolution: {integrity: sha512-fake}
    engines: {node: '>=0.10.0'}
    dev: false

  file:libraries/lib1(react@17.0.2):
    resolution: {directory: libraries/lib1, type: directory}
    id: file:libraries/lib1
    name: lib1
    peerDependencies:
      react: ^17.0.0
    dependencies:
      lib2: file:libraries/lib2
      react: 17.0.2
    dev: false

  file:libraries/lib2:
    resolution: {directory: libraries/lib2, type: directory}
    name: lib2
    dev: false
"""

# pnpm 9/10 layout: metadata in packages, edges in snapshots keyed by name@version.
V9_LOCKFILE = """\
lockfileVersion: '9.0'

settings:
  autoInstallPeers: true
  excludeLinksFromLockfile: false

importers:

  .: {}

  apps/app1:
    dependencies:
      lib1:
        specifier: workspace:*
        version: file:libraries/lib1(react@17.0.2)
      react:
        specifier: 17.0.2
        version: 17.0.2
    dependenciesMeta:
      lib1:
        injected: true

  libraries/lib1:
    dependencies:
      lib2:
        specifier: workspace:*
        version: link:../lib2

  libraries/lib2: {}

packages:

  lib1@file:libraries/lib1:
    resolution: {directory: libraries/lib1, type: directory}
    peerDependencies:
      react: ^17.0.0

  lib2@file:libraries/lib2:
    resolution: {directory: libraries/lib2, type: directory}

  react@17.0.2:
    resolution: {integrity: sha512-fake}
    engines: {node: '>=0.10.0'}

snapshots:

  lib1@file:libraries/lib1(react@17.0.2):
    dependencies:
      lib2: file:libraries/lib2
      react: 17.0.2

  lib2@file:libraries/lib2: {}

  react@17.0.2: {}
"""


def write_package(folder: Path, files: dict[str, str], manifest: dict | None = None) -> Path:
    """Create a package folder with a package.json and the given files."""
    folder.mkdir(parents=True, exist_ok=True)
    manifest = manifest if manifest is not None else {"name": folder.name, "version": "1.0.0"}
    (folder / "package.json").write_text(json.dumps(manifest))
    for relative, content in files.items():
        path = folder / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return folder


def write_modules_manifest(store: Path, pnpm_version: str | None) -> None:
    """Write node_modules/.modules.yaml next to the .pnpm store folder."""
    store.mkdir(parents=True, exist_ok=True)
    lines = ["layoutVersion: 5"]
    if pnpm_version is not None:
        lines.append(f"packageManager: pnpm@{pnpm_version}")
    (store.parent / ".modules.yaml").write_text("\n".join(lines) + "\n")


@pytest.fixture
def events() -> list[LogMessage]:
    """Log messages captured by a callback; pass ``events.append`` as the sink."""
    return []


@pytest.fixture
def make_workspace(tmp_path: Path):
    """Lay down pnpm-lock.yaml + node_modules/.pnpm; returns (lockfile_path, store_path)."""

    def _make(lockfile_text: str, pnpm_version: str | None = "8.15.4") -> tuple[Path, Path]:
        lockfile_path = tmp_path / "pnpm-lock.yaml"
        lockfile_path.write_text(lockfile_text)
        store = tmp_path / "node_modules" / ".pnpm"
        write_modules_manifest(store, pnpm_version)
        return lockfile_path, store

    return _make
