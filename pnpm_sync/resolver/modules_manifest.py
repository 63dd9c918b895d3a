"""Read ``node_modules/.modules.yaml`` — which pnpm produced the store."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from pnpm_sync.core.config import DEFAULT_VIRTUAL_STORE_DIR_MAX_LENGTH

MODULES_MANIFEST_FILENAME = ".modules.yaml"


@dataclass(frozen=True)
class ModulesManifest:
    pnpm_version: str | None
    virtual_store_dir_max_length: int = DEFAULT_VIRTUAL_STORE_DIR_MAX_LENGTH


def read_modules_manifest(dot_pnpm_folder: str | Path) -> ModulesManifest:
    """Read the manifest that sits next to the ``.pnpm`` store folder.

    A missing manifest, or a ``packageManager`` that is not pnpm, yields
    ``pnpm_version=None``; the caller reports that as unsupported.
    """
    manifest_path = Path(dot_pnpm_folder).parent / MODULES_MANIFEST_FILENAME
    if not manifest_path.is_file():
        return ModulesManifest(pnpm_version=None)

    data = yaml.safe_load(manifest_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        return ModulesManifest(pnpm_version=None)

    # e.g. "pnpm@9.1.0"
    package_manager = str(data.get("packageManager") or "")
    name, _, version = package_manager.rpartition("@")
    pnpm_version = version if name == "pnpm" and version else None

    max_length = data.get("virtualStoreDirMaxLength")
    return ModulesManifest(
        pnpm_version=pnpm_version,
        virtual_store_dir_max_length=(
            int(max_length) if max_length else DEFAULT_VIRTUAL_STORE_DIR_MAX_LENGTH
        ),
    )
