"""Lockfile resolution — which store folders mirror which workspace package."""

from pnpm_sync.resolver.injected import (
    InjectedDependencySet,
    SourceToTargets,
    find_injected_dependencies,
    is_injected_version,
    resolve_injected_dependencies,
    source_folder_for,
)
from pnpm_sync.resolver.layouts import LAYOUTS, StoreLayout, select_layout
from pnpm_sync.resolver.modules_manifest import ModulesManifest, read_modules_manifest

__all__ = [
    "InjectedDependencySet",
    "LAYOUTS",
    "ModulesManifest",
    "SourceToTargets",
    "StoreLayout",
    "find_injected_dependencies",
    "is_injected_version",
    "read_modules_manifest",
    "resolve_injected_dependencies",
    "select_layout",
    "source_folder_for",
]
