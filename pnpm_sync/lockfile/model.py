"""Lockfile typed model — the read-only view the resolver walks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

# A bare version string, or the structured ``{specifier, version}`` form
# used by lockfile v6+ importers.
VersionSpecifier = Union[str, Mapping[str, Any]]


def resolve_version_specifier(specifier: VersionSpecifier) -> str:
    """Reduce a :data:`VersionSpecifier` to its resolved version string."""
    if isinstance(specifier, str):
        return specifier
    version = specifier.get("version")
    if not isinstance(version, str):
        raise ValueError(f"version specifier has no resolved version: {dict(specifier)!r}")
    return version


@dataclass(frozen=True)
class DependencyMeta:
    injected: bool | None = None


@dataclass(frozen=True)
class Importer:
    """One workspace project entry under ``importers``."""

    dependencies: dict[str, VersionSpecifier] = field(default_factory=dict)
    dev_dependencies: dict[str, VersionSpecifier] = field(default_factory=dict)
    optional_dependencies: dict[str, VersionSpecifier] = field(default_factory=dict)
    dependencies_meta: dict[str, DependencyMeta] = field(default_factory=dict)

    def all_dependencies(self) -> list[tuple[str, str]]:
        """``(name, resolved version)`` pairs across the three dependency maps."""
        pairs: list[tuple[str, str]] = []
        for table in (self.dependencies, self.dev_dependencies, self.optional_dependencies):
            for name, spec in table.items():
                pairs.append((name, resolve_version_specifier(spec)))
        return pairs


@dataclass(frozen=True)
class PackageEntry:
    """One entry of the package table; only its edges matter here."""

    dependencies: dict[str, str] = field(default_factory=dict)
    optional_dependencies: dict[str, str] = field(default_factory=dict)

    def all_dependencies(self) -> list[tuple[str, str]]:
        return list(self.dependencies.items()) + list(self.optional_dependencies.items())


@dataclass(frozen=True)
class Lockfile:
    lockfile_version: str
    importers: dict[str, Importer] = field(default_factory=dict)
    packages: dict[str, PackageEntry] = field(default_factory=dict)

    @property
    def major_version(self) -> str:
        """``"6.0"`` -> ``"6"``; ``"9.0"`` -> ``"9"``."""
        return self.lockfile_version.split(".", 1)[0]
