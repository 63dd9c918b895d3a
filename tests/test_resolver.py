"""Tests for injected-dependency resolution over the lockfile graph."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from conftest import V6_LOCKFILE, V9_LOCKFILE
from pnpm_sync.exceptions import CorruptLockfileError
from pnpm_sync.lockfile.model import Importer, Lockfile, PackageEntry
from pnpm_sync.lockfile.reader import parse_lockfile
from pnpm_sync.resolver.injected import (
    find_injected_dependencies,
    is_injected_version,
    resolve_injected_dependencies,
    source_folder_for,
)
from pnpm_sync.resolver.layouts import LAYOUTS


def _lockfile(importer_deps: dict[str, str], packages: dict[str, dict[str, str]]) -> Lockfile:
    return Lockfile(
        lockfile_version="6.0",
        importers={"apps/app": Importer(dependencies=dict(importer_deps))},
        packages={key: PackageEntry(dependencies=deps) for key, deps in packages.items()},
    )


class TestIsInjectedVersion:
    @pytest.mark.parametrize(
        "version",
        ["file:libraries/lib1", "file:../libs/a(react@17.0.2)", "file:packages/tool"],
    )
    def test_folder_references(self, version):
        assert is_injected_version(version)

    @pytest.mark.parametrize(
        "version",
        [
            "17.0.2",
            "link:../lib2",
            "file:vendor/pkg.tgz",
            "file:vendor/pkg.tar.gz",
            "file:vendor/pkg.tar",
        ],
    )
    def test_not_injected(self, version):
        assert not is_injected_version(version)


class TestFindInjectedDependencies:
    def test_v6_transitive_closure(self):
        lockfile = parse_lockfile(yaml.safe_load(V6_LOCKFILE))
        injected = find_injected_dependencies(lockfile, LAYOUTS["8"])
        assert injected == {
            "lib1": {"file:libraries/lib1(react@17.0.2)"},
            "lib2": {"file:libraries/lib2"},
        }

    def test_v9_transitive_closure(self):
        lockfile = parse_lockfile(yaml.safe_load(V9_LOCKFILE))
        injected = find_injected_dependencies(lockfile, LAYOUTS["9"])
        assert injected == {
            "lib1": {"file:libraries/lib1(react@17.0.2)"},
            "lib2": {"file:libraries/lib2"},
        }

    def test_cycle_terminates(self):
        lockfile = _lockfile(
            {"a": "file:libs/a"},
            {
                "file:libs/a": {"b": "file:libs/b"},
                "file:libs/b": {"a": "file:libs/a"},
            },
        )
        injected = find_injected_dependencies(lockfile, LAYOUTS["8"])
        assert injected == {"a": {"file:libs/a"}, "b": {"file:libs/b"}}

    def test_same_package_under_two_qualifiers(self):
        lockfile = Lockfile(
            lockfile_version="6.0",
            importers={
                "apps/one": Importer(dependencies={"ui": "file:libs/ui(react@17.0.2)"}),
                "apps/two": Importer(dev_dependencies={"ui": "file:libs/ui(react@18.2.0)"}),
            },
            packages={
                "file:libs/ui(react@17.0.2)": PackageEntry(),
                "file:libs/ui(react@18.2.0)": PackageEntry(),
            },
        )
        injected = find_injected_dependencies(lockfile, LAYOUTS["8"])
        assert injected == {"ui": {"file:libs/ui(react@17.0.2)", "file:libs/ui(react@18.2.0)"}}

    def test_tarball_edges_skipped(self):
        lockfile = _lockfile(
            {"a": "file:libs/a", "t": "file:vendor/t.tgz"},
            {"file:libs/a": {"u": "file:vendor/u.tar.gz"}},
        )
        assert find_injected_dependencies(lockfile, LAYOUTS["8"]) == {"a": {"file:libs/a"}}

    def test_registry_packages_not_followed(self):
        lockfile = _lockfile({"react": "17.0.2"}, {})
        assert find_injected_dependencies(lockfile, LAYOUTS["8"]) == {}

    def test_optional_dependencies_followed(self):
        lockfile = Lockfile(
            lockfile_version="6.0",
            importers={"apps/app": Importer(dependencies={"a": "file:libs/a"})},
            packages={
                "file:libs/a": PackageEntry(optional_dependencies={"b": "file:libs/b"}),
                "file:libs/b": PackageEntry(),
            },
        )
        assert set(find_injected_dependencies(lockfile, LAYOUTS["8"])) == {"a", "b"}

    def test_missing_package_key_raises(self):
        lockfile = _lockfile({"a": "file:libs/a"}, {})
        with pytest.raises(CorruptLockfileError) as exc_info:
            find_injected_dependencies(lockfile, LAYOUTS["8"])
        assert exc_info.value.package_key == "file:libs/a"

    def test_missing_v9_key_uses_name_prefix(self):
        lockfile = _lockfile({"a": "file:libs/a"}, {})
        with pytest.raises(CorruptLockfileError) as exc_info:
            find_injected_dependencies(lockfile, LAYOUTS["9"])
        assert exc_info.value.package_key == "a@file:libs/a"


class TestResolveInjectedDependencies:
    def test_source_folder_strips_peer_suffix(self, tmp_path: Path):
        assert source_folder_for("file:libraries/lib1(react@17.0.2)", tmp_path) == (
            tmp_path / "libraries" / "lib1"
        )

    def test_source_folder_relative_to_lockfile(self, tmp_path: Path):
        lockfile_folder = tmp_path / "common" / "temp"
        assert source_folder_for("file:../../libs/a", lockfile_folder) == tmp_path / "libs" / "a"

    def test_v6_source_to_targets(self, tmp_path: Path):
        lockfile = parse_lockfile(yaml.safe_load(V6_LOCKFILE))
        store = tmp_path / "node_modules" / ".pnpm"
        result = resolve_injected_dependencies(
            lockfile, lockfile_folder=tmp_path, store_path=store, layout=LAYOUTS["8"]
        )
        assert result == {
            tmp_path / "libraries" / "lib1": {
                store / "file+libraries+lib1_react@17.0.2" / "node_modules" / "lib1"
            },
            tmp_path / "libraries" / "lib2": {
                store / "file+libraries+lib2" / "node_modules" / "lib2"
            },
        }

    def test_v9_source_to_targets(self, tmp_path: Path):
        lockfile = parse_lockfile(yaml.safe_load(V9_LOCKFILE))
        store = tmp_path / "node_modules" / ".pnpm"
        result = resolve_injected_dependencies(
            lockfile, lockfile_folder=tmp_path, store_path=store, layout=LAYOUTS["9"]
        )
        assert result[tmp_path / "libraries" / "lib1"] == {
            store / "lib1@file+libraries+lib1_react@17.0.2" / "node_modules" / "lib1"
        }
        assert result[tmp_path / "libraries" / "lib2"] == {
            store / "lib2@file+libraries+lib2" / "node_modules" / "lib2"
        }

    def test_no_injected_dependencies(self, tmp_path: Path):
        lockfile = _lockfile({"react": "17.0.2"}, {})
        result = resolve_injected_dependencies(
            lockfile, lockfile_folder=tmp_path, store_path=tmp_path, layout=LAYOUTS["8"]
        )
        assert result == {}
