"""Package file lister — the files a package would ship, as ``npm pack`` sees them.

Selection rules:

* ``package.json`` ``files`` is an allow-list of files, folders and globs;
  a ``!pattern`` entry removes what earlier entries matched.
* Without ``files``, everything is shipped except what ``.npmignore`` (or,
  failing that, ``.gitignore``) excludes.
* ``package.json``, ``README*``, ``LICENSE*``/``LICENCE*`` and the ``main``
  entry are always shipped; VCS folders, ``node_modules`` and lockfiles never.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path

import structlog

log = structlog.get_logger("pnpm_sync.packlist")

_NEVER_DIRS = frozenset({"node_modules", ".git", ".svn", ".hg", "CVS"})
_NEVER_FILES = frozenset(
    {
        ".npmrc",
        ".DS_Store",
        "npm-debug.log",
        "package-lock.json",
        "pnpm-lock.yaml",
        "yarn.lock",
        ".npmignore",
        ".gitignore",
    }
)
_ALWAYS_ROOT_PREFIXES = ("readme", "license", "licence")


def _glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Minimal minimatch: ``**`` spans folders, ``*`` and ``?`` do not."""
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts) + r"\Z")


def _ancestors_and_self(rel: str) -> list[str]:
    """``a/b/c.js`` -> ``["a", "a/b", "a/b/c.js"]``."""
    segments = rel.split("/")
    return ["/".join(segments[: i + 1]) for i in range(len(segments))]


@dataclass(frozen=True)
class _IgnoreRule:
    regex: re.Pattern[str]
    negated: bool
    anchored: bool
    dir_only: bool

    def matches(self, rel: str) -> bool:
        candidates = _ancestors_and_self(rel)
        for index, candidate in enumerate(candidates):
            is_dir = index < len(candidates) - 1
            if self.dir_only and not is_dir:
                continue
            target = candidate if self.anchored else candidate.rsplit("/", 1)[-1]
            if self.regex.match(target):
                return True
        return False


def _parse_ignore_file(path: Path) -> list[_IgnoreRule]:
    rules: list[_IgnoreRule] = []
    for raw in path.read_text(encoding="utf-8", errors="replace").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        negated = line.startswith("!")
        if negated:
            line = line[1:]
        dir_only = line.endswith("/")
        line = line.strip("/") if dir_only else line
        anchored = "/" in line
        line = line.lstrip("/")
        if not line:
            continue
        rules.append(
            _IgnoreRule(
                regex=_glob_to_regex(line),
                negated=negated,
                anchored=anchored,
                dir_only=dir_only,
            )
        )
    return rules


def _is_ignored(rel: str, rules: list[_IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel):
            ignored = not rule.negated
    return ignored


def _walk_files(root: Path) -> list[str]:
    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _NEVER_DIRS)
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        for name in filenames:
            if name in _NEVER_FILES:
                continue
            found.append(name if rel_dir == "." else f"{rel_dir}/{name}")
    return found


def _matches_files_entry(rel: str, entry: str) -> bool:
    regex = _glob_to_regex(entry)
    return any(regex.match(candidate) for candidate in _ancestors_and_self(rel))


def _parse_files_entry(entry: str) -> tuple[bool, str]:
    """``"!dist/**/*.map"`` -> ``(True, "dist/**/*.map")``."""
    entry = entry.strip()
    negated = entry.startswith("!")
    return negated, _normalize_entry(entry[1:] if negated else entry)


def _is_listed(rel: str, entries: list[tuple[bool, str]]) -> bool:
    # Later entries win, so "!pattern" after a folder carves files out of it.
    listed = False
    for negated, entry in entries:
        if _matches_files_entry(rel, entry):
            listed = not negated
    return listed


def _normalize_entry(entry: str) -> str:
    entry = entry.strip()
    if entry.startswith("./"):
        entry = entry[2:]
    return entry.strip("/")


def _is_always_included(rel: str, main: str | None) -> bool:
    if rel == "package.json" or (main is not None and rel == main):
        return True
    return "/" not in rel and rel.lower().startswith(_ALWAYS_ROOT_PREFIXES)


def list_package_files(package_dir: str | Path) -> list[str]:
    """Sorted POSIX paths, relative to *package_dir*, of the files it ships."""
    root = Path(package_dir)
    manifest_path = root / "package.json"
    manifest: dict = {}
    if manifest_path.is_file():
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))

    main = manifest.get("main")
    main = _normalize_entry(main) if isinstance(main, str) else None

    all_files = _walk_files(root)
    files_field = manifest.get("files")

    if isinstance(files_field, list):
        entries = [_parse_files_entry(e) for e in files_field if isinstance(e, str)]
        entries = [(negated, e) for negated, e in entries if e]
        selected = [
            rel for rel in all_files if _is_always_included(rel, main) or _is_listed(rel, entries)
        ]
    else:
        ignore_file = root / ".npmignore"
        if not ignore_file.is_file():
            ignore_file = root / ".gitignore"
        rules = _parse_ignore_file(ignore_file) if ignore_file.is_file() else []
        selected = [
            rel for rel in all_files if _is_always_included(rel, main) or not _is_ignored(rel, rules)
        ]

    log.debug("packlist.listed", package_dir=str(root), files=len(selected))
    return sorted(selected)
