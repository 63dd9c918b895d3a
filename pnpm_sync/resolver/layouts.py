"""Store layouts — where pnpm installs a package inside ``node_modules/.pnpm``.

pnpm names each virtual-store folder by passing a dependency path through
``depPathToFilename``. That encoding changed between pnpm 8, 9 and 10, and
the lockfile key of a package changed with it (v6 keys by version qualifier,
v9 by ``name@qualifier``). A :class:`StoreLayout` bundles both choices; the
``LAYOUTS`` table maps a pnpm major version to its layout.

The encoders below must agree with pnpm's byte for byte; a single differing
character yields a folder that does not exist.
"""

from __future__ import annotations

import base64
import hashlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from pnpm_sync.exceptions import UnsupportedLockfileError, UnsupportedPnpmVersionError

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|]')
_UNSAFE_CHARS_V10 = re.compile(r'[\\/:*?"<>|#]')
_PEER_OPEN_V8 = re.compile(r"\)\(|\(")
_PEER_ANY_V9 = re.compile(r"\)\(|\(|\)")


def _md5_base32(text: str) -> str:
    digest = hashlib.md5(text.encode("utf-8")).digest()
    return base64.b32encode(digest).decode("ascii").rstrip("=").lower()


def _sha256_short(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:32]


def _needs_hash(filename: str, max_length: int) -> bool:
    if len(filename) > max_length:
        return True
    return filename != filename.lower() and not filename.startswith("file+")


def _strip_trailing_paren(filename: str) -> str:
    return filename[:-1] if filename.endswith(")") else filename


def _unescape(dep_path: str) -> str:
    """``/@scope/pkg@1.0.0`` -> ``@scope/pkg@1.0.0``; ``file:`` gets its colon escaped."""
    if dep_path.startswith("file:"):
        return dep_path.replace(":", "+", 1)
    if dep_path.startswith("/"):
        dep_path = dep_path[1:]
    index = dep_path.find("@", 1)
    if index == -1:
        return dep_path
    return f"{dep_path[:index]}@{dep_path[index + 1:]}"


# ── pnpm 8 (@pnpm/dependency-path 2.x) ──────────────────────────────────

_V8_MAX_LENGTH = 120


def dep_path_to_filename_v8(dep_path: str) -> str:
    """pnpm 8 has no virtualStoreDirMaxLength; the threshold is fixed at 120."""
    filename = _UNSAFE_CHARS.sub("+", _unescape(dep_path))
    if "(" in filename:
        filename = _strip_trailing_paren(_PEER_OPEN_V8.sub("_", filename))
    if _needs_hash(filename, _V8_MAX_LENGTH):
        return f"{filename[:50]}_{_md5_base32(filename)}"
    return filename


def _encode_v8(dep_path: str, max_length: int) -> str:
    return dep_path_to_filename_v8(dep_path)


# ── pnpm 9 (@pnpm/dependency-path 5.x) and pnpm 10 ──────────────────────


def dep_path_to_filename_v9(dep_path: str, max_length: int = 120) -> str:
    filename = _UNSAFE_CHARS.sub("+", _unescape(dep_path))
    if "(" in filename:
        filename = _PEER_ANY_V9.sub("_", _strip_trailing_paren(filename))
    if _needs_hash(filename, max_length):
        return f"{filename[:max_length - 27]}_{_md5_base32(filename)}"
    return filename


def dep_path_to_filename_v10(dep_path: str, max_length: int = 120) -> str:
    filename = _UNSAFE_CHARS_V10.sub("+", _unescape(dep_path))
    if "(" in filename:
        filename = _PEER_ANY_V9.sub("_", _strip_trailing_paren(filename))
    if _needs_hash(filename, max_length):
        return f"{filename[:max_length - 33]}_{_sha256_short(filename)}"
    return filename


# ── package keys ─────────────────────────────────────────────────────────


def _key_by_qualifier(name: str, qualifier: str) -> str:
    return qualifier


def _key_by_name_and_qualifier(name: str, qualifier: str) -> str:
    return f"{name}@{qualifier}"


@dataclass(frozen=True)
class StoreLayout:
    """How one pnpm generation keys packages and names store folders."""

    pnpm_major: str
    lockfile_major: str
    package_key: Callable[[str, str], str]  # (name, qualifier) -> packages-table key / dep path
    encode: Callable[[str, int], str]  # (dep path, max length) -> folder name

    def folder_name(self, name: str, qualifier: str, max_length: int) -> str:
        return self.encode(self.package_key(name, qualifier), max_length)

    def install_path(
        self, store_path: str | Path, name: str, qualifier: str, max_length: int
    ) -> Path:
        """Absolute ``<store>/<encoded>/node_modules/<name>`` folder."""
        return Path(store_path) / self.folder_name(name, qualifier, max_length) / "node_modules" / name


LAYOUTS: dict[str, StoreLayout] = {
    "8": StoreLayout(
        pnpm_major="8",
        lockfile_major="6",
        package_key=_key_by_qualifier,
        encode=_encode_v8,
    ),
    "9": StoreLayout(
        pnpm_major="9",
        lockfile_major="9",
        package_key=_key_by_name_and_qualifier,
        encode=dep_path_to_filename_v9,
    ),
    "10": StoreLayout(
        pnpm_major="10",
        lockfile_major="9",
        package_key=_key_by_name_and_qualifier,
        encode=dep_path_to_filename_v10,
    ),
}


def select_layout(pnpm_version: str | None, lockfile_version: str | None) -> StoreLayout:
    """Pick the layout for an installed pnpm and a lockfile schema.

    Raises :class:`UnsupportedPnpmVersionError` for an unknown pnpm major and
    :class:`UnsupportedLockfileError` when the lockfile schema does not belong
    to that pnpm generation.
    """
    major = (pnpm_version or "").split(".", 1)[0]
    layout = LAYOUTS.get(major)
    if layout is None:
        raise UnsupportedPnpmVersionError(pnpm_version)
    if (lockfile_version or "").split(".", 1)[0] != layout.lockfile_major:
        raise UnsupportedLockfileError(lockfile_version)
    return layout
