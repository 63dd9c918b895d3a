"""Runtime defaults — overridable via environment variables."""

from __future__ import annotations

import os


def _env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


SYNC_PLAN_FILENAME = ".pnpm-sync.json"
DEFAULT_SYNC_PLAN_PATH = f"node_modules/{SYNC_PLAN_FILENAME}"

# Written into every plan; resolved relative to the plan's own folder.
SOURCE_FOLDER = ".."

DEFAULT_CONCURRENCY = _env_int("PNPM_SYNC_CONCURRENCY", 10)

# pnpm's virtualStoreDirMaxLength default (non-Windows).
DEFAULT_VIRTUAL_STORE_DIR_MAX_LENGTH = _env_int("PNPM_SYNC_VIRTUAL_STORE_DIR_MAX_LENGTH", 120)

# Top-level entries of a target folder that pnpm owns (e.g. node_modules/.bin shims).
RESERVED_TARGET_NAMES: frozenset[str] = frozenset({"node_modules"})

TARBALL_SUFFIXES = (".tar", ".tar.gz", ".tgz")
FILE_PROTOCOL = "file:"
