"""pnpm-sync: mirror injected workspace packages into the pnpm store."""

__version__ = "0.3.0"

from pnpm_sync.copy.executor import SyncExecutor, execute_sync_plan
from pnpm_sync.copy.models import SyncItem, SyncResult
from pnpm_sync.copy.packlist import list_package_files
from pnpm_sync.events import LogMessage, LogMessageIdentifier, LogMessageKind
from pnpm_sync.lockfile import Lockfile, read_pnpm_lockfile
from pnpm_sync.plan import SyncPlan, SyncPlanStore
from pnpm_sync.prepare import PrepareResult, prepare
from pnpm_sync.resolver import resolve_injected_dependencies


def get_pnpm_sync_json_version() -> str:
    """The ``version`` this release writes into, and requires from, .pnpm-sync.json."""
    return __version__


__all__ = [
    "Lockfile",
    "LogMessage",
    "LogMessageIdentifier",
    "LogMessageKind",
    "PrepareResult",
    "SyncExecutor",
    "SyncItem",
    "SyncPlan",
    "SyncPlanStore",
    "SyncResult",
    "__version__",
    "execute_sync_plan",
    "get_pnpm_sync_json_version",
    "list_package_files",
    "prepare",
    "read_pnpm_lockfile",
    "resolve_injected_dependencies",
]
