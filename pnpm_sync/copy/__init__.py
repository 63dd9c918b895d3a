"""Copy phase — mirror a package's shipped files into its store folders."""

from pnpm_sync.copy.executor import SyncExecutor, execute_sync_plan, inventory_target
from pnpm_sync.copy.models import SyncItem, SyncResult
from pnpm_sync.copy.packlist import list_package_files

__all__ = [
    "SyncExecutor",
    "SyncItem",
    "SyncResult",
    "execute_sync_plan",
    "inventory_target",
    "list_package_files",
]
