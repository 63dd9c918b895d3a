"""Sync plan documents (``.pnpm-sync.json``)."""

from pnpm_sync.plan.models import PostbuildInjectedCopy, SyncPlan, TargetFolder
from pnpm_sync.plan.store import SyncPlanStore, plan_path_for, read_plan_document

__all__ = [
    "PostbuildInjectedCopy",
    "SyncPlan",
    "SyncPlanStore",
    "TargetFolder",
    "plan_path_for",
    "read_plan_document",
]
