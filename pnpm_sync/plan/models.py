"""``.pnpm-sync.json`` document schema."""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field


class TargetFolder(BaseModel):
    """One store folder that mirrors the source package."""

    model_config = ConfigDict(populate_by_name=True)

    folder_path: str = Field(alias="folderPath")  # relative to the plan's folder, POSIX
    lockfile_id: str | None = Field(default=None, alias="lockfileId")


class PostbuildInjectedCopy(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_folder: str = Field(alias="sourceFolder")
    target_folders: list[TargetFolder] = Field(default_factory=list, alias="targetFolders")


class SyncPlan(BaseModel):
    """The whole document; ``version`` must equal the writing tool's version."""

    model_config = ConfigDict(populate_by_name=True)

    version: str
    postbuild_injected_copy: PostbuildInjectedCopy = Field(alias="postbuildInjectedCopy")

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True), indent=2)
