"""Structured log events emitted by prepare and copy.

The library never writes to a logger directly. Each notable step produces a
:class:`LogMessage` that is handed to a caller-supplied callback; the payload
is one of the ``*Details`` dataclasses below, tagged by its
:class:`LogMessageIdentifier`. :func:`structlog_callback` is the default sink.

Error-level events do not raise. Callers inspect :attr:`LogMessage.kind` to
decide the process exit status.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Union

import structlog

log = structlog.get_logger("pnpm_sync")


class LogMessageKind(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    VERBOSE = "verbose"


class LogMessageIdentifier(Enum):
    PREPARE_STARTING = "prepare-starting"
    PREPARE_ERROR_UNSUPPORTED_FORMAT = "prepare-error-unsupported-format"
    PREPARE_ERROR_UNSUPPORTED_PNPM_VERSION = "prepare-error-unsupported-pnpm-version"
    PREPARE_REPLACING_FILE = "prepare-replacing-file"
    PREPARE_WRITING_FILE = "prepare-writing-file"
    PREPARE_FINISHING = "prepare-finishing"

    COPY_STARTING = "copy-starting"
    COPY_ERROR_NO_SYNC_FILE = "copy-error-no-sync-file"
    COPY_ERROR_INCOMPATIBLE_SYNC_FILE = "copy-error-incompatible-sync-file"
    COPY_FINISHING = "copy-finishing"


# ── payloads ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PrepareStartingDetails:
    identifier: ClassVar[LogMessageIdentifier] = LogMessageIdentifier.PREPARE_STARTING

    lockfile_path: str
    dot_pnpm_folder: str


@dataclass(frozen=True)
class PrepareErrorUnsupportedFormatDetails:
    identifier: ClassVar[LogMessageIdentifier] = (
        LogMessageIdentifier.PREPARE_ERROR_UNSUPPORTED_FORMAT
    )

    lockfile_path: str
    lockfile_version: str | None


@dataclass(frozen=True)
class PrepareErrorUnsupportedPnpmVersionDetails:
    identifier: ClassVar[LogMessageIdentifier] = (
        LogMessageIdentifier.PREPARE_ERROR_UNSUPPORTED_PNPM_VERSION
    )

    lockfile_path: str
    pnpm_version: str | None


@dataclass(frozen=True)
class PrepareReplacingFileDetails:
    identifier: ClassVar[LogMessageIdentifier] = LogMessageIdentifier.PREPARE_REPLACING_FILE

    pnpm_sync_json_path: str
    project_folder: str
    actual_version: str | None
    expected_version: str


@dataclass(frozen=True)
class PrepareWritingFileDetails:
    identifier: ClassVar[LogMessageIdentifier] = LogMessageIdentifier.PREPARE_WRITING_FILE

    pnpm_sync_json_path: str
    project_folder: str


@dataclass(frozen=True)
class PrepareFinishingDetails:
    identifier: ClassVar[LogMessageIdentifier] = LogMessageIdentifier.PREPARE_FINISHING

    lockfile_path: str
    dot_pnpm_folder: str
    execution_time_in_ms: float


@dataclass(frozen=True)
class CopyStartingDetails:
    identifier: ClassVar[LogMessageIdentifier] = LogMessageIdentifier.COPY_STARTING

    pnpm_sync_json_path: str


@dataclass(frozen=True)
class CopyErrorNoSyncFileDetails:
    identifier: ClassVar[LogMessageIdentifier] = LogMessageIdentifier.COPY_ERROR_NO_SYNC_FILE

    pnpm_sync_json_path: str


@dataclass(frozen=True)
class CopyErrorIncompatibleSyncFileDetails:
    identifier: ClassVar[LogMessageIdentifier] = (
        LogMessageIdentifier.COPY_ERROR_INCOMPATIBLE_SYNC_FILE
    )

    pnpm_sync_json_path: str
    actual_version: str | None
    expected_version: str


@dataclass(frozen=True)
class CopyFinishingDetails:
    identifier: ClassVar[LogMessageIdentifier] = LogMessageIdentifier.COPY_FINISHING

    pnpm_sync_json_path: str
    source_path: str
    file_count: int
    execution_time_in_ms: float


LogMessageDetails = Union[
    PrepareStartingDetails,
    PrepareErrorUnsupportedFormatDetails,
    PrepareErrorUnsupportedPnpmVersionDetails,
    PrepareReplacingFileDetails,
    PrepareWritingFileDetails,
    PrepareFinishingDetails,
    CopyStartingDetails,
    CopyErrorNoSyncFileDetails,
    CopyErrorIncompatibleSyncFileDetails,
    CopyFinishingDetails,
]


@dataclass(frozen=True)
class LogMessage:
    """One structured event: human-readable text, severity and a tagged payload."""

    message: str
    kind: LogMessageKind
    details: LogMessageDetails

    @property
    def identifier(self) -> LogMessageIdentifier:
        return self.details.identifier

    def fields(self) -> dict[str, Any]:
        """Payload as a flat dict, suitable for structured logging."""
        return dataclasses.asdict(self.details)


LogCallback = Callable[[LogMessage], None]


# ── sinks ────────────────────────────────────────────────────────────────

_LEVEL_BY_KIND: dict[LogMessageKind, str] = {
    LogMessageKind.INFO: "info",
    LogMessageKind.WARNING: "warning",
    LogMessageKind.ERROR: "error",
    LogMessageKind.VERBOSE: "debug",
}


def event_name(identifier: LogMessageIdentifier) -> str:
    """``prepare-writing-file`` -> ``prepare.writing_file``."""
    area, _, rest = identifier.value.partition("-")
    return f"{area}.{rest.replace('-', '_')}"


def structlog_callback(message: LogMessage) -> None:
    """Forward a :class:`LogMessage` to structlog at the matching level."""
    level = _LEVEL_BY_KIND[message.kind]
    getattr(log, level)(
        event_name(message.identifier),
        message=message.message,
        **message.fields(),
    )