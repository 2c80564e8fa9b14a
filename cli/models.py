"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal, Optional


@dataclass(frozen=True)
class UploadCommand:
    """Upload one or more files."""

    paths: tuple[str, ...]
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class ListCommand:
    """List live files with their countdown."""

    command: Literal["list"] = "list"


@dataclass(frozen=True)
class DownloadCommand:
    """Download file by share ID."""

    file_id: str
    output_path: Optional[str] = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class DeleteCommand:
    """Delete a file this session uploaded."""

    file_id: str
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class ShareCommand:
    """Show the share link of a file."""

    file_id: str
    command: Literal["share"] = "share"


@dataclass(frozen=True)
class StatsCommand:
    """Show upload statistics."""

    command: Literal["stats"] = "stats"


@dataclass(frozen=True)
class TtlCommand:
    """Show or set the auto-delete time in minutes."""

    minutes: Optional[int] = None
    command: Literal["ttl"] = "ttl"


@dataclass(frozen=True)
class SecurityCommand:
    """Show or toggle security mode."""

    enabled: Optional[bool] = None
    command: Literal["security"] = "security"


@dataclass(frozen=True)
class CleanupCommand:
    """Run one expiry sweep now."""

    command: Literal["cleanup"] = "cleanup"


CommandRequest = (
    UploadCommand
    | ListCommand
    | DownloadCommand
    | DeleteCommand
    | ShareCommand
    | StatsCommand
    | TtlCommand
    | SecurityCommand
    | CleanupCommand
)
