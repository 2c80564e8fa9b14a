"""Command handler functions for CLI operations."""

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from common.exceptions import FileLinkException, NotFoundError, RateLimitedError, UpstreamFailureError
from common.logging_config import get_logger
from lifecycle.cleanup import CleanupScheduler
from lifecycle.local_storage import JsonFileStorage
from lifecycle.metadata_store import MetadataStore
from lifecycle.rate_limiter import RateLimiter
from lifecycle.session import SessionManager
from lifecycle.settings import UserSettings
from lifecycle.statistics import get_upload_statistics
from cli.config import Config
from cli.models import (
    CleanupCommand,
    DeleteCommand,
    DownloadCommand,
    ListCommand,
    SecurityCommand,
    ShareCommand,
    StatsCommand,
    TtlCommand,
    UploadCommand,
)
from cli.server_client import ShareServerClient
from cli.uploader import BulkUploadProgress, Uploader
from cli.utils import format_file_size, format_record_line

logger = get_logger(__name__)


@dataclass
class ClientContext:
    """Components a CLI session works with."""
    config: Config
    store: MetadataStore
    rate_limiter: RateLimiter
    session: SessionManager
    settings: UserSettings
    client: ShareServerClient
    uploader: Uploader
    scheduler: CleanupScheduler


def build_context(config: Config, client: Optional[ShareServerClient] = None) -> ClientContext:
    """
    Wire the lifecycle components over the config's local storage file.

    Args:
        config: Configuration instance
        client: Optional ShareServerClient for dependency injection (testing)

    Returns:
        ClientContext ready for the REPL
    """
    storage = JsonFileStorage(config.get_local_storage_path())
    settings = UserSettings(storage)
    store = MetadataStore(storage, default_ttl=timedelta(minutes=settings.get_auto_delete_minutes()))
    rate_limiter = RateLimiter(storage)
    session = SessionManager(storage)
    client = client or ShareServerClient(config)
    uploader = Uploader(store, rate_limiter, session, settings, client)

    return ClientContext(
        config=config,
        store=store,
        rate_limiter=rate_limiter,
        session=session,
        settings=settings,
        client=client,
        uploader=uploader,
        scheduler=CleanupScheduler(store, rate_limiter=rate_limiter),
    )


def _rate_limit_message(exc: RateLimitedError) -> str:
    if exc.retry_after is None:
        return f"Error: {exc}"
    seconds = max(1, int(exc.retry_after.total_seconds() + 0.999))
    return f"Error: {exc}. Try again in {seconds}s."


def handle_upload(cmd: UploadCommand, ctx: ClientContext) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with the paths to send
        ctx: Session components

    Returns:
        Summary of the batch with share links for uploaded files
    """
    logger.info(f"Executing upload command: {len(cmd.paths)} files")

    def report(progress: BulkUploadProgress) -> None:
        done = progress.completed + progress.failed
        print(f"  [{done}/{progress.total}] {progress.current_file}")

    try:
        progress = ctx.uploader.upload_files([Path(p) for p in cmd.paths], on_progress=report)
    except RateLimitedError as e:
        return _rate_limit_message(e)

    lines = [f"Uploaded {progress.completed} of {progress.total} file(s)"]
    for record in progress.uploaded:
        lines.append(f"  {record.id}  {record.original_name}  {ctx.client.share_url(record.id)}")
    for error in progress.errors:
        lines.append(f"  Failed: {error}")
    return "\n".join(lines)


def handle_list(cmd: ListCommand, ctx: ClientContext) -> str:
    """
    Handle 'list' command.

    Returns:
        One line per live file, newest first
    """
    records = ctx.store.get_stored_files()
    if not records:
        return "No files"

    now = ctx.store.clock()
    lines = [f"{len(records)} file(s):"]
    lines.extend(format_record_line(record, now) for record in records)
    return "\n".join(lines)


def handle_download(cmd: DownloadCommand, ctx: ClientContext) -> str:
    """
    Handle 'download' command.

    The output path may name a directory or a file; without one the file
    lands in the configured downloads directory under its original name.
    """
    logger.info(f"Executing download command: file_id={cmd.file_id} output_path={cmd.output_path}")
    record = ctx.store.get_file_by_id(cmd.file_id)
    if record is None:
        return f"Error: File {cmd.file_id} not found or expired"

    if cmd.output_path is None:
        output_dir, output_name = ctx.config.get_downloads_dir(), None
    else:
        target = Path(cmd.output_path)
        if cmd.output_path.endswith(("/", "\\")) or target.is_dir():
            output_dir, output_name = target, None
        else:
            output_dir, output_name = target.parent, target.name

    try:
        written = ctx.client.download(record, output_dir, output_name)
    except (NotFoundError, UpstreamFailureError) as e:
        return f"Error: {e}"
    except OSError as e:
        return f"Error: Could not write file: {e}"

    ctx.store.update_download_count(record.id)
    return f"Downloaded {record.original_name} to {written}"


def handle_delete(cmd: DeleteCommand, ctx: ClientContext) -> str:
    """
    Handle 'delete' command.

    Only files uploaded by this session can be deleted. The server copy is
    removed as well; a refusal there leaves the local deletion in place.
    """
    record = ctx.store.get_file_by_id(cmd.file_id)
    if record is None:
        return f"Error: File {cmd.file_id} not found or expired"

    session_id = ctx.session.get_user_session_id()
    if not ctx.store.delete_file_metadata(cmd.file_id, session_id):
        return f"Error: File {cmd.file_id} was uploaded by another session"

    try:
        remote_deleted = ctx.client.delete_remote(cmd.file_id, session_id)
    except UpstreamFailureError as e:
        logger.warning(f"Remote delete failed [file_id={cmd.file_id}]: {e}")
        remote_deleted = False

    if not remote_deleted:
        return f"Deleted {record.original_name} locally (server copy will expire on its own)"
    return f"Deleted {record.original_name}"


def handle_share(cmd: ShareCommand, ctx: ClientContext) -> str:
    record = ctx.store.get_file_by_id(cmd.file_id)
    if record is None:
        return f"Error: File {cmd.file_id} not found or expired"
    return f"{record.original_name}: {ctx.client.share_url(record.id)}"


def handle_stats(cmd: StatsCommand, ctx: ClientContext) -> str:
    stats = get_upload_statistics(ctx.store)
    return "\n".join([
        f"Total uploads:     {stats.total_uploads}",
        f"Total size:        {format_file_size(stats.total_size)}",
        f"Uploads today:     {stats.uploads_today}",
        f"Most common type:  {stats.most_uploaded_type}",
        f"Average size:      {format_file_size(stats.average_file_size)}",
    ])


async def handle_ttl(cmd: TtlCommand, ctx: ClientContext) -> str:
    """
    Handle 'ttl' command.

    Setting a new value restarts a running cleanup schedule with it. Files
    already uploaded keep the expiry they were given.
    """
    if cmd.minutes is None:
        return f"Auto-delete time: {ctx.settings.get_auto_delete_minutes()} minutes"

    try:
        ctx.settings.set_auto_delete_minutes(cmd.minutes)
    except ValueError as e:
        return f"Error: {e}"

    ctx.store.default_ttl = timedelta(minutes=cmd.minutes)
    if ctx.scheduler.running:
        await ctx.scheduler.start_auto_cleanup(ctx.config.get_cleanup_interval_minutes(), cmd.minutes)

    return f"Auto-delete time set to {cmd.minutes} minutes"


def handle_security(cmd: SecurityCommand, ctx: ClientContext) -> str:
    if cmd.enabled is not None:
        ctx.settings.update_security_settings(encryption_enabled=cmd.enabled)

    enabled = ctx.settings.get_security_settings().encryption_enabled
    return f"Security mode: {'on' if enabled else 'off'}"


def handle_cleanup(cmd: CleanupCommand, ctx: ClientContext) -> str:
    try:
        removed = ctx.scheduler.run_sweep(ctx.settings.get_auto_delete_minutes())
    except FileLinkException as e:
        return f"Error: {e}"

    if not removed:
        return "No expired files"
    return f"Removed {len(removed)} expired file(s): {', '.join(r.id for r in removed)}"
