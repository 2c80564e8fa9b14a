"""REPL with prompt_toolkit for user interaction."""

import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from common.exceptions import FileLinkException
from common.logging_config import get_logger
from cli.commands import (
    ClientContext,
    handle_cleanup,
    handle_delete,
    handle_download,
    handle_list,
    handle_security,
    handle_share,
    handle_stats,
    handle_ttl,
    handle_upload,
)
from cli.completer import FileLinkCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
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
from cli.parser import ParseError, parse_command

logger = get_logger(__name__)


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


async def dispatch_command(cmd_obj, ctx: ClientContext) -> str:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, UploadCommand):
        return handle_upload(cmd_obj, ctx)
    elif isinstance(cmd_obj, ListCommand):
        return handle_list(cmd_obj, ctx)
    elif isinstance(cmd_obj, DownloadCommand):
        return handle_download(cmd_obj, ctx)
    elif isinstance(cmd_obj, DeleteCommand):
        return handle_delete(cmd_obj, ctx)
    elif isinstance(cmd_obj, ShareCommand):
        return handle_share(cmd_obj, ctx)
    elif isinstance(cmd_obj, StatsCommand):
        return handle_stats(cmd_obj, ctx)
    elif isinstance(cmd_obj, TtlCommand):
        return await handle_ttl(cmd_obj, ctx)
    elif isinstance(cmd_obj, SecurityCommand):
        return handle_security(cmd_obj, ctx)
    elif isinstance(cmd_obj, CleanupCommand):
        return handle_cleanup(cmd_obj, ctx)
    else:
        return f"Unknown command type: {type(cmd_obj)}"


async def repl_loop(ctx: ClientContext) -> None:
    """
    Start interactive REPL with prompt_toolkit.

    The expiry sweep runs in the background for as long as the REPL does.
    """
    history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=FileLinkCompleter(ctx.store), history=history, style=STYLE
    )

    await ctx.scheduler.start_auto_cleanup(
        ctx.config.get_cleanup_interval_minutes(),
        ctx.settings.get_auto_delete_minutes(),
    )

    clear_screen()
    show_welcome()

    try:
        while True:
            try:
                user_input = await session.prompt_async([("class:prompt", PROMPT_TEXT)])

                if not user_input.strip():
                    continue

                if user_input.strip() == "exit":
                    print("Goodbye!")
                    break

                if user_input.strip() == "help":
                    print(HELP_TEXT)
                    continue

                if user_input.strip() == "clear":
                    clear_screen()
                    show_welcome()
                    continue

                cmd_obj = parse_command(user_input)
                result = await dispatch_command(cmd_obj, ctx)
                print(result)

            except ParseError as e:
                print(f"Error: {e}")
            except FileLinkException as e:
                logger.error(f"Command failed: {e}")
                print(f"Error: {e}")
            except KeyboardInterrupt:
                continue
            except EOFError:
                print("\nGoodbye!")
                break
    finally:
        await ctx.scheduler.stop()
