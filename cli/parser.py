"""Command parser for CLI input."""

import shlex

from cli.models import (
    CleanupCommand,
    CommandRequest,
    DeleteCommand,
    DownloadCommand,
    ListCommand,
    SecurityCommand,
    ShareCommand,
    StatsCommand,
    TtlCommand,
    UploadCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0].lower()
    args = tokens[1:]

    if command_name == "upload":
        if not args:
            raise ParseError("upload requires at least one file")
        return UploadCommand(paths=tuple(args))
    elif command_name == "list":
        _expect_no_args("list", args)
        return ListCommand()
    elif command_name == "download":
        if not 1 <= len(args) <= 2:
            raise ParseError("download requires <id> [output_path]")
        return DownloadCommand(file_id=args[0].lower(), output_path=args[1] if len(args) > 1 else None)
    elif command_name == "delete":
        return DeleteCommand(file_id=_single_id("delete", args))
    elif command_name == "share":
        return ShareCommand(file_id=_single_id("share", args))
    elif command_name == "stats":
        _expect_no_args("stats", args)
        return StatsCommand()
    elif command_name == "ttl":
        return _parse_ttl(args)
    elif command_name == "security":
        return _parse_security(args)
    elif command_name == "cleanup":
        _expect_no_args("cleanup", args)
        return CleanupCommand()
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _expect_no_args(name: str, args: list[str]) -> None:
    if args:
        raise ParseError(f"{name} takes no arguments")


def _single_id(name: str, args: list[str]) -> str:
    if len(args) != 1:
        raise ParseError(f"{name} requires exactly 1 argument: <id>")
    return args[0].lower()


def _parse_ttl(args: list[str]) -> TtlCommand:
    """Parse 'ttl [minutes]' command."""
    if not args:
        return TtlCommand()
    if len(args) != 1:
        raise ParseError("ttl takes at most 1 argument: [minutes]")
    try:
        return TtlCommand(minutes=int(args[0]))
    except ValueError:
        raise ParseError(f"ttl expects a whole number of minutes, got {args[0]!r}")


def _parse_security(args: list[str]) -> SecurityCommand:
    """Parse 'security [on|off]' command."""
    if not args:
        return SecurityCommand()
    if len(args) != 1 or args[0].lower() not in ("on", "off"):
        raise ParseError("security expects 'on' or 'off'")
    return SecurityCommand(enabled=args[0].lower() == "on")
