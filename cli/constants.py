"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "upload", "list", "download", "delete", "share", "stats",
    "ttl", "security", "cleanup", "clear", "exit", "help",
]

STYLE = Style.from_dict(
    {
        "prompt": "#2F80ED bold",
        "command": "#0088ff bold",
    }
)

BLUE = "\033[38;2;47;128;237m"
RED = "\033[31m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{BLUE}
 ███████╗██╗██╗     ███████╗██╗     ██╗███╗   ██╗██╗  ██╗
 ██╔════╝██║██║     ██╔════╝██║     ██║████╗  ██║██║ ██╔╝
 █████╗  ██║██║     █████╗  ██║     ██║██╔██╗ ██║█████╔╝
 ██╔══╝  ██║██║     ██╔══╝  ██║     ██║██║╚██╗██║██╔═██╗
 ██║     ██║███████╗███████╗███████╗██║██║ ╚████║██║  ██╗
 ╚═╝     ╚═╝╚══════╝╚══════╝╚══════╝╚═╝╚═╝  ╚═══╝╚═╝  ╚═╝
{RESET}"""

WELCOME_TITLE = "FileLink CLI - share files with short expiring codes"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "filelink> "

HELP_TEXT = """Available commands:
  upload <path>...                    Upload one or more files
  list                                List your files with time left before deletion
  download <id> [output_path]         Download a file (defaults to the downloads/ directory)
  delete <id>                         Delete a file you uploaded
  share <id>                          Show the share link for a file
  stats                               Show upload statistics
  ttl [minutes]                       Show or set the auto-delete time (1-60 minutes)
  security [on|off]                   Show or toggle security mode for new uploads
  cleanup                             Remove expired files now
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Examples:
  upload report.pdf photos/cat.png
  list
  share k3x9
  download k3x9 downloads/copy.pdf
  ttl 10"""
