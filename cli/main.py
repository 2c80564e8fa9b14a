"""CLI entry point."""

import asyncio
import os
import sys
from pathlib import Path

from common.logging_config import setup_logging
from cli.commands import build_context
from cli.config import Config
from cli.repl import repl_loop

CONFIG_PATH = Path.home() / '.filelink' / 'config.json'


def main() -> None:
    """Entry point for CLI."""
    log_level = 'DEBUG' if '--debug' in sys.argv else os.getenv('LOG_LEVEL', 'WARNING')

    logger = setup_logging('cli', log_level=log_level)

    if '--debug' in sys.argv:
        logger.info("Debug logging enabled")
        sys.argv.remove('--debug')

    logger.info("CLI starting...")
    ctx = build_context(Config(CONFIG_PATH))
    try:
        asyncio.run(repl_loop(ctx))
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        ctx.client.close()
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
