"""Custom completer for the FileLink CLI with file ID autocompletion."""

from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from lifecycle.metadata_store import MetadataStore
from cli.constants import COMMANDS

ID_COMMANDS = ("download", "delete", "share")


class FileLinkCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Live file ID completion for commands that take an ID
    """

    def __init__(self, store: MetadataStore):
        self.store = store

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command not in ID_COMMANDS:
            return

        # Only the first argument is an ID.
        arg_index = len(tokens) if is_typing_new_token else len(tokens) - 1
        if arg_index != 1:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        yield from self._complete_file_ids(current_word)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_file_ids(self, partial: str) -> Iterable[Completion]:
        """Complete IDs of live files, showing the original name alongside."""
        partial_lower = partial.lower()
        for record in self.store.get_stored_files():
            if record.id.startswith(partial_lower):
                yield Completion(
                    record.id,
                    start_position=-len(partial),
                    display_meta=record.original_name,
                )
