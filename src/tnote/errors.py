"""
Error types for tnote.

Every failure surfaced to the user is a TnoteError; the CLI prints the
message and exits non-zero.
"""


class TnoteError(Exception):
    """Base class for tnote errors."""


class StorageIOError(TnoteError):
    """The backing database could not be opened, locked, read or written."""


class NotFoundError(TnoteError, KeyError):
    """No note exists with the requested ID."""

    def __init__(self, note_id: int):
        self.note_id = note_id
        super().__init__(f"note {note_id} not found")

    def __str__(self) -> str:
        # KeyError would repr() the message
        return self.args[0]


class InvalidArgumentError(TnoteError, ValueError):
    """Malformed or missing command argument."""


class ConfigError(TnoteError):
    """config.toml exists but cannot be parsed."""
