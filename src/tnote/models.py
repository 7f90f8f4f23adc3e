"""
Note model and key encoding.

Notes are stored as JSON documents keyed by their 8-byte big-endian ID,
so keys sort numerically on any byte-ordered backend.
"""

import struct
from datetime import datetime, timezone

from pydantic import BaseModel, Field, ValidationError, field_validator

from tnote.errors import InvalidArgumentError, StorageIOError

MAX_NOTE_ID = 2**64 - 1

_KEY = struct.Struct(">Q")


class Note(BaseModel):
    """A single persisted note."""

    id: int = Field(ge=0, le=MAX_NOTE_ID, description="Store-assigned, never reused")
    title: str = ""
    body: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed: bool = False

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def first_line(self) -> str:
        """First line of the body, used as a fallback title."""
        return self.body.split("\n", 1)[0]

    @property
    def display_title(self) -> str:
        return self.title or self.first_line

    def to_json(self) -> str:
        """Serialize to the stored record format."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, raw: str | bytes) -> "Note":
        """Parse a stored record."""
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise StorageIOError(f"corrupt note record: {e}") from e


def encode_id(note_id: int) -> bytes:
    """Encode a note ID as an 8-byte big-endian key."""
    return _KEY.pack(note_id)


def decode_id(key: bytes) -> int:
    """Decode an 8-byte big-endian key back to a note ID."""
    if len(key) != _KEY.size:
        raise StorageIOError(f"bad key length: {len(key)}")
    return _KEY.unpack(key)[0]


def parse_note_id(raw: str) -> int:
    """
    Parse a user-supplied note ID.

    Raises InvalidArgumentError for anything that is not an unsigned
    64-bit decimal integer.
    """
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        raise InvalidArgumentError(f"invalid note id: {raw!r}")
    note_id = int(text)
    if note_id > MAX_NOTE_ID:
        raise InvalidArgumentError(f"note id out of range: {raw}")
    return note_id
