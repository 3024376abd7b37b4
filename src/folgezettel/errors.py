"""Error taxonomy for folgezettel.

None of these are fatal: handlers catch ``FolgezettelError`` and report it
to the user, scoped to the note that triggered it.
"""

from .core.model import Note


class FolgezettelError(Exception):
    """Base class for all folgezettel errors."""


class ParseFailure(FolgezettelError, ValueError):
    """Raised when a string is not a folgezettel address."""

    def __init__(self, raw: str, reason: str):
        super().__init__(f"Invalid folgezettel address: {raw!r} ({reason})")
        self.raw = raw
        self.reason = reason


class LookupMiss(FolgezettelError, LookupError):
    """A parent or link target could not be found in the collection."""

    def __init__(self, what: str, key: str):
        super().__init__(f"{what} not found for address: {key}")
        self.what = what
        self.key = key


class DuplicateAddress(FolgezettelError):
    """An address is already used by another note."""

    def __init__(self, address: str, existing: Note):
        super().__init__(f"Address {address!r} is already used by: {existing.path}")
        self.address = address
        self.existing = existing


class WriteFailure(FolgezettelError, OSError):
    """The host failed to create or write a note."""

    def __init__(self, path: str, cause: BaseException):
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path
        self.cause = cause
