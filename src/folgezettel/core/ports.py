from typing import Any, Awaitable, Callable, Literal, Protocol, Sequence
from .model import Note

EventName = Literal["created", "renamed", "modified"]
EVENTS: tuple[EventName, ...] = ("created", "renamed", "modified")

# created(note), renamed(note, old_path), modified(note)
EventHandler = Callable[..., Awaitable[Any]]


class NoteHost(Protocol):
    """
    The application that owns the notes: storage, events and UI.
    Only markdown notes are listed; paths are vault-relative POSIX strings.
    """

    def list_all_notes(self) -> Sequence[Note]:
        pass

    async def read_note_content(self, note: Note) -> str:
        pass

    async def write_note_content(self, note: Note, text: str) -> None:
        """Fully replace the note's content."""
        pass

    async def create_note(self, path: str, initial_text: str) -> Note:
        """Raise FileExistsError/OSError if the path is occupied or invalid."""
        pass

    def open_note_in_editor(self, note: Note) -> None:
        pass

    def subscribe(self, event: EventName, handler: EventHandler) -> None:
        pass

    def notify_user(self, message: str, duration_ms: int | None = None) -> None:
        """Non-blocking message."""
        pass

    async def prompt_user_confirmation(self, message: str) -> bool:
        """Blocking yes/no question; True means proceed."""
        pass
