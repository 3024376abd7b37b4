from collections import defaultdict

from ..core.model import Note
from ..core.ports import EVENTS, EventHandler, EventName, NoteHost


class MemoryHost(NoteHost):
    """
    Notes held in a dict. Events are delivered synchronously: a write awaits
    every ``modified`` handler before it returns, the way an editor that
    fires change events from inside its save call would.
    """

    def __init__(self, confirm: bool = True):
        self.contents: dict[str, str] = {}
        self.handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self.messages: list[str] = []
        self.opened: list[Note] = []
        self.prompts: list[str] = []
        self.confirm = confirm
        self.fail_writes: set[str] = set()

    # Test helpers

    def add_note(self, path: str, content: str = "") -> Note:
        """Put a note in place without firing events."""
        self.contents[path] = content
        return Note.from_path(path)

    def content(self, path: str) -> str:
        return self.contents.get(path, "")

    async def edit(self, path: str, content: str) -> None:
        """Simulate a user edit: replace the text and fire ``modified``."""
        self.contents[path] = content
        await self.emit("modified", Note.from_path(path))

    async def rename(self, old_path: str, new_path: str) -> Note:
        self.contents[new_path] = self.contents.pop(old_path)
        note = Note.from_path(new_path)
        await self.emit("renamed", note, old_path)
        return note

    async def emit(self, event: EventName, *args) -> None:
        for handler in list(self.handlers[event]):
            await handler(*args)

    # NoteHost

    def list_all_notes(self) -> list[Note]:
        return [Note.from_path(p) for p in self.contents if p.endswith(".md")]

    async def read_note_content(self, note: Note) -> str:
        if note.path not in self.contents:
            raise FileNotFoundError(note.path)
        return self.contents[note.path]

    async def write_note_content(self, note: Note, text: str) -> None:
        if note.path in self.fail_writes:
            raise PermissionError(f"{note.path} is read-only")
        self.contents[note.path] = text
        await self.emit("modified", note)

    async def create_note(self, path: str, initial_text: str) -> Note:
        if path in self.contents:
            raise FileExistsError(path)
        self.contents[path] = initial_text
        note = Note.from_path(path)
        await self.emit("created", note)
        return note

    def open_note_in_editor(self, note: Note) -> None:
        self.opened.append(note)

    def subscribe(self, event: EventName, handler: EventHandler) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event}")
        self.handlers[event].append(handler)

    def notify_user(self, message: str, duration_ms: int | None = None) -> None:
        self.messages.append(message)

    async def prompt_user_confirmation(self, message: str) -> bool:
        self.prompts.append(message)
        return self.confirm
