import asyncio
import subprocess
import sys
from collections import defaultdict
from pathlib import Path, PurePosixPath
from typing import TextIO

from ..core.model import Note
from ..core.ports import EVENTS, EventHandler, EventName, NoteHost


class FsHost(NoteHost):
    """
    A vault directory of markdown files. Hidden files and directories
    (``.folge``, ``.obsidian``, ...) are not notes.
    """

    def __init__(
        self,
        root: Path,
        editor: str | None = None,
        assume_yes: bool = False,
        quiet: bool = False,
        out: TextIO | None = None,
    ):
        self.root = root
        self.editor = editor
        self.assume_yes = assume_yes
        self.quiet = quiet
        self.out = out
        self.handlers: dict[str, list[EventHandler]] = defaultdict(list)
        # last content this host wrote, per note path
        self._written: dict[str, str] = {}

    def _path(self, rel: str) -> Path:
        p = PurePosixPath(rel)
        if p.is_absolute() or ".." in p.parts:
            raise ValueError(f"Note path must stay inside the vault: {rel}")
        return self.root.joinpath(*p.parts)

    def note_for(self, path: Path | str) -> Note | None:
        """Map a filesystem path (absolute or vault-relative) to a Note."""
        p = Path(path)
        if p.is_absolute():
            try:
                p = p.resolve().relative_to(self.root.resolve())
            except ValueError:
                return None
        rel = p.as_posix()
        if p.suffix != ".md" or any(part.startswith(".") for part in p.parts):
            return None
        return Note.from_path(rel)

    def is_own_change(self, note: Note) -> bool:
        """True if the file still holds exactly what this host last wrote."""
        expected = self._written.get(note.path)
        if expected is None:
            return False
        p = self._path(note.path)
        if not p.exists():
            return False
        return p.read_text(encoding="utf-8") == expected

    def forget(self, path: str) -> None:
        self._written.pop(path, None)

    async def emit(self, event: EventName, *args) -> None:
        for handler in list(self.handlers[event]):
            await handler(*args)

    # NoteHost

    def list_all_notes(self) -> list[Note]:
        if not self.root.exists():
            return []
        notes = []
        for p in sorted(self.root.rglob("*.md")):
            rel = p.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            notes.append(Note.from_path(rel.as_posix()))
        return notes

    async def read_note_content(self, note: Note) -> str:
        return await asyncio.to_thread(self._path(note.path).read_text, encoding="utf-8")

    async def write_note_content(self, note: Note, text: str) -> None:
        p = self._path(note.path)
        await asyncio.to_thread(p.write_text, text, encoding="utf-8")
        self._written[note.path] = text

    async def create_note(self, path: str, initial_text: str) -> Note:
        if not path.endswith(".md"):
            raise ValueError(f"Notes must be markdown files: {path}")
        p = self._path(path)
        if p.exists():
            raise FileExistsError(f"{path} already exists")
        p.parent.mkdir(parents=True, exist_ok=True)

        def _create() -> None:
            with open(p, "x", encoding="utf-8") as f:
                f.write(initial_text)

        await asyncio.to_thread(_create)
        self._written[path] = initial_text
        note = Note.from_path(path)
        await self.emit("created", note)
        return note

    def open_note_in_editor(self, note: Note) -> None:
        if not self.editor:
            return
        subprocess.Popen([self.editor, str(self._path(note.path))])

    def subscribe(self, event: EventName, handler: EventHandler) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event}")
        self.handlers[event].append(handler)

    def notify_user(self, message: str, duration_ms: int | None = None) -> None:
        if not self.quiet:
            print(message, file=self.out or sys.stdout, flush=True)

    async def prompt_user_confirmation(self, message: str) -> bool:
        if self.assume_yes:
            return True
        try:
            answer = await asyncio.to_thread(input, f"{message} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in ("y", "yes")
