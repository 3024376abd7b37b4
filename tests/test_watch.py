"""Tests for watch mode functionality."""

import asyncio
import tempfile
import time
from pathlib import Path

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from folgezettel.adapters.fs_host import FsHost
from folgezettel.config import LinkSettings
from folgezettel.core.model import Note
from folgezettel.linker import Linker
from folgezettel.watch import VaultEventHandler, dispatch, watch_vault


@pytest.fixture
def vault():
    """Create a temporary vault for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        vault_path = Path(tmpdir) / "vault"
        vault_path.mkdir()
        yield vault_path


@pytest.fixture
def handler(vault):
    batches = []
    h = VaultEventHandler(FsHost(vault), batches.append, debounce_ms=50)
    h.batches = batches
    return h


def test_events_become_note_events(handler, vault):
    handler.on_created(FileCreatedEvent(str(vault / "1a.md")))
    handler.on_modified(FileModifiedEvent(str(vault / "sub" / "2.md")))
    handler.on_moved(FileMovedEvent(str(vault / "old.md"), str(vault / "1b.md")))

    assert handler.pending == [
        ("created", Note.from_path("1a.md")),
        ("modified", Note.from_path("sub/2.md")),
        ("renamed", Note.from_path("1b.md"), "old.md"),
    ]


def test_skips_directories_and_other_files(handler, vault):
    handler.on_created(DirCreatedEvent(str(vault / "sub")))
    handler.on_created(FileCreatedEvent(str(vault / "picture.png")))
    handler.on_modified(FileModifiedEvent(str(vault / ".1a.md.swp")))
    handler.on_modified(FileModifiedEvent(str(vault / "1a.md~")))
    handler.on_modified(FileModifiedEvent(str(vault / ".obsidian" / "workspace.md")))

    assert handler.pending == []


def test_move_from_temp_file_counts_as_creation(handler, vault):
    """Editors that save through a temp file produce a move onto the note."""
    handler.on_moved(FileMovedEvent(str(vault / "1a.md.tmp"), str(vault / "1a.md")))
    assert handler.pending == [("created", Note.from_path("1a.md"))]


def test_atomic_save_over_existing_note_is_a_modification(vault):
    """Saving through a hidden temp file moved over a note is an edit of it."""
    (vault / "A.md").write_text("")
    h = VaultEventHandler(FsHost(vault), lambda batch: None)

    h.on_moved(FileMovedEvent(str(vault / ".A.md.tmp123"), str(vault / "A.md")))

    assert h.pending == [("modified", Note.from_path("A.md"))]


def test_atomic_save_after_creation_is_a_modification(handler, vault):
    handler.on_moved(FileMovedEvent(str(vault / ".B.md.tmp1"), str(vault / "B.md")))
    handler.on_moved(FileMovedEvent(str(vault / ".B.md.tmp2"), str(vault / "B.md")))

    assert handler.pending == [
        ("created", Note.from_path("B.md")),
        ("modified", Note.from_path("B.md")),
    ]


def test_atomic_save_adds_reciprocal_link(vault):
    """A link typed in an editor that saves atomically is reciprocated."""
    (vault / "NoteA.md").write_text("")
    (vault / "NoteB.md").write_text("")
    host = FsHost(vault, quiet=True)
    Linker(host, LinkSettings()).register()
    batches = []
    h = VaultEventHandler(host, batches.append)

    (vault / "NoteA.md").write_text("see [[NoteB]]")
    h.on_moved(FileMovedEvent(str(vault / ".NoteA.md.swx"), str(vault / "NoteA.md")))
    h.flush()

    for event in batches[0]:
        dispatch(host, event)

    assert "[[NoteA]] (Cross-reference)" in (vault / "NoteB.md").read_text()


def test_repeated_modifications_collapse(handler, vault):
    for _ in range(3):
        handler.on_modified(FileModifiedEvent(str(vault / "1a.md")))
    assert handler.pending == [("modified", Note.from_path("1a.md"))]


def test_flush_after_debounce(handler, vault):
    handler.on_created(FileCreatedEvent(str(vault / "1a.md")))

    handler.check_and_flush()
    assert handler.batches == []

    time.sleep(0.1)
    handler.check_and_flush()
    assert handler.batches == [[("created", Note.from_path("1a.md"))]]
    assert handler.pending == []


def test_dispatch_runs_linker(vault):
    """A created note on disk gets linked to its parent."""
    (vault / "3 Root.md").write_text("")
    (vault / "3a Child.md").write_text("")
    host = FsHost(vault, quiet=True)
    Linker(host, LinkSettings()).register()

    assert dispatch(host, ("created", Note.from_path("3a Child.md"))) is True
    assert "[[3 Root]]" in (vault / "3a Child.md").read_text()


def test_dispatch_skips_own_writes(vault):
    """The watcher echo of a linker write is not dispatched."""
    (vault / "a.md").write_text("")
    host = FsHost(vault, quiet=True)
    seen = []

    async def on_modified(note):
        seen.append(note)

    host.subscribe("modified", on_modified)
    note = Note.from_path("a.md")
    asyncio.run(host.write_note_content(note, "written"))

    assert dispatch(host, ("modified", note)) is False
    assert seen == []

    (vault / "a.md").write_text("written, then edited")
    assert dispatch(host, ("modified", note)) is True
    assert seen == [note]


def test_watch_missing_vault(vault, capsys):
    assert watch_vault(FsHost(vault / "missing")) == 1
    assert "Vault not found" in capsys.readouterr().err
