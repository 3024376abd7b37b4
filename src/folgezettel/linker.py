"""Keeps folgezettel links consistent as notes are created, renamed and edited.

Three behaviours hang off host events:

* a note whose title carries an address is linked to its parent, both
  ways (child -> parent under the backlink heading, parent -> child under
  the forward-link heading);
* a note whose address is already taken triggers a duplicate warning;
* a link typed by hand into a note gets a reciprocal link in the target.

Every write the linker makes goes through ``_write``, which marks the path
as in flight so the ``modified`` event caused by that write is ignored.
"""

import logging
from typing import Any, Awaitable

from .config import LinkSettings
from .core.address import extract_address
from .core.algebra import parent_address
from .core.index import CollectionIndex
from .core.model import Note
from .core.ports import NoteHost
from .core.suggest import AddressValidation, suggest_next_child, validate_address
from .errors import FolgezettelError, LookupMiss, WriteFailure
from .format.links import extract_links, has_link_to
from .format.sections import insert_under_heading

log = logging.getLogger(__name__)

DUPLICATE_NOTICE_MS = 15000
CROSS_LINK_ANNOTATION = "Cross-reference"


class Linker:
    def __init__(self, host: NoteHost, settings: LinkSettings):
        self.host = host
        self.settings = settings
        self.index = CollectionIndex(host)
        # path -> basenames linked from that note when last seen
        self.link_snapshots: dict[str, set[str]] = {}
        self._writing: set[str] = set()

    def register(self) -> None:
        self.host.subscribe("created", self.on_created)
        self.host.subscribe("renamed", self.on_renamed)
        self.host.subscribe("modified", self.on_modified)

    def is_writing(self, path: str) -> bool:
        return path in self._writing

    def _notify(self, message: str, duration_ms: int | None = None) -> None:
        if self.settings.show_notifications:
            self.host.notify_user(message, duration_ms)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    async def on_created(self, note: Note) -> None:
        log.debug("created: %s", note.path)
        self.check_for_duplicate_address(note)
        if self.settings.auto_process:
            await self._guarded(note, self.process_note(note))

    async def on_renamed(self, note: Note, old_path: str) -> None:
        log.debug("renamed: %s -> %s", old_path, note.path)
        if old_path in self.link_snapshots:
            self.link_snapshots[note.path] = self.link_snapshots.pop(old_path)

        self.check_for_duplicate_address(note)
        if self.settings.auto_process:
            await self._guarded(note, self.process_note(note))

    async def on_modified(self, note: Note) -> None:
        if not self.settings.auto_bidirectional_links:
            return
        if note.extension != "md":
            return
        if self.is_writing(note.path):
            log.debug("ignoring own write: %s", note.path)
            return

        try:
            content = await self.host.read_note_content(note)
        except OSError as e:
            log.warning("Could not read %s: %s", note.path, e)
            return

        current = extract_links(content)
        previous = self.link_snapshots.get(note.path, set())
        self.link_snapshots[note.path] = current

        new_links = current - previous
        if new_links:
            await self._guarded(note, self.process_new_links(note, new_links))

    async def _guarded(self, note: Note, work: Awaitable[Any]) -> None:
        try:
            await work
        except (FolgezettelError, OSError) as e:
            log.warning("%s: %s", note.path, e)
            self.host.notify_user(str(e))

    # ------------------------------------------------------------------
    # Parent/child linking
    # ------------------------------------------------------------------

    def check_for_duplicate_address(self, note: Note) -> Note | None:
        """Warn (without blocking) if another note already uses this address."""
        address = extract_address(note.basename)
        if not address:
            return None
        others = self.index.duplicates_of(note)
        if not others:
            return None
        other = others[0]
        log.warning("Duplicate address %s: %s and %s", address, note.path, other.path)
        self.host.notify_user(
            f"Duplicate folgezettel address!\n\n"
            f'"{address}" is already used by:\n'
            f"{other.path}\n\n"
            f"Consider using a different address.",
            DUPLICATE_NOTICE_MS,
        )
        return other

    async def process_note(self, note: Note) -> bool:
        """Link ``note`` and its parent both ways. True if anything was written."""
        address = extract_address(note.basename)
        if not address:
            return False
        parent = parent_address(address)
        if not parent:
            return False

        parent_note = self.index.find_by_exact_address(parent)
        if parent_note is None:
            log.info("Parent %s of %s not found", parent, note.path)
            self._notify(f"Parent note not found for address: {parent}")
            return False

        inserted = await self._link_pair(note, parent_note)
        if inserted:
            self._notify(f"Folgezettel links created for {note.basename}")
        return inserted

    async def _link_pair(self, child: Note, parent: Note) -> bool:
        backlink = await self.insert_link(
            child,
            parent,
            self.settings.backlink_heading,
            self.settings.parent_link_description,
        )
        forward = await self.insert_link(
            parent,
            child,
            self.settings.forward_link_heading,
            self.settings.child_link_description,
        )
        return backlink or forward

    async def insert_link(self, note: Note, linked: Note, heading: str, annotation: str) -> bool:
        content = await self.host.read_note_content(note)
        new_content, inserted = insert_under_heading(content, linked.basename, heading, annotation)
        if inserted:
            await self._write(note, new_content)
            log.info("Linked %s -> %s under %r", note.path, linked.basename, heading)
        return inserted

    async def _write(self, note: Note, text: str) -> None:
        self._writing.add(note.path)
        try:
            await self.host.write_note_content(note, text)
        except OSError as e:
            raise WriteFailure(note.path, e) from e
        finally:
            self._writing.discard(note.path)

    # ------------------------------------------------------------------
    # Cross-linking
    # ------------------------------------------------------------------

    async def process_new_links(self, source: Note, links: set[str]) -> int:
        """Add reciprocal links for ``links`` newly found in ``source``."""
        added = 0
        for name in sorted(links):
            target = self.index.find_by_basename(name)
            if target is None:
                log.debug("Unresolved link [[%s]] in %s", name, source.path)
                continue
            if target.path == source.path:
                continue
            target_content = await self.host.read_note_content(target)
            if has_link_to(target_content, source.basename):
                continue
            if await self.insert_cross_link(target, source):
                added += 1
        return added

    async def insert_cross_link(self, note: Note, linked: Note) -> bool:
        inserted = await self.insert_link(
            note, linked, self.settings.cross_link_heading, CROSS_LINK_ANNOTATION
        )
        if inserted:
            self._notify(f"Reciprocal link added: {linked.basename} -> {note.basename}")
        return inserted

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def add_backlink_to_parent(self, note: Note) -> bool:
        address = extract_address(note.basename)
        if not address:
            self.host.notify_user("No folgezettel address found in note title")
            return False
        parent = parent_address(address)
        if not parent:
            self.host.notify_user("This appears to be a root note (no parent)")
            return False
        parent_note = self.index.find_by_exact_address(parent)
        if parent_note is None:
            self.host.notify_user(str(LookupMiss("Parent note", parent)))
            return False

        try:
            inserted = await self._link_pair(note, parent_note)
        except OSError as e:
            self.host.notify_user(str(e))
            return False

        if inserted:
            self.host.notify_user(f"Links created: {note.basename} <-> {parent_note.basename}")
        else:
            self.host.notify_user("Links already exist")
        return inserted

    def suggest_next_child_for(self, note: Note) -> AddressValidation | None:
        address = extract_address(note.basename)
        if not address:
            self.host.notify_user("No folgezettel address found in note title")
            return None
        validation = validate_address(self.index, suggest_next_child(self.index, address))
        if validation.is_duplicate:
            self.host.notify_user(f"Warning: {validation.message}")
        else:
            self.host.notify_user(f"Next child address: {validation.address}")
        return validation

    async def create_next_child(self, note: Note) -> Note | None:
        address = extract_address(note.basename)
        if not address:
            self.host.notify_user("No folgezettel address found in note title")
            return None

        validation = validate_address(self.index, suggest_next_child(self.index, address))
        if validation.is_duplicate:
            confirmed = await self.host.prompt_user_confirmation(
                f"{validation.message}\n\n"
                "Creating another note with the same address may cause confusion "
                "in your Zettelkasten. Create it anyway?"
            )
            if not confirmed:
                self.host.notify_user("Note creation cancelled")
                return None

        return await self.create_note_with_address(validation.address, note.folder)

    async def create_note_with_address(self, address: str, folder: str) -> Note | None:
        path = f"{folder}/{address}.md" if folder else f"{address}.md"
        try:
            new_note = await self.host.create_note(path, "")
        except (OSError, ValueError) as e:
            log.warning("Failed to create %s: %s", path, e)
            self.host.notify_user(f"Failed to create note: {e}")
            return None
        self.host.open_note_in_editor(new_note)
        self.host.notify_user(f"Created note: {address}")
        return new_note
