from collections import defaultdict

from .address import extract_address, try_parse_address
from .algebra import canonical, parent_address
from .model import Note
from .ports import NoteHost


class CollectionIndex:
    """
    Address-aware queries over the host's notes. Every query rescans the
    whole collection; nothing is cached between calls.
    """

    def __init__(self, host: NoteHost):
        self.host = host

    def addressed_notes(self) -> list[tuple[Note, str]]:
        out = []
        for note in self.host.list_all_notes():
            address = extract_address(note.basename)
            if address:
                out.append((note, address))
        return out

    def find_by_exact_address(self, address: str) -> Note | None:
        for note, note_address in self.addressed_notes():
            if note_address == address:
                return note
        return None

    def find_by_basename(self, name: str) -> Note | None:
        wanted = name.lower()
        for note in self.host.list_all_notes():
            if note.basename.lower() == wanted:
                return note
        return None

    def children_of(self, address: str) -> list[str]:
        parsed = try_parse_address(address)
        if parsed is None:
            return []
        target = canonical(parsed)
        return [
            note_address
            for _, note_address in self.addressed_notes()
            if parent_address(note_address) == target
        ]

    def duplicates_of(self, note: Note) -> list[Note]:
        address = extract_address(note.basename)
        if not address:
            return []
        return [
            other
            for other, other_address in self.addressed_notes()
            if other.path != note.path and other_address == address
        ]

    def duplicates(self) -> dict[str, list[Note]]:
        by_address: dict[str, list[Note]] = defaultdict(list)
        for note, address in self.addressed_notes():
            by_address[address].append(note)
        return {a: notes for a, notes in by_address.items() if len(notes) > 1}
