"""Next-child suggestion following the number/letter alternation rule.

A parent ending in a number gets letter children (``1.2`` -> ``1.2a``,
``1.2b``...); a parent ending in letters gets number children (``1.2a`` ->
``1.2a1``, ``1.2a2``...).
"""

from dataclasses import dataclass

from .address import Letters, Number, parse_address, try_parse_address
from .algebra import canonical, last_segment_kind, next_letter_sequence
from .index import CollectionIndex
from .model import Note


@dataclass
class AddressValidation:
    address: str
    is_valid: bool
    is_duplicate: bool
    existing_note: Note | None
    message: str


def suggest_next_child(index: CollectionIndex, parent: str) -> str:
    """Return the next unused child address of ``parent``.

    Letter runs are compared as plain strings, so with more than 26
    children ``"z"`` still sorts after ``"aa"``.
    """
    base = canonical(parse_address(parent))
    children = [try_parse_address(c) for c in index.children_of(parent)]

    if last_segment_kind(parent) == "letters":
        max_number = 0
        for child in children:
            if child is None:
                continue
            last = child.segments[-1]
            if isinstance(last, Number) and last.value > max_number:
                max_number = last.value
        return f"{base}{max_number + 1}"

    max_letters = ""
    for child in children:
        if child is None:
            continue
        last = child.segments[-1]
        if isinstance(last, Letters) and last.value > max_letters:
            max_letters = last.value
    return base + next_letter_sequence(max_letters)


def validate_address(index: CollectionIndex, address: str) -> AddressValidation:
    """Check that ``address`` parses and is not already taken."""
    if try_parse_address(address) is None:
        return AddressValidation(
            address=address,
            is_valid=False,
            is_duplicate=False,
            existing_note=None,
            message=f'Invalid folgezettel address: "{address}"',
        )

    existing = index.find_by_exact_address(address)
    if existing is not None:
        return AddressValidation(
            address=address,
            is_valid=True,
            is_duplicate=True,
            existing_note=existing,
            message=f'Address "{address}" is already used by: {existing.path}',
        )

    return AddressValidation(
        address=address,
        is_valid=True,
        is_duplicate=False,
        existing_note=None,
        message=f'Address "{address}" is available',
    )
