"""Address algebra: rendering, parents and successors."""

from __future__ import annotations
from collections.abc import Sequence

from .address import (
    Address,
    Letters,
    Number,
    Segment,
    SegmentKind,
    kind_of,
    try_parse_address,
)


def render_segments(segments: Sequence[Segment]) -> str:
    """Render segments back into canonical address form.

    A number gets a leading dot only when the previous segment was also a
    number; letter runs are never separated:

        [1, 2, 3]             -> "1.2.3"
        [1, 2, "a", 3, "c"]   -> "1.2a3c"
    """
    out = ""
    last_was_number = False
    for i, seg in enumerate(segments):
        if isinstance(seg, Number):
            if i > 0 and last_was_number:
                out += "."
            out += str(seg.value)
            last_was_number = True
        elif isinstance(seg, Letters):
            out += seg.value
            last_was_number = False
        else:
            raise TypeError(f"Not a segment: {seg!r}")
    return out


def canonical(address: Address) -> str:
    return render_segments(address.segments)


def parent_of(address: Address) -> Address | None:
    """Drop the last segment. Root addresses (one segment) have no parent."""
    if len(address.segments) <= 1:
        return None
    segments = address.segments[:-1]
    return Address(segments=segments, raw=render_segments(segments))


def parent_address(address: str) -> str | None:
    parsed = try_parse_address(address)
    if parsed is None:
        return None
    parent = parent_of(parsed)
    return parent.raw if parent else None


def last_segment_kind(address: str | Address) -> SegmentKind | None:
    parsed = address if isinstance(address, Address) else try_parse_address(address)
    if parsed is None:
        return None
    return kind_of(parsed.segments[-1])


def next_letter_sequence(letters: str) -> str:
    """Odometer successor over a..z: a -> b, z -> aa, az -> ba, zz -> aaa."""
    if not letters:
        return "a"
    chars = list(letters)
    i = len(chars) - 1
    while i >= 0:
        if chars[i] == "z":
            chars[i] = "a"
            i -= 1
        else:
            chars[i] = chr(ord(chars[i]) + 1)
            return "".join(chars)
    return "a" + "".join(chars)
