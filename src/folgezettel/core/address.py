"""Folgezettel address parsing.

An address such as ``1.2a3c5`` is an ordered sequence of segments, each
either a non-negative integer or a lowercase letter run:

    1 . 2 a 3 c 5  ->  [1, 2, "a", 3, "c", 5]

Dots separate consecutive numbers; a change between digits and letters
separates segments on its own.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Literal, Union

from ..errors import ParseFailure

SegmentKind = Literal["number", "letters"]


@dataclass(frozen=True)
class Number:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Letters:
    value: str  # non-empty, lowercase

    def __str__(self) -> str:
        return self.value


Segment = Union[Number, Letters]


@dataclass(frozen=True)
class Address:
    segments: tuple[Segment, ...]
    raw: str  # trimmed input, kept for display


def kind_of(segment: Segment) -> SegmentKind:
    if isinstance(segment, Number):
        return "number"
    if isinstance(segment, Letters):
        return "letters"
    raise TypeError(f"Not a segment: {segment!r}")


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_letter(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def parse_address(raw: str) -> Address:
    """Parse ``raw`` into an :class:`Address`.

    Scanning stops silently at the first character that is not a digit,
    ASCII letter or dot; whatever was collected up to that point is the
    address. Letters are folded to lowercase.

    Raises:
        ParseFailure: if ``raw`` is empty after trimming or does not start
            with a digit.
    """
    if not isinstance(raw, str):
        raise ParseFailure(repr(raw), "not a string")

    trimmed = raw.strip()
    if not trimmed:
        raise ParseFailure(raw, "empty")
    if not _is_digit(trimmed[0]):
        raise ParseFailure(raw, "must start with a digit")

    segments: list[Segment] = []
    current = ""
    in_number = True

    def close() -> None:
        nonlocal current
        if current:
            segments.append(Number(int(current)) if in_number else Letters(current))
            current = ""

    for ch in trimmed:
        if ch == ".":
            close()
            in_number = True
        elif _is_digit(ch):
            if not in_number:
                close()
            in_number = True
            current += ch
        elif _is_letter(ch):
            if in_number:
                close()
            in_number = False
            current += ch.lower()
        else:
            break
    close()

    if not segments:
        raise ParseFailure(raw, "no segments")
    return Address(segments=tuple(segments), raw=trimmed)


def try_parse_address(raw: str | None) -> Address | None:
    """Like :func:`parse_address` but returns None instead of raising."""
    if raw is None:
        return None
    try:
        return parse_address(raw)
    except ParseFailure:
        return None


def extract_address(title: str | None) -> str | None:
    """Find the folgezettel address carried by a note title.

    The address starts at the first digit and runs through dot-separated
    numbers followed by any number of ``letters[digits]`` groups. The
    matched text is returned verbatim (case preserved).

        >>> extract_address("1.2a3c5 Deep Note")
        '1.2a3c5'
        >>> extract_address("Note about 1.2a topic")
        '1.2a'
    """
    if not title:
        return None

    n = len(title)
    start = 0
    while start < n and not _is_digit(title[start]):
        start += 1
    if start == n:
        return None

    i = start
    while i < n and _is_digit(title[i]):
        i += 1
    # .digits groups; a dot only counts when a digit follows it
    while i + 1 < n and title[i] == "." and _is_digit(title[i + 1]):
        i += 1
        while i < n and _is_digit(title[i]):
            i += 1
    # letters[digits] groups
    while i < n and _is_letter(title[i]):
        while i < n and _is_letter(title[i]):
            i += 1
        while i < n and _is_digit(title[i]):
            i += 1

    return title[start:i]
