"""Idempotent link insertion under a second-level heading."""

import re

from .links import has_link_to, render_link_line


def _heading_pattern(heading: str) -> re.Pattern[str]:
    return re.compile(rf"^## {re.escape(heading)}[ \t\r]*$", re.MULTILINE)


def insert_under_heading(
    text: str,
    target: str,
    heading: str,
    annotation: str,
) -> tuple[str, bool]:
    """Add ``- [[target]] (annotation)`` at the end of the ``## heading`` section.

    The section runs from the heading line to the next ``## `` heading or the
    end of the document. If the heading is missing, a new section holding
    just the link is appended.
    Windows line endings in ``text`` are kept.

    Args:
        text: Current document text
        target: Basename of the note to link to
        heading: Heading text, without the ``## `` prefix
        annotation: Text shown in parentheses after the link

    Returns:
        (new_text, inserted). When ``[[target]]`` already appears anywhere
        in ``text`` nothing is changed and ``inserted`` is False.
    """
    if has_link_to(text, target):
        return text, False

    nl = "\r\n" if "\r\n" in text else "\n"
    line = render_link_line(target, annotation)
    match = _heading_pattern(heading).search(text)

    if match is None:
        head = text.rstrip()
        if not head:
            return f"## {heading}{nl}{line}{nl}", True
        return f"{head}{nl}{nl}## {heading}{nl}{line}{nl}", True

    section_end = text.find("\n## ", match.end())
    if section_end == -1:
        section_end = len(text)
    elif text[section_end - 1] == "\r":
        section_end -= 1

    before = text[:section_end].rstrip()
    return f"{before}{nl}{line}{nl}{text[section_end:]}", True
