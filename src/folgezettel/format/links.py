"""Wiki-link reading and writing.

Recognised forms: ``[[name]]``, ``[[name|alias]]`` and ``[[name#section]]``.
Only ``name`` is meaningful here; aliases and sections are ignored on read
and never written.
"""

import re

_WIKILINK = re.compile(r"\[\[([^\]|#]+)(?:[|#][^\]]+)?\]\]")


def extract_links(text: str) -> set[str]:
    """Return the set of note basenames linked from ``text``."""
    return {m.group(1).strip() for m in _WIKILINK.finditer(text)}


def link_literal(basename: str) -> str:
    return f"[[{basename}]]"


def has_link_to(text: str, basename: str) -> bool:
    """True if ``text`` contains the plain ``[[basename]]`` literal."""
    return link_literal(basename) in text


def render_link_line(basename: str, annotation: str) -> str:
    return f"- {link_literal(basename)} ({annotation})"
