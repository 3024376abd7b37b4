"""Note text helpers: wiki-links and heading sections."""

from .links import extract_links, has_link_to, link_literal, render_link_line
from .sections import insert_under_heading

__all__ = [
    "extract_links",
    "has_link_to",
    "link_literal",
    "render_link_line",
    "insert_under_heading",
]
