"""Tests for wiki-link extraction and heading-section insertion."""

from folgezettel.format import extract_links, has_link_to, insert_under_heading


def test_extract_simple_links():
    links = extract_links("Some text with [[Note A]] and [[Note B]]")
    assert links == {"Note A", "Note B"}


def test_extract_aliased_and_section_links():
    """Aliases and section fragments are dropped."""
    assert extract_links("[[Note A|Alias]] is here") == {"Note A"}
    assert extract_links("[[Note A#Section]] is here") == {"Note A"}


def test_extract_no_links():
    assert extract_links("No links here") == set()


def test_extract_strips_whitespace():
    assert extract_links("[[ 1.2a Topic ]]") == {"1.2a Topic"}


def test_has_link_to_plain_form_only():
    assert has_link_to("see [[B]]", "B")
    assert not has_link_to("see [[B|bee]]", "B")


def test_insert_under_existing_heading():
    text = "# Title\n\n## Related Notes\n"
    new, inserted = insert_under_heading(text, "linked", "Related Notes", "Test")
    assert inserted
    assert new == "# Title\n\n## Related Notes\n- [[linked]] (Test)\n"


def test_insert_appends_to_end_of_section():
    """The link goes after existing entries, before the next heading."""
    text = (
        "# Title\n\n"
        "## Child Notes\n"
        "- [[1.2a]] (Child)\n"
        "\n"
        "## Other\n"
        "body\n"
    )
    new, inserted = insert_under_heading(text, "1.2b", "Child Notes", "Child")
    assert inserted
    assert new == (
        "# Title\n\n"
        "## Child Notes\n"
        "- [[1.2a]] (Child)\n"
        "- [[1.2b]] (Child)\n"
        "\n"
        "## Other\n"
        "body\n"
    )


def test_insert_into_empty_section_followed_by_heading():
    text = "## Related Notes\n## Next\n"
    new, _ = insert_under_heading(text, "x", "Related Notes", "Parent")
    assert new == "## Related Notes\n- [[x]] (Parent)\n\n## Next\n"


def test_insert_creates_missing_heading():
    text = "# Title\n\nSome content\n\n"
    new, inserted = insert_under_heading(text, "linked", "Related Notes", "Test")
    assert inserted
    assert new == "# Title\n\nSome content\n\n## Related Notes\n- [[linked]] (Test)\n"


def test_insert_into_empty_document():
    new, inserted = insert_under_heading("", "1.2", "Related Notes", "Parent")
    assert inserted
    assert new == "## Related Notes\n- [[1.2]] (Parent)\n"


def test_insert_heading_must_match_exactly():
    """Third-level headings and other titles don't count."""
    text = "### Related Notes\n"
    new, _ = insert_under_heading(text, "x", "Related Notes", "P")
    assert new == "### Related Notes\n\n## Related Notes\n- [[x]] (P)\n"


def test_insert_heading_with_regex_characters():
    text = "## See also (auto)\n"
    new, _ = insert_under_heading(text, "x", "See also (auto)", "P")
    assert new == "## See also (auto)\n- [[x]] (P)\n"


def test_insert_does_not_duplicate_existing_link():
    text = "## Related Notes\n- [[linked]]"
    new, inserted = insert_under_heading(text, "linked", "Related Notes", "Test")
    assert not inserted
    assert new == text


def test_insert_is_idempotent():
    """Applying the same insertion twice changes nothing the second time."""
    once, first = insert_under_heading("# T\n", "B", "Related Notes", "Cross-reference")
    twice, second = insert_under_heading(once, "B", "Related Notes", "Cross-reference")
    assert first and not second
    assert twice == once


def test_link_anywhere_counts_as_present():
    """A link elsewhere in the document prevents insertion."""
    text = "Body mentions [[B]].\n\n## Related Notes\n"
    new, inserted = insert_under_heading(text, "B", "Related Notes", "Cross-reference")
    assert not inserted
    assert new == text


def test_insert_under_crlf_heading():
    """A note saved with Windows line endings keeps one heading and CRLF."""
    text = "Body\r\n\r\n## Related Notes\r\n- [[a]] (x)\r\n"
    result, inserted = insert_under_heading(text, "b", "Related Notes", "y")
    assert inserted
    assert result == "Body\r\n\r\n## Related Notes\r\n- [[a]] (x)\r\n- [[b]] (y)\r\n"


def test_insert_crlf_section_followed_by_heading():
    text = "## Child Notes\r\n- [[1a]] (Child)\r\n\r\n## Other\r\nbody\r\n"
    result, _ = insert_under_heading(text, "1b", "Child Notes", "Child")
    assert result == (
        "## Child Notes\r\n- [[1a]] (Child)\r\n- [[1b]] (Child)\r\n\r\n## Other\r\nbody\r\n"
    )


def test_insert_new_heading_in_crlf_note():
    result, _ = insert_under_heading("# Title\r\n", "x", "Related Notes", "P")
    assert result == "# Title\r\n\r\n## Related Notes\r\n- [[x]] (P)\r\n"
