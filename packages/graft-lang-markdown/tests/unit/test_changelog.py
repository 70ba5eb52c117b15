from graft.lang.markdown import CANONICAL_SUBHEADINGS, RevisionHistoryMerger, merge_revision_history, parse_items
from graft.lang.markdown.changelog import find_section_end, normalize_release_headers
from graft.test_utils import text

TEMPLATE = text("""
    # Changelog

    All notable changes to this project will be documented in this file.

    ## [Unreleased]
    ### Added
    ### Changed
    ### Deprecated
    ### Removed
    ### Fixed
    ### Security

    ## [0.1.0] - 2020-01-01
    - template history
""")


def test_unreleased_entries_are_redistributed_under_canonical_subheadings():
    destination = text("""
        # Changelog

        ## [Unreleased]
        ### Added
        - A
        ### Fixed
        - B

        ## [1.0.0] - 2024-01-01
        ### Added
        - Initial release

        [Unreleased]: https://github.com/o/r/compare/v1.0.0...HEAD
    """)

    merged = merge_revision_history(TEMPLATE, destination)

    assert merged == text("""
        # Changelog

        All notable changes to this project will be documented in this file.

        ## [Unreleased]
        ### Added
        - A
        ### Changed
        ### Deprecated
        ### Removed
        ### Fixed
        - B

        ### Security

        ## [1.0.0] - 2024-01-01
        ### Added
        - Initial release

        [Unreleased]: https://github.com/o/r/compare/v1.0.0...HEAD
    """)


def test_item_with_indented_fence_stays_one_block():
    body = text("""
        ### Added
        - New option
          ```ruby
          Foo.configure do |c|

            c.bar = 1
          end
          ```
        - Another
    """).split("\n")

    section = parse_items(body, 3)

    first, second = section.buckets["Added"]
    assert first[0] == "- New option"
    assert first[-1] == "  ```"
    assert "" in first
    assert second == ["- Another", ""]


def test_fenced_lines_are_not_mistaken_for_headings():
    destination = text("""
        ## [Unreleased]
        ### Fixed
        - Escaped output
          ```
          ## not a heading
          ```
    """)

    merged = merge_revision_history(TEMPLATE, destination)

    assert "  ## not a heading" in merged
    assert merged.index("- Escaped output") > merged.index("### Fixed")


def test_custom_subheadings_follow_canonical_ones():
    destination = text("""
        ## [Unreleased]
        ### Notes
        - custom
        ### added
        - lowercase label
    """)

    kept = merge_revision_history(TEMPLATE, destination)
    dropped = RevisionHistoryMerger(preserve_custom_sections=False).merge(TEMPLATE, destination)

    assert "### Added\n- lowercase label\n" in kept
    assert kept.index("### Security") < kept.index("### Notes\n- custom")
    assert "custom" not in dropped


def test_items_before_any_subheading_are_dropped():
    section = parse_items(["- orphan", "### Added", "- kept"], 3)

    assert section.buckets == {"Added": [["- kept"]]}


def test_destination_without_unreleased_keeps_its_history():
    destination = "# Changelog\n\n## [1.0.0]\n- x\n"

    merged = merge_revision_history(TEMPLATE, destination)

    for name in CANONICAL_SUBHEADINGS:
        assert f"### {name}\n" in merged
    assert merged.endswith("### Security\n\n## [1.0.0]\n- x\n")
    assert "template history" not in merged


def test_degenerate_inputs():
    assert merge_revision_history(TEMPLATE, None) == TEMPLATE
    assert merge_revision_history(TEMPLATE, "  \n") == TEMPLATE
    assert merge_revision_history("# Changelog\n\n\n", "## [Unreleased]\n") == "# Changelog\n"


def test_release_headers_are_normalised():
    assert normalize_release_headers("##   [1.0.0]   -  2024-01-01") == "## [1.0.0] - 2024-01-01"
    assert normalize_release_headers("Text   with   spaces") == "Text   with   spaces"


def test_section_end_stops_at_link_definitions():
    lines = ["## [Unreleased]", "- a", "[Unreleased]: https://x", "## [1.0.0]"]

    assert find_section_end(lines, 0) == 1


def test_blank_lines_inside_unreleased_items_are_kept():
    destination = "## [Unreleased]\n### Added\n- A\n\n- B\n\n### Fixed\n- C\n"

    merged = merge_revision_history(TEMPLATE, destination)

    assert "### Added\n- A\n\n- B\n\n### Changed\n" in merged
    assert merged.endswith("### Fixed\n- C\n\n### Security\n")


def test_unreleased_heading_without_space_after_hashes():
    template = "# C\n\n##[Unreleased]\n### Added\n"
    destination = "##[Unreleased]\n### Added\n- A\n\n##[1.0.0]\n- old\n"

    merged = merge_revision_history(template, destination)

    assert merged.startswith("# C\n\n##[Unreleased]\n### Added\n- A\n\n### Changed\n")
    assert merged.endswith("### Security\n\n##[1.0.0]\n- old\n")
