from graft.lang.markdown import MarkdownParser
from graft.spec import (
    CodeBlock,
    Heading,
    HtmlBlock,
    Image,
    Link,
    LinkDefinition,
    ListBlock,
    Paragraph,
    Table,
)
from graft.test_utils import text

README = text("""
    # My Gem

    [![Version](https://img.shields.io/gem/v/x.svg)](https://rubygems.org/gems/x)

    ## Synopsis

    Some text with a [link](https://example.com).

    ```ruby
    require "x"
    ```

    | Name | Value |
    |------|-------|
    | a    | 1     |

    - one
    - two
      continued

    <!-- graft:freeze -->

    [ref]: https://example.com/ref "Title"

    Setext
    ------
""")


def test_block_structure():
    blocks = MarkdownParser().parse(README).statements

    assert [type(b) for b in blocks] == [
        Heading,
        Paragraph,
        Heading,
        Paragraph,
        CodeBlock,
        Table,
        ListBlock,
        HtmlBlock,
        LinkDefinition,
        Heading,
    ]
    title, _, synopsis, _, code, table, listing, html, ref, setext = blocks
    assert (title.level, title.text) == (1, "My Gem")
    assert (synopsis.level, synopsis.text) == (2, "Synopsis")
    assert code.info == "ruby"
    assert code.content == 'require "x"'
    assert table.header == ("Name", "Value")
    assert table.rows == (("a", "1"),)
    assert [item.text for item in listing.items] == ["one", "two"]
    assert listing.items[1].source == "- two\n  continued"
    assert html.content == "<!-- graft:freeze -->"
    assert (ref.label, ref.url, ref.title) == ("ref", "https://example.com/ref", "Title")
    assert (setext.level, setext.text) == (2, "Setext")


def test_block_locations_are_exact_slices():
    result = MarkdownParser().parse(README)

    for block in result.statements:
        loc = block.location
        assert README[loc.start_offset : loc.end_offset] == block.source
    code = result.statements[4]
    assert code.location.start_line == 9
    assert code.location.end_line == 11


def test_badge_yields_link_and_image():
    badge = MarkdownParser().parse(README).statements[1]

    link, image = badge.inlines
    assert isinstance(link, Link) and link.url == "https://rubygems.org/gems/x"
    assert isinstance(image, Image) and image.url == "https://img.shields.io/gem/v/x.svg"
    assert image.source == "![Version](https://img.shields.io/gem/v/x.svg)"
    assert README[image.location.start_offset : image.location.end_offset] == image.source


def test_unclosed_fence_runs_to_end_of_document():
    blocks = MarkdownParser().parse("```\ncode\n# not a heading\n").statements

    assert len(blocks) == 1
    assert isinstance(blocks[0], CodeBlock)
    assert blocks[0].content == "code\n# not a heading"


def test_empty_document():
    result = MarkdownParser().parse("")

    assert result.statements == []
    assert result.comments == []
