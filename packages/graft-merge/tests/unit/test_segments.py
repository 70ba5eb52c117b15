from graft.lang.ruby import gemfile_signature, rakefile_signature
from graft.merge import fallback_signature, freeze_ranges, segment
from graft.test_utils import parse_ruby


def test_segments_carry_leading_comments_and_tail():
    result = parse_ruby("""
        # frozen_string_literal: true

        source "https://rubygems.org"
        # Rails
        gem "rails" # pinned
        puts "x"

        # end of file
    """)

    doc = segment(result, gemfile_signature)

    assert [s.signature for s in doc.segments] == [
        ("source",),
        ("gem", "rails"),
        ("puts", "x"),
    ]
    assert doc.segments[0].leading == "# frozen_string_literal: true\n\n"
    assert doc.segments[1].text == '# Rails\ngem "rails" # pinned\n'
    assert doc.tail == "\n# end of file\n"


def test_statements_on_one_line_share_a_segment():
    result = parse_ruby("""
        gem "a"; gem "b"
        gem "c"
    """)

    doc = segment(result, gemfile_signature)

    assert len(doc.segments) == 2
    assert len(doc.segments[0].nodes) == 2
    assert doc.segments[0].signature == ("gem", "b")


def test_attach_to_next_folds_descriptions_into_tasks():
    result = parse_ruby("""
        desc "Build"
        task :build
        task :clean
    """)

    doc = segment(result, rakefile_signature, attach_to_next=("desc",))

    assert [s.signature for s in doc.segments] == [("task", "build"), ("task", "clean")]
    assert doc.segments[0].body == 'desc "Build"\ntask :build\n'


def test_freeze_ranges():
    lines = [
        "# graft:freeze",
        'gem "a"',
        "# graft:unfreeze",
        'gem "b"',
        "<!-- graft:freeze -->",
        "text",
    ]

    assert freeze_ranges(lines, "graft") == [(1, 3), (5, 6)]
    assert freeze_ranges(lines, "other") == []


def test_frozen_segments_are_marked():
    result = parse_ruby("""
        # graft:freeze
        gem "a"
        # graft:unfreeze
        gem "b"
    """)

    doc = segment(result, gemfile_signature, freeze_token="graft")

    assert [s.frozen for s in doc.segments] == [True, False]


def test_fallback_signature_normalises_whitespace():
    assert fallback_signature("puts   'x'\n") == fallback_signature("puts 'x'")


def test_statements_without_identity_fall_back_to_their_text():
    doc = segment(parse_ruby("x = 1\n"), gemfile_signature)

    assert doc.segments[0].signature == ("__text__", "x = 1")
