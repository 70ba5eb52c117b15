import pytest

from graft.app import (
    classify_all,
    merge_dependency_manifest,
    merge_file,
    merge_revision_history,
    remove_named_dependency,
)
from graft.lang.ruby import appraisals_recipe
from graft.test_utils import SpyBus, create_test_app, parse_ruby, text


def test_dependency_manifest_merge_keeps_each_declaration_once():
    merged = merge_dependency_manifest('source "R"\ngem "a"\ngem "b"\n', 'gem "a"\n')

    assert merged.count('source "R"') == 1
    assert merged.count('gem "a"') == 1
    assert merged.count('gem "b"') == 1


def test_named_dependency_removal():
    assert remove_named_dependency('gem "x"\ngem "y"\n', "x") == 'gem "y"\n'


def test_revision_history_is_canonicalised_and_history_kept():
    template = text("""
        # Changelog

        ## [Unreleased]

        ## [0.0.1] - 2019-01-01
        - stale template entry
    """)
    history = text("""
        ## [1.0.0] - 2024-05-01
        ### Added
        - First release
        ### Fixed
        - Crash on start

        [1.0.0]: https://example.com/v1.0.0
    """)
    destination = "# Changelog\n\n## [Unreleased]\n### Added\n- A\n### Fixed\n- B\n\n" + history

    merged = merge_revision_history(template, destination)

    unreleased = merged.split("## [1.0.0]")[0]
    assert unreleased.split("\n")[2:] == [
        "## [Unreleased]",
        "### Added",
        "- A",
        "### Changed",
        "### Deprecated",
        "### Removed",
        "### Fixed",
        "- B",
        "",
        "### Security",
        "",
        "",
    ]
    assert merged.endswith(history)
    assert "stale template entry" not in merged


def test_item_with_fenced_code_survives_as_one_entry():
    template = "# Changelog\n\n## [Unreleased]\n### Added\n"
    destination = text("""
        # Changelog

        ## [Unreleased]
        ### Fixed
        - Config loading
          ```ruby
          - not an item
          ### not a heading
          ```
        - Second fix
    """)

    merged = merge_revision_history(template, destination)

    assert text("""
        ### Fixed
        - Config loading
          ```ruby
          - not an item
          ### not a heading
          ```
        - Second fix

        ### Security
    """) in merged


def test_named_block_and_trailing_statements_are_classified():
    nodes = parse_ruby("""
        appraise "rails-7" do
          gem "rails", "~> 7.0"
        end
        puts "done"
        counter = 2
    """).statements

    sections = classify_all(nodes, appraisals_recipe())

    assert [s.type for s in sections] == ["appraise", "unclassified"]
    assert sections[0].name == "rails-7"
    assert sections[1].nodes == (nodes[1], nodes[2])


def test_workspace_merge_round_trip(workspace_factory, monkeypatch):
    root = (
        workspace_factory.with_config({"self_dependency": "kettle-dev"})
        .with_file(
            "template/Gemfile",
            """
            # frozen_string_literal: true
            source "https://rubygems.org"
            gem "kettle-dev"
            gem "rake"
            if ENV["CI"]
              gem "ci-only"
            end
            """,
        )
        .with_file(
            "Gemfile",
            """
            # frozen_string_literal: true
            source "https://rubygems.org"

            # Local tools
            gem "pry"
            """,
        )
        .build()
    )
    app = create_test_app(root)

    with SpyBus().patch(monkeypatch):
        app.run_merge(root / "template/Gemfile", root / "Gemfile")

    merged = (root / "Gemfile").read_text()
    assert "# Local tools\ngem \"pry\"\n" in merged
    assert 'gem "rake"' in merged
    assert "kettle-dev" not in merged
    assert "ci-only" not in merged
    assert merged.count('source "https://rubygems.org"') == 1


GEMFILE_TEMPLATE = """\
# frozen_string_literal: true

source "https://rubygems.org"

gem "rake", "~> 13.0"
gem "rubocop", require: false
eval_gemfile "gemfiles/modular/style.gemfile"
"""

GEMSPEC_TEMPLATE = """\
Gem::Specification.new do |spec|
  spec.name = "template-gem"
  spec.version = "0.1.0"
  spec.summary = "🍲"
  spec.add_development_dependency "rake", "~> 13.0"
end
"""


@pytest.mark.parametrize(
    "kind, template, destination",
    [
        (
            "gemfile",
            GEMFILE_TEMPLATE,
            'source "https://rubygems.org"\n\n# Local tools\ngem "pry"\ngem "rake", "~> 12.0"\n',
        ),
        (
            "gemspec",
            GEMSPEC_TEMPLATE,
            text("""
                Gem::Specification.new do |spec|
                  spec.name = "my-gem"
                  spec.version = MyGem::VERSION
                  spec.summary = "Mine"
                  spec.add_dependency "zeitwerk"
                end
            """),
        ),
    ],
)
def test_manifest_merge_is_idempotent(kind, template, destination):
    once = merge_file(kind, template, destination)
    twice = merge_file(kind, template, once)

    assert once != destination
    assert twice == once
