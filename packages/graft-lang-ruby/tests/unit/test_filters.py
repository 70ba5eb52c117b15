from graft.lang.ruby import StatementFilter, gemfile_recipe, gemspec_recipe, rakefile_recipe
from graft.test_utils import RecordingDiagnostics, parse_ruby, text


def test_filter_keeps_only_allowed_top_level_declarations():
    source = text("""
        # frozen_string_literal: true
        source "https://rubygems.org"
        git_source(:github) { |repo| "https://github.com/#{repo}.git" }
        gem "rails" # pinned
        if ENV["CI"]
          gem "ci-helper"
        end
        group :test do
          gem "rspec"
        end
        gem "kettle-dev" do
          puts "blocks are not allowed on gem"
        end
        eval_gemfile "modular/style.gemfile"
    """)

    filtered = StatementFilter(gemfile_recipe()).filter_to_scope(source)

    assert filtered == text("""
        source "https://rubygems.org"
        git_source(:github) { |repo| "https://github.com/#{repo}.git" }
        gem "rails" # pinned
        eval_gemfile "modular/style.gemfile"

    """)


def test_filter_returns_empty_string_when_nothing_is_eligible():
    source = 'puts "hi"\nVERSION = "1"\n'

    assert StatementFilter(gemfile_recipe()).filter_to_scope(source) == ""


def test_filter_matches_qualified_receiver_declarations():
    source = text("""
        require_relative "lib/my_gem/version"
        Gem::Specification.new do |spec|
          spec.name = "my_gem"
        end
        warn "done"
    """)

    filtered = StatementFilter(gemspec_recipe()).filter_to_scope(source)

    assert filtered.startswith('require_relative "lib/my_gem/version"\nGem::Specification.new do |spec|\n')
    assert "warn" not in filtered
    assert filtered.endswith("end\n\n")


def test_is_eligible_respects_block_allow_list():
    statements = parse_ruby("""
        desc "Build"
        task :build do
          sh "make"
        end
        import "tasks/docs.rake"
        sh "echo"
    """).statements
    rake_filter = StatementFilter(rakefile_recipe())

    assert [rake_filter.is_eligible(s) for s in statements] == [True, True, True, False]


def test_filter_fails_soft_on_parse_errors():
    diagnostics = RecordingDiagnostics()
    source = 'gem "a")\n'

    filtered = StatementFilter(gemfile_recipe(), diagnostics=diagnostics).filter_to_scope(source)

    assert filtered == source
    assert diagnostics.warnings[0]["id"] == "filter.failed"
    assert diagnostics.warnings[0]["params"]["target"] == "gemfile"
