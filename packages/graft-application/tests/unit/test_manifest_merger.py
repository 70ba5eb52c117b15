from graft.app import ManifestMerger
from graft.lang.ruby import gemfile_recipe
from graft.spec import Provenance
from graft.test_utils import RecordingDiagnostics


class ExplodingMerger:
    def merge(self, *args, **kwargs):
        raise RuntimeError("merger exploded")


def test_merge_document_reports_provenance():
    merger = ManifestMerger(gemfile_recipe())

    document = merger.merge_document('source "R"\ngem "a"\n', 'gem "a"\n')

    assert document.count(Provenance.INSERTED) == 1
    # The inserted run is separated from the entries that follow it.
    assert document.text == 'source "R"\n\ngem "a"\n'


def test_builtin_declarations_are_dropped_from_the_destination():
    destination = 'git_source(:github) { |repo| "https://github.com/#{repo}.git" }\ngem "a"\n'

    assert ManifestMerger(gemfile_recipe()).merge('gem "a"\n', destination) == 'gem "a"\n'


def test_self_dependency_is_removed_after_merging():
    merger = ManifestMerger(gemfile_recipe(), self_dependency="my-gem")

    merged = merger.merge('source "R"\ngem "my-gem"\ngem "b"\n', 'gem "b"\n')

    assert merged == 'source "R"\n\ngem "b"\n'


def test_merge_failure_returns_destination_and_reports():
    diagnostics = RecordingDiagnostics()
    merger = ManifestMerger(gemfile_recipe(), merger=ExplodingMerger(), diagnostics=diagnostics)

    assert merger.merge('gem "a"\n', 'gem "b"\n') == 'gem "b"\n'
    assert diagnostics.warnings == [
        {"id": "merge.failed", "params": {"target": "gemfile", "error": "merger exploded"}}
    ]
