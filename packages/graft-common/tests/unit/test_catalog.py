from graft.common import MessageCatalog


def test_from_yaml_flattens_nested_ids():
    catalog = MessageCatalog.from_yaml(
        "merge:\n  failed: 'Merge of {target} failed'\n  nested:\n    deep: x\n"
    )

    assert catalog.get("merge.failed") == "Merge of {target} failed"
    assert catalog.get("merge.nested.deep") == "x"
    assert "merge.failed" in catalog
    assert "merge" not in catalog


def test_malformed_yaml_gives_empty_catalog():
    catalog = MessageCatalog.from_yaml("merge: [unclosed")

    assert catalog.get("merge.failed") == "merge.failed"


def test_default_catalog_covers_operation_messages():
    catalog = MessageCatalog.default()

    for msg_id in (
        "merge.failed",
        "merge.written",
        "merge.unchanged",
        "strip.failed",
        "gemspec.failed",
        "filter.failed",
        "parse.failed",
        "cli.unknown_kind",
        "cli.option.quiet",
    ):
        assert msg_id in catalog, msg_id
    assert catalog.get("cli.section").format(type="source", name="x").startswith("source ")
