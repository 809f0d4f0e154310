from __future__ import annotations

from gridsync.domain.flatten import (
    List,
    Record,
    Scalar,
    extract_headers,
    extract_keys,
    flatten_record,
    to_node,
)


def test_to_node_tags_values() -> None:
    node = to_node({"id": 1, "tags": ["a"], "meta": {"city": "NY"}})

    assert node == Record(
        fields=(
            ("id", Scalar(1)),
            ("tags", List(items=(Scalar("a"),))),
            ("meta", Record(fields=(("city", Scalar("NY")),))),
        )
    )


def test_nested_keys_are_lifted_without_prefix() -> None:
    record = {"id": 1, "meta": {"city": "NY", "geo": {"lat": 1.5}}, "name": "x"}

    assert extract_keys(to_node(record)) == ["id", "city", "lat", "name"]
    assert flatten_record(record) == {"id": 1, "city": "NY", "lat": 1.5, "name": "x"}


def test_empty_nested_record_keeps_its_own_key() -> None:
    assert extract_keys(to_node({"id": 1, "meta": {}})) == ["id", "meta"]


def test_lists_are_rendered_as_text() -> None:
    record = {"tags": ["a", None, 3], "pairs": [{"k": 1}]}

    assert flatten_record(record) == {"tags": "a, , 3", "pairs": "k=1"}


def test_headers_come_from_the_first_record() -> None:
    records = [{"id": 1, "attributes": {"code": "A"}}, {"id": 2, "other": True}]

    assert extract_headers(records) == ["id", "code"]
    assert extract_headers([]) == []
