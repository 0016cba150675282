"""
Structured (JSON) formatter tests.

Known fields go to the top level; everything else is folded into the message.
"""

from __future__ import annotations

import orjson
import pytest

from duolog.entry import EntryPool
from duolog.exceptions import DuologError, SerializationError
from duolog.formatters import StructuredFormatter
from duolog.levels import Level

IDENTITY = {"app_id": "svc", "host": "h1", "instance_id": "i1"}


@pytest.fixture
def formatter() -> StructuredFormatter:
    return StructuredFormatter(dict(IDENTITY))


def _render(formatter: StructuredFormatter, record) -> dict:
    line = formatter.format(record)
    assert line.endswith("\n")
    assert "\n" not in line[:-1]
    return orjson.loads(line)


class TestDocumentShape:
    def test_scenario_document(self, formatter, make_record) -> None:
        doc = _render(formatter, make_record("hello", fields={"user": "bob", "count": 3}))
        assert doc == {
            "@timestamp": "2019-01-31T04:48:20.259Z",
            "@version": "1",
            "app_id": "svc",
            "host": "h1",
            "instance_id": "i1",
            "level": "INFO",
            "message": "[controllers/character.py:99] hello count=3 user=bob",
        }

    def test_keys_are_sorted(self, formatter, make_record) -> None:
        line = formatter.format(make_record("x"))
        keys = list(orjson.loads(line))
        assert keys == sorted(keys)
        assert line.startswith('{"@timestamp":')

    def test_version_default_can_be_overridden(self, make_record) -> None:
        doc = _render(StructuredFormatter({"@version": "2"}), make_record("x"))
        assert doc["@version"] == "2"

    def test_constructor_does_not_mutate_input(self) -> None:
        fields = dict(IDENTITY)
        StructuredFormatter(fields)
        assert "@version" not in fields

    @pytest.mark.parametrize(
        "level, name",
        [
            (Level.DEBUG, "DEBUG"),
            (Level.INFO, "INFO"),
            (Level.WARN, "WARN"),
            (Level.ERROR, "ERROR"),
            (Level.FATAL, "FATAL"),
            (Level.PANIC, "PANIC"),
            (35, "UNKNOWN"),
        ],
    )
    def test_level_field(self, formatter, make_record, level, name) -> None:
        assert _render(formatter, make_record("x", level=level))["level"] == name

    def test_custom_keys_and_format(self, make_record) -> None:
        formatter = StructuredFormatter(
            dict(IDENTITY),
            field_key_time="ts",
            field_key_msg="msg",
            field_key_level="severity",
            timestamp_format="%Y-%m-%d %H:%M:%S",
        )
        doc = _render(formatter, make_record("x", caller=None))
        assert doc["ts"] == "2019-01-31 04:48:20"
        assert doc["msg"] == "x"
        assert doc["severity"] == "INFO"


class TestMessage:
    def test_without_caller(self, formatter, make_record) -> None:
        doc = _render(formatter, make_record("hello", fields={"a": 1}, caller=None))
        assert doc["message"] == "hello a=1"

    def test_extras_only(self, formatter, make_record) -> None:
        doc = _render(formatter, make_record("", fields={"a": "x y"}, caller=None))
        assert doc["message"] == 'a="x y"'

    def test_caller_only(self, formatter, make_record) -> None:
        doc = _render(formatter, make_record(""))
        assert doc["message"] == "[controllers/character.py:99]"

    def test_extras_quote_empty(self, make_record) -> None:
        formatter = StructuredFormatter(dict(IDENTITY), quote_empty_fields=True)
        doc = _render(formatter, make_record("x", fields={"e": ""}, caller=None))
        assert doc["message"] == 'x e=""'


class TestPartitioning:
    def test_known_field_is_top_level_only(self, formatter, make_record) -> None:
        """A record field named like a known field overrides it and is not an extra"""
        doc = _render(formatter, make_record("x", fields={"host": "override", "user": "bob"}, caller=None))
        assert doc["host"] == "override"
        assert doc["message"] == "x user=bob"
        assert "host=" not in doc["message"]

    def test_category_is_always_known(self, formatter, make_record) -> None:
        doc = _render(formatter, make_record("x", fields={"category": "billing"}, caller=None))
        assert doc["category"] == "billing"
        assert doc["message"] == "x"

    def test_configured_category(self, make_record) -> None:
        formatter = StructuredFormatter({**IDENTITY, "category": "audit"})
        assert _render(formatter, make_record("x"))["category"] == "audit"

    def test_errors_are_stringified(self, formatter, make_record) -> None:
        record = make_record(
            "x",
            fields={"app_id": RuntimeError("no app"), "err": ValueError("bad thing")},
            caller=None,
        )
        doc = _render(formatter, record)
        assert doc["app_id"] == "no app"
        assert doc["message"] == 'x err="bad thing"'

    def test_unknown_fields_never_reach_top_level(self, formatter, make_record) -> None:
        doc = _render(formatter, make_record("x", fields={"user": "bob", "n": 1}, caller=None))
        assert "user" not in doc
        assert "n" not in doc

    def test_disable_sorting_keeps_all_extras(self, make_record) -> None:
        formatter = StructuredFormatter(dict(IDENTITY), disable_sorting=True)
        doc = _render(formatter, make_record("x", fields={"b": 2, "a": 1}, caller=None))
        assert sorted(doc["message"].split(" ")[1:]) == ["a=1", "b=2"]


class TestFailures:
    def test_unserializable_known_field_raises(self, make_record) -> None:
        formatter = StructuredFormatter({**IDENTITY, "meta": None})
        with pytest.raises(SerializationError) as exc_info:
            formatter.format(make_record("x", fields={"meta": object()}))
        assert isinstance(exc_info.value, DuologError)
        assert exc_info.value.code == "SERIALIZATION_ERROR"
        assert str(exc_info.value).startswith("Failed to marshal fields to JSON")

    def test_unserializable_extra_is_stringified(self, formatter, make_record) -> None:
        """Extras are rendered as text, so any object survives"""
        doc = _render(formatter, make_record("x", fields={"obj": {1, 2}}, caller=None))
        assert doc["message"].startswith("x obj=")

    def test_scratch_entry_returned_on_failure(self, make_record) -> None:
        pool = EntryPool()
        formatter = StructuredFormatter({**IDENTITY, "meta": None}, pool=pool)
        with pytest.raises(SerializationError):
            formatter.format(make_record("x", fields={"meta": object()}))
        assert len(pool) == 1
        assert dict(pool.acquire().fields) == {}

    def test_scratch_entry_returned_on_success(self, make_record) -> None:
        pool = EntryPool()
        formatter = StructuredFormatter(dict(IDENTITY), pool=pool)
        formatter.format(make_record("x", fields={"a": 1}))
        formatter.format(make_record("y", fields={"b": 2}))
        assert len(pool) == 1

    def test_later_records_unaffected_by_failure(self, make_record) -> None:
        formatter = StructuredFormatter({**IDENTITY, "meta": None})
        with pytest.raises(SerializationError):
            formatter.format(make_record("x", fields={"meta": object()}))
        doc = _render(formatter, make_record("y", caller=None))
        assert doc["message"] == "y"
        assert doc["meta"] is None
