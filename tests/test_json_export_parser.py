import json
from datetime import datetime, timezone

import pytest

from errors import InvalidExportShapeError
from json_export_parser import (
    extract_text_content,
    parse_telegram_json,
    validate_telegram_json,
)


SCENARIO = (
    '{"name":"Test","messages":['
    '{"type":"message","date_unixtime":"1700000000","from":"Alice","text":"hello"},'
    '{"type":"service","date_unixtime":"1700000001","text":"joined"}]}'
)


def test_scenario_one_message_one_service():
    parsed = parse_telegram_json(json.loads(SCENARIO))

    assert parsed.total_items == 2
    assert parsed.group_name == "Test"
    assert len(parsed.messages) == 1

    msg = parsed.messages[0]
    assert msg.sender_name == "Alice"
    assert msg.content == "hello"
    assert msg.ts_ms == 1700000000 * 1000
    assert msg.timestamp_inferred is False


def test_unixtime_as_number():
    data = {"messages": [{"type": "message", "date_unixtime": 1700000123, "text": "x"}]}
    msg = parse_telegram_json(data).messages[0]
    assert msg.ts_ms == 1700000123000


def test_falls_back_to_iso_date_as_utc():
    data = {"messages": [{"type": "message", "date": "2024-01-05T10:20:30", "text": "x"}]}
    msg = parse_telegram_json(data).messages[0]
    assert msg.timestamp == datetime(2024, 1, 5, 10, 20, 30, tzinfo=timezone.utc)


def test_invalid_unixtime_uses_date_field():
    data = {"messages": [
        {"type": "message", "date_unixtime": "abc", "date": "2024-01-05T10:20:30", "text": "x"},
    ]}
    msg = parse_telegram_json(data).messages[0]
    assert msg.timestamp == datetime(2024, 1, 5, 10, 20, 30, tzinfo=timezone.utc)


def test_record_without_any_date_is_skipped():
    data = {"messages": [
        {"type": "message", "text": "no date"},
        {"type": "message", "date": "not a date", "text": "bad date"},
        {"type": "message", "date_unixtime": "1700000000", "text": "ok"},
    ]}
    parsed = parse_telegram_json(data)
    assert [m.content for m in parsed.messages] == ["ok"]
    assert parsed.total_items == 3


@pytest.mark.parametrize("bad_date", [
    ["2024-01-05T10:00:00"],
    ["2024-01-05", "2024-01-06"],
    {"value": "2024-01-05"},
    True,
])
def test_non_scalar_date_skips_only_that_record(bad_date):
    data = {"messages": [
        {"type": "message", "date": bad_date, "text": "bad"},
        {"type": "message", "date": "2024-01-06T08:00:00", "text": "good"},
    ]}
    parsed = parse_telegram_json(data)

    assert [m.content for m in parsed.messages] == ["good"]
    assert isinstance(parsed.messages[0].timestamp, datetime)
    assert parsed.total_items == 2


@pytest.mark.parametrize("text", ["", "   ", "\n\t", [], [{"type": "bold", "text": "  "}]])
def test_empty_text_is_skipped(text):
    data = {"messages": [
        {"type": "message", "date_unixtime": "1700000000", "from": "Alice", "text": text},
    ]}
    parsed = parse_telegram_json(data)
    assert parsed.messages == ()
    assert parsed.total_items == 1


def test_non_message_types_are_skipped():
    data = {"messages": [
        {"type": "service", "action": "pin_message", "date_unixtime": "1700000000", "text": "pinned"},
        {"type": "unsupported", "date_unixtime": "1700000000", "text": "?"},
        "not even a dict",
    ]}
    parsed = parse_telegram_json(data)
    assert parsed.messages == ()
    assert parsed.total_items == 3


def test_content_is_trimmed_and_sender_optional():
    data = {"messages": [
        {"type": "message", "date_unixtime": "1700000000", "text": "  padded  "},
        {"type": "message", "date_unixtime": "1700000001", "from": "", "text": "anon"},
    ]}
    msgs = parse_telegram_json(data).messages
    assert msgs[0].content == "padded"
    assert msgs[0].sender_name is None
    assert msgs[1].sender_name is None


def test_document_order_is_preserved():
    data = {"messages": [
        {"type": "message", "date_unixtime": str(1700000000 + i), "text": f"m{i}"}
        for i in range(5)
    ]}
    assert [m.content for m in parse_telegram_json(data).messages] == ["m0", "m1", "m2", "m3", "m4"]


def test_default_group_name():
    parsed = parse_telegram_json({"messages": []})
    assert parsed.group_name == "Unknown Group"
    assert parsed.total_items == 0


@pytest.mark.parametrize("data", [{}, {"messages": None}, {"messages": {"a": 1}}, [], "x"])
def test_invalid_shape(data):
    assert validate_telegram_json(data) is False
    with pytest.raises(InvalidExportShapeError):
        parse_telegram_json(data)


def test_extract_text_content_concatenates_fragments():
    text = [
        "Check ",
        {"type": "bold", "text": "this"},
        " out: ",
        {"type": "link", "text": "https://example.com"},
        {"type": "custom_emoji"},
    ]
    assert extract_text_content(text) == "Check this out: https://example.com"


def test_extract_text_content_other_types():
    assert extract_text_content("plain") == "plain"
    assert extract_text_content(None) == ""
    assert extract_text_content(42) == ""
