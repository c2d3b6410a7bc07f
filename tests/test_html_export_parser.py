from datetime import datetime, timedelta, timezone

from html_export_parser import parse_telegram_html, parse_title_datetime

from export_samples import html_document, html_message


def test_sender_carry_forward_across_joined_messages():
    html = html_document(
        html_message(1, "first", sender="Alice"),
        html_message(2, "second", joined=True),
        html_message(3, "third", joined=True),
    )
    parsed = parse_telegram_html(html)

    assert [m.content for m in parsed.messages] == ["first", "second", "third"]
    assert [m.sender_name for m in parsed.messages] == ["Alice", "Alice", "Alice"]


def test_sender_changes_when_new_name_appears():
    html = html_document(
        html_message(1, "a1", sender="Alice"),
        html_message(2, "a2", joined=True),
        html_message(3, "b1", sender="Bob"),
        html_message(4, "b2", joined=True),
    )
    senders = [m.sender_name for m in parse_telegram_html(html).messages]
    assert senders == ["Alice", "Alice", "Bob", "Bob"]


def test_sender_unknown_before_first_name():
    html = html_document(html_message(1, "orphan", joined=True))
    assert parse_telegram_html(html).messages[0].sender_name is None


def test_attachment_only_message_still_sets_sender():
    html = html_document(
        html_message(1, None, sender="Carol"),
        html_message(2, "caption later", joined=True),
    )
    parsed = parse_telegram_html(html)
    assert parsed.total_items == 2
    assert len(parsed.messages) == 1
    assert parsed.messages[0].sender_name == "Carol"


def test_empty_text_is_skipped():
    html = html_document(
        html_message(1, "   ", sender="Alice"),
        html_message(2, "ok", joined=True),
    )
    parsed = parse_telegram_html(html)
    assert [m.content for m in parsed.messages] == ["ok"]
    assert parsed.total_items == 2


def test_service_messages_are_not_counted():
    parsed = parse_telegram_html(html_document(html_message(1, "hi", sender="Ana")))
    assert parsed.total_items == 1


def test_day_first_title_parsing():
    html = html_document(html_message(1, "x", title="15.03.2024 14:30:00", sender="A"))
    ts = parse_telegram_html(html).messages[0].timestamp
    assert (ts.year, ts.month, ts.day, ts.hour, ts.minute, ts.second) == (2024, 3, 15, 14, 30, 0)


def test_title_without_seconds():
    assert parse_title_datetime("05.02.2024 09:07") == datetime(2024, 2, 5, 9, 7, 0, tzinfo=timezone.utc)


def test_title_with_utc_offset_is_converted():
    dt = parse_title_datetime("01.08.2017 05:46:52 UTC+10:00")
    assert dt == datetime(2017, 7, 31, 19, 46, 52, tzinfo=timezone.utc)


def test_title_generic_fallback():
    assert parse_title_datetime("2024-03-15T14:30:00") == datetime(2024, 3, 15, 14, 30, tzinfo=timezone.utc)


def test_unparseable_title_skips_record():
    html = html_document(
        html_message(1, "bad", title="garbage", sender="A"),
        html_message(2, "good", joined=True),
    )
    parsed = parse_telegram_html(html)
    assert [m.content for m in parsed.messages] == ["good"]
    assert parse_title_datetime("garbage") is None
    assert parse_title_datetime("") is None


def test_missing_date_falls_back_to_now_and_is_flagged():
    before = datetime.now(timezone.utc)
    html = html_document(html_message(1, "no date", title=None, sender="A"))
    msg = parse_telegram_html(html).messages[0]
    after = datetime.now(timezone.utc)

    assert msg.timestamp_inferred is True
    assert before - timedelta(seconds=1) <= msg.timestamp <= after + timedelta(seconds=1)


def test_line_breaks_are_kept():
    html = html_document(html_message(1, "line one<br>line two", sender="A"))
    assert parse_telegram_html(html).messages[0].content == "line one\nline two"


def test_forwarded_header_does_not_replace_sender():
    forwarded = (
        '<div class="message default clearfix joined" id="message2"><div class="body">'
        '<div class="pull_right date details" title="15.03.2024 14:31:00">14:31</div>'
        '<div class="forwarded body">'
        '<div class="from_name">Bob<span class="date details" title="01.01.2024 10:00:00"> 01.01.2024</span></div>'
        '<div class="text">forwarded text</div>'
        "</div></div></div>"
    )
    html = html_document(html_message(1, "mine", sender="Alice"), forwarded)
    msgs = parse_telegram_html(html).messages

    assert msgs[1].content == "forwarded text"
    assert msgs[1].sender_name == "Alice"
    assert msgs[1].timestamp == datetime(2024, 3, 15, 14, 31, tzinfo=timezone.utc)


def test_group_name_from_page_header():
    html = html_document(html_message(1, "x", sender="A"), group_name="Python Devs")
    assert parse_telegram_html(html).group_name == "Python Devs"


def test_group_name_falls_back_to_title_then_default():
    html = '<html><head><title>Only Title</title></head><body></body></html>'
    assert parse_telegram_html(html).group_name == "Only Title"

    bare = '<div class="message default clearfix"><div class="text">x</div></div>'
    assert parse_telegram_html(bare).group_name == "Unknown Group"
