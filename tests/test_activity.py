from datetime import datetime, timezone

from activity import activity_window, build_activity_heatmap

NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def _cell(report, day, hour):
    return report.heatmap[day * 24 + hour]


def test_counts_by_weekday_and_hour():
    timestamps = [
        datetime(2024, 1, 7, 10, 5, tzinfo=timezone.utc),   # domingo
        datetime(2024, 1, 7, 10, 55, tzinfo=timezone.utc),
        datetime(2024, 1, 8, 23, 30, tzinfo=timezone.utc),  # lunes
        datetime(2023, 11, 1, 9, 0, tzinfo=timezone.utc),   # fuera de ventana
    ]
    report = build_activity_heatmap(timestamps, days=30, now=NOW)

    assert len(report.heatmap) == 168
    assert _cell(report, 0, 10).count == 2
    assert _cell(report, 1, 23).count == 1
    assert report.total_messages == 3
    assert report.max_count == 2


def test_naive_timestamps_are_treated_as_utc():
    report = build_activity_heatmap([datetime(2024, 1, 9, 6, 0)], days=7, now=NOW)
    assert _cell(report, 2, 6).count == 1


def test_empty_heatmap_has_max_count_one():
    report = build_activity_heatmap([], days=30, now=NOW)
    assert report.total_messages == 0
    assert report.max_count == 1
    assert all(c.count == 0 for c in report.heatmap)


def test_window_and_dict_shape():
    start, end = activity_window(7, NOW)
    assert end == NOW
    assert start == datetime(2024, 1, 3, 12, 0, tzinfo=timezone.utc)

    payload = build_activity_heatmap([], days=7, now=NOW).to_dict()
    assert payload["heatmap"][0] == {"day": 0, "hour": 0, "count": 0}
    assert payload["dateRange"]["end"] == NOW.isoformat()
