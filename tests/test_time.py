from datetime import datetime, timezone

import pytest

from snapshot_merge.utils.time import format_timestamp, is_after, parse_datetime


def test_parse_datetime_accepts_github_timestamps():
    dt = parse_datetime("2024-01-02T03:04:05Z")
    assert dt == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_parse_datetime_defaults_naive_values_to_utc():
    assert parse_datetime("2024-01-02T03:04:05").tzinfo == timezone.utc
    assert parse_datetime(datetime(2024, 1, 2)).tzinfo == timezone.utc
    assert parse_datetime("") is None


def test_parse_datetime_rejects_unknown_types():
    with pytest.raises(ValueError):
        parse_datetime(object())


def test_format_timestamp_is_github_style():
    assert (
        format_timestamp(datetime(2024, 1, 2, 3, 4, 5, 999, tzinfo=timezone.utc))
        == "2024-01-02T03:04:05Z"
    )


def test_is_after_is_strict_and_blank_checkpoint_admits_everything():
    assert is_after("2024-01-02T00:00:00Z", "")
    assert is_after("2024-01-02T00:00:01Z", "2024-01-02T00:00:00Z")
    assert not is_after("2024-01-02T00:00:00Z", "2024-01-02T00:00:00Z")
    assert not is_after("2024-01-01T23:59:59Z", "2024-01-02T00:00:00Z")


def test_is_after_compares_chronologically_not_lexically():
    # ".500Z" sorts before "Z" as text but is half a second later.
    assert is_after("2024-01-02T00:00:00.500Z", "2024-01-02T00:00:00Z")
    assert not is_after("2024-01-02T01:00:00+02:00", "2024-01-02T00:00:00Z")


def test_is_after_never_admits_blank_or_unreadable_created_at():
    assert not is_after("", "2024-01-01T00:00:00Z")
    assert not is_after("yesterday", "2024-01-01T00:00:00Z")
    assert not is_after("", "")


def test_is_after_rejects_unreadable_checkpoint():
    with pytest.raises(ValueError):
        is_after("2024-01-02T00:00:00Z", "not-a-date")
