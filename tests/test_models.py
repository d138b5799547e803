from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from core.errors import CorruptRecordError
from core.models import Page, Post, format_timestamp, parse_timestamp, post_from_record


def test_parse_timestamp_accepts_z_and_offsets() -> None:
    expected = datetime(2024, 5, 6, 7, 8, 9, 500000, tzinfo=timezone.utc)
    assert parse_timestamp("2024-05-06T07:08:09.500Z") == expected
    assert parse_timestamp("2024-05-06T09:08:09.500+02:00") == expected


def test_naive_timestamps_are_read_as_utc() -> None:
    assert parse_timestamp("2024-05-06T07:08:09") == datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


def test_format_timestamp_normalizes_to_utc() -> None:
    value = datetime(2024, 5, 6, 9, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(value) == "2024-05-06T07:00:00Z"


def test_record_with_missing_optional_fields() -> None:
    post = post_from_record(
        {"id": "x", "url": "https://example.com/x", "timestamp": "2024-01-01T00:00:00.000Z", "votes": 4}
    )
    assert post.title is None
    assert post.author is None
    assert post.language == "en"
    assert post.votes == 4


@pytest.mark.parametrize("votes", [True, 1.5, None])
def test_record_with_bad_votes_is_corrupt(votes: object) -> None:
    with pytest.raises(CorruptRecordError):
        post_from_record(
            {"id": "x", "url": "https://example.com/x", "timestamp": "2024-01-01T00:00:00Z", "votes": votes}
        )


@pytest.mark.parametrize(
    "extra",
    [{"score": "abc"}, {"score": {}}, {"score": False}, {"title": 5}, {"author": ["x"]}, {"language": 1}],
)
def test_record_with_badly_typed_fields_is_corrupt(extra: dict) -> None:
    record = {"id": "x", "url": "https://example.com/x", "timestamp": "2024-01-01T00:00:00Z", "votes": 1}
    with pytest.raises(CorruptRecordError):
        post_from_record({**record, **extra})


def test_record_without_score_defaults_to_zero() -> None:
    post = post_from_record(
        {"id": "x", "url": "https://example.com/x", "timestamp": "2024-01-01T00:00:00Z", "score": None}
    )
    assert post.score == 0.0


def test_page_has_more() -> None:
    post = Post(
        id="x",
        url="https://example.com/x",
        language="en",
        title=None,
        author=None,
        votes=0,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    assert Page(items=(post,), total_count=3, page=1, limit=1).has_more
    assert not Page(items=(post,), total_count=3, page=3, limit=1).has_more
