from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from adapters.sqlite_storage import SQLiteStorage
from core.errors import CorruptRecordError
from core.models import NewPost, Post
from core.store import PostStore


def _post(post_id: str, votes: int = 0) -> Post:
    return Post(
        id=post_id,
        url=f"https://example.com/{post_id}",
        language="es",
        title=None,
        author="Grace",
        votes=votes,
        timestamp=datetime(2024, 6, 2, 17, 0, tzinfo=timezone.utc),
        score=1.5,
    )


def test_fresh_database_loads_as_none(tmp_path: Path) -> None:
    assert SQLiteStorage(str(tmp_path / "posts.db")).load_all() is None


def test_empty_but_initialized_database_loads_as_empty(tmp_path: Path) -> None:
    storage = SQLiteStorage(str(tmp_path / "posts.db"))
    storage.save_all([])
    assert storage.load_all() == []


def test_save_all_replaces_previous_rows(tmp_path: Path) -> None:
    storage = SQLiteStorage(str(tmp_path / "posts.db"))
    storage.save_all([_post("a"), _post("b")])
    storage.save_all([_post("c", votes=2), _post("a", votes=-1)])

    assert storage.load_all() == [_post("c", votes=2), _post("a", votes=-1)]


def test_not_a_database_is_corrupt(tmp_path: Path) -> None:
    path = tmp_path / "posts.db"
    path.write_bytes(b"this is definitely not sqlite" * 100)

    with pytest.raises(CorruptRecordError):
        SQLiteStorage(str(path)).load_all()


def test_store_round_trip_through_sqlite(tmp_path: Path) -> None:
    db_path = str(tmp_path / "data" / "posts.db")
    store = PostStore.open(SQLiteStorage(db_path))
    post = store.add(NewPost(url="https://example.com/a", title="A"))
    store.upvote(post.id)
    store.upvote(post.id)
    store.close()

    reopened = PostStore.open(SQLiteStorage(db_path))
    reloaded = reopened.find_by_url("https://example.com/a")
    assert reloaded is not None
    assert reloaded.id == post.id
    assert reloaded.votes == 2
    assert reloaded.title == "A"
    assert reloaded.timestamp == post.timestamp


def test_store_quarantines_corrupt_database(tmp_path: Path) -> None:
    path = tmp_path / "posts.db"
    path.write_bytes(b"garbage" * 200)

    store = PostStore.open(SQLiteStorage(str(path)))

    assert store.degraded
    assert len(list(tmp_path.glob("posts.db.corrupt-*"))) == 1
    assert SQLiteStorage(str(path)).load_all() == []
