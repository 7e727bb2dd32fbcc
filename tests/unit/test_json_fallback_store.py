"""Tests for JsonFileFallbackStore."""

import json

import pytest

from flowreader.domain.entities.progress import ReadingSessionRecord, SessionCheckpoint
from flowreader.infrastructure.json_fallback_store import JsonFileFallbackStore


@pytest.fixture
def store(tmp_path):
    """Create a store in a temporary directory."""
    return JsonFileFallbackStore(tmp_path / "unsaved")


@pytest.fixture
def checkpoint():
    """Create a sample checkpoint."""
    return SessionCheckpoint(document_id="doc/1", word_index=35, speed=300)


@pytest.fixture
def record():
    """Create a sample session record."""
    return ReadingSessionRecord(document_id="doc/1", start_index=0, end_index=35, speed=300, duration_seconds=7)


def test_directory_is_created(tmp_path):
    """Test that the stash directory is created on demand."""
    JsonFileFallbackStore(tmp_path / "a" / "b")
    assert (tmp_path / "a" / "b").is_dir()


def test_stash_and_pop_checkpoint(store, checkpoint):
    """Test that a stashed checkpoint is popped exactly once."""
    store.stash_checkpoint(checkpoint)

    assert store.pop_checkpoint("doc/1") == checkpoint
    assert store.pop_checkpoint("doc/1") is None


def test_later_stash_replaces_checkpoint(store, checkpoint):
    """Test that only the latest checkpoint is kept."""
    store.stash_checkpoint(checkpoint)
    store.stash_checkpoint(checkpoint.model_copy(update={"word_index": 60}))

    assert store.pop_checkpoint("doc/1").word_index == 60


def test_stash_and_pop_records(store, record):
    """Test that session records accumulate until popped."""
    store.stash_session_record(record)
    store.stash_session_record(record.model_copy(update={"start_index": 35, "end_index": 70}))

    records = store.pop_session_records("doc/1")
    assert [(r.start_index, r.end_index) for r in records] == [(0, 35), (35, 70)]
    assert store.pop_session_records("doc/1") == []


def test_file_removed_when_empty(store, checkpoint, record):
    """Test that nothing is left on disk once everything is popped."""
    store.stash_checkpoint(checkpoint)
    store.stash_session_record(record)
    assert len(list(store.directory.iterdir())) == 1

    store.pop_checkpoint("doc/1")
    store.pop_session_records("doc/1")
    assert list(store.directory.iterdir()) == []


def test_documents_are_kept_apart(store, checkpoint):
    """Test that stashes for different documents do not mix."""
    store.stash_checkpoint(checkpoint)
    store.stash_checkpoint(SessionCheckpoint(document_id="doc-2", word_index=5, speed=300))

    assert store.pop_checkpoint("doc-2").word_index == 5
    assert store.pop_checkpoint("doc/1").word_index == 35


def test_corrupt_file_is_treated_as_empty(store, checkpoint):
    """Test that an unreadable stash does not break the store."""
    store.stash_checkpoint(checkpoint)
    path = next(store.directory.iterdir())
    path.write_text("{not json", encoding="utf-8")

    assert store.pop_checkpoint("doc/1") is None
    assert store.pop_session_records("doc/1") == []


def test_non_object_file_is_treated_as_empty(store, checkpoint):
    """Test that a stash holding a JSON list is ignored and replaced."""
    path = store._path("doc/1")
    path.write_text("[]", encoding="utf-8")

    assert store.pop_checkpoint("doc/1") is None
    assert store.pop_session_records("doc/1") == []
    assert not path.exists()

    store.stash_checkpoint(checkpoint)
    assert store.pop_checkpoint("doc/1") == checkpoint


def test_invalid_entries_are_dropped(store, record):
    """Test that invalid stashed entries are skipped and removed from disk."""
    path = store._path("doc/1")
    path.write_text(
        json.dumps(
            {
                "checkpoint": {"word_index": "far"},
                "sessions": [{"bogus": 1}, record.model_dump(mode="json")],
            }
        ),
        encoding="utf-8",
    )

    assert store.pop_checkpoint("doc/1") is None
    assert store.pop_session_records("doc/1") == [record]
    assert not path.exists()
    assert store.pop_session_records("doc/1") == []
