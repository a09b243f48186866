"""Unit tests for TimelineRecorder."""

from __future__ import annotations

import logging
from datetime import timedelta
from unittest.mock import patch
from uuid import uuid4

import pytest
from django.db import DatabaseError
from freezegun import freeze_time

from modules.exchanges.constants import TimelineAction
from modules.exchanges.repositories.django_repository import TimelineDjangoRepository
from modules.exchanges.services.timeline import SYSTEM_ACTOR, TimelineRecorder
from tests.fakes import InMemoryTimelineRepository, StaticUserDirectory

pytestmark = pytest.mark.unit


def _recorder(users=None):
    repo = InMemoryTimelineRepository()
    directory = users or StaticUserDirectory({"u-init": "Asha Verma"})
    return TimelineRecorder(repo, directory), repo


class TestActorName:
    def test_known_actor_is_resolved(self):
        recorder, _ = _recorder()

        entry = recorder.add_entry(uuid4(), TimelineAction.CREATED, "x", "u-init")

        assert entry.actor_id == "u-init"
        assert entry.actor_name == "Asha Verma"

    def test_missing_actor_is_system(self):
        recorder, _ = _recorder()

        entry = recorder.add_entry(uuid4(), TimelineAction.COMPLETED, "done")

        assert entry.actor_id is None
        assert entry.actor_name == SYSTEM_ACTOR

    def test_unknown_actor_falls_back_to_id(self):
        recorder, _ = _recorder()

        entry = recorder.add_entry(uuid4(), TimelineAction.CREATED, "x", "u-ghost")

        assert entry.actor_name == "u-ghost"

    def test_directory_failure_does_not_block_entry(self):
        users = StaticUserDirectory(error=ConnectionError("directory down"))
        recorder, repo = _recorder(users)

        entry = recorder.add_entry(uuid4(), TimelineAction.CREATED, "x", "u-init")

        assert entry.actor_name == "u-init"
        assert repo.entries == [entry]


class TestEntries:
    def test_metadata_defaults_to_empty(self):
        recorder, _ = _recorder()

        entry = recorder.add_entry(uuid4(), TimelineAction.CREATED, "x", "u-init")

        assert entry.metadata == {}

    def test_storage_failure_is_logged_not_raised(self, caplog):
        recorder, repo = _recorder()

        with patch.object(repo, "add", side_effect=DatabaseError("down")):
            with caplog.at_level(logging.ERROR):
                entry = recorder.add_entry(
                    uuid4(), TimelineAction.DELIVERY_UPDATED, "x", "u-init"
                )

        assert entry is None
        assert repo.entries == []
        assert any(
            "exchange.timeline_write_failed" in r.getMessage() for r in caplog.records
        )

    def test_entries_listed_newest_first(self):
        recorder, _ = _recorder()
        exchange_id = uuid4()

        with freeze_time("2026-03-01 10:00:00") as frozen:
            recorder.add_entry(exchange_id, TimelineAction.CREATED, "a", "u-init")
            frozen.tick(timedelta(minutes=5))
            recorder.add_entry(exchange_id, TimelineAction.APPROVED, "b", "u-init")
        recorder.add_entry(uuid4(), TimelineAction.CREATED, "other", "u-init")

        entries = recorder.list_entries(exchange_id)

        assert [e.action for e in entries] == [
            TimelineAction.APPROVED,
            TimelineAction.CREATED,
        ]


class TestPersistedEntries:
    def test_saved_entry_cannot_be_modified(self, pending_exchange):
        recorder = TimelineRecorder(
            TimelineDjangoRepository(), StaticUserDirectory()
        )
        entry = recorder.add_entry(
            pending_exchange.id, TimelineAction.REJECTED, "Exchange rejected"
        )

        entry.description = "rewritten"
        with pytest.raises(ValueError, match="immutable"):
            entry.save()
