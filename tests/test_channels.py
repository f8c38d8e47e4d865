"""
tests/test_channels.py — Channel Append, Rename & Soft-Delete Tests
====================================================================
"""

from __future__ import annotations

import pytest

from clubhouse.errors import ChannelDeleted, ChannelNotFound, NotAuthorized
from clubhouse.services import club_service, message_service
from conftest import ADMIN, CREATOR, STRANGER, create_club


class TestAddChannel:
    def test_positions_follow_default_channel(self, db_engine, club_id):
        assert club_service.add_channel(db_engine, club_id, name="general", caller=CREATOR) == 1
        assert club_service.add_channel(db_engine, club_id, name="random", caller=ADMIN) == 2

        names = [ch.name for ch in club_service.get_club(db_engine, club_id).channels]
        assert names == ["default", "general", "random"]

    def test_empty_name_allowed(self, db_engine, club_id):
        position = club_service.add_channel(db_engine, club_id, name="", caller=CREATOR)
        assert club_service.get_club(db_engine, club_id).channels[position].name == ""

    def test_stranger_rejected(self, db_engine, club_id):
        with pytest.raises(NotAuthorized):
            club_service.add_channel(db_engine, club_id, name="x", caller=STRANGER)
        assert len(club_service.get_club(db_engine, club_id).channels) == 1


class TestRenameChannel:
    def test_rename(self, db_engine, club_id):
        club_service.rename_channel(db_engine, club_id, 0, name="lobby", caller=ADMIN)
        assert club_service.get_club(db_engine, club_id).channels[0].name == "lobby"

    @pytest.mark.parametrize("index", [1, 5, -1])
    def test_out_of_range(self, db_engine, club_id, index):
        with pytest.raises(ChannelNotFound):
            club_service.rename_channel(db_engine, club_id, index, name="x", caller=CREATOR)

    def test_stranger_rejected(self, db_engine, club_id):
        with pytest.raises(NotAuthorized):
            club_service.rename_channel(db_engine, club_id, 0, name="x", caller=STRANGER)
        assert club_service.get_club(db_engine, club_id).channels[0].name == "default"


class TestDeleteChannel:
    def test_soft_delete_keeps_slot(self, db_engine, club_id):
        club_service.add_channel(db_engine, club_id, name="second", caller=CREATOR)
        club_service.delete_channel(db_engine, club_id, 0, caller=CREATOR)

        channels = club_service.get_club(db_engine, club_id).channels
        assert len(channels) == 2
        assert channels[0].name == "default"
        assert channels[0].deleted is True
        assert channels[1].deleted is False

    def test_new_channels_never_reuse_deleted_slots(self, db_engine, club_id):
        club_service.delete_channel(db_engine, club_id, 0, caller=CREATOR)
        assert club_service.add_channel(db_engine, club_id, name="next", caller=CREATOR) == 1

    def test_messages_stay_readable(self, db_engine, club_id, clock):
        message_service.post_message(db_engine, club_id, 0, "kept", sender=STRANGER, clock=clock)
        club_service.delete_channel(db_engine, club_id, 0, caller=ADMIN)
        assert message_service.get_message(db_engine, club_id, 0, 0).text == "kept"

    def test_out_of_range(self, db_engine, club_id):
        with pytest.raises(ChannelNotFound):
            club_service.delete_channel(db_engine, club_id, 1, caller=CREATOR)

    def test_stranger_rejected(self, db_engine, club_id):
        with pytest.raises(NotAuthorized):
            club_service.delete_channel(db_engine, club_id, 0, caller=STRANGER)
        assert club_service.get_club(db_engine, club_id).channels[0].deleted is False


class TestDeletedChannelPolicy:
    def test_deleted_channel_stays_mutable_by_default(self, db_engine, club_id, clock):
        club_service.delete_channel(db_engine, club_id, 0, caller=CREATOR)
        club_service.rename_channel(db_engine, club_id, 0, name="renamed", caller=CREATOR)
        club_service.delete_channel(db_engine, club_id, 0, caller=CREATOR)
        assert message_service.post_message(
            db_engine, club_id, 0, "still here", sender=STRANGER, clock=clock
        ) == 0

        channel = club_service.get_club(db_engine, club_id).channels[0]
        assert channel.name == "renamed"
        assert channel.deleted is True
        assert channel.message_count == 1

    def test_guard_rejects_mutation(self, db_engine, guarded_registry, clock):
        club_id = create_club(db_engine).club_id
        message_service.post_message(db_engine, club_id, 0, "before", sender=STRANGER, clock=clock)
        club_service.delete_channel(db_engine, club_id, 0, caller=CREATOR)

        with pytest.raises(ChannelDeleted):
            club_service.rename_channel(db_engine, club_id, 0, name="x", caller=CREATOR)
        with pytest.raises(ChannelDeleted):
            club_service.delete_channel(db_engine, club_id, 0, caller=CREATOR)
        with pytest.raises(ChannelDeleted):
            message_service.post_message(db_engine, club_id, 0, "after", sender=STRANGER,
                                         clock=clock)

        channel = club_service.get_club(db_engine, club_id).channels[0]
        assert channel.name == "default"
        assert channel.message_count == 1

    def test_guard_still_allows_message_delete(self, db_engine, guarded_registry, clock):
        club_id = create_club(db_engine).club_id
        message_service.post_message(db_engine, club_id, 0, "bye", sender=STRANGER, clock=clock)
        club_service.delete_channel(db_engine, club_id, 0, caller=CREATOR)

        message_service.delete_message(db_engine, club_id, 0, 0, caller=STRANGER)
        assert message_service.get_message(db_engine, club_id, 0, 0).deleted is True

    def test_guard_leaves_live_channels_alone(self, db_engine, guarded_registry):
        club_id = create_club(db_engine).club_id
        club_service.add_channel(db_engine, club_id, name="other", caller=CREATOR)
        club_service.delete_channel(db_engine, club_id, 0, caller=CREATOR)
        club_service.rename_channel(db_engine, club_id, 1, name="fine", caller=CREATOR)
        assert club_service.get_club(db_engine, club_id).channels[1].name == "fine"
