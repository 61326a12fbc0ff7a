# tests/test_channels.py
"""Tests for chat channels and messages."""

import pytest

from townsquare.schemas.channel import ChannelCreate
from townsquare.services.channel_service import (
    create_channel,
    list_channels,
    list_messages,
    send_message,
)
from townsquare.services.errors import Conflict, InvalidInput, PermissionDenied


def test_owner_creates_lowercase_unique_channels(db_session, community, owner, no_limit) -> None:
    channel = create_channel(
        db_session, owner.id, ChannelCreate(community_id=community.id, name="Harvest"), no_limit
    )
    assert channel.name == "harvest"
    with pytest.raises(Conflict):
        create_channel(
            db_session,
            owner.id,
            ChannelCreate(community_id=community.id, name="HARVEST"),
            no_limit,
        )
    names = [item.name for item in list_channels(db_session, owner.id, community.id)]
    assert names == ["general", "harvest"]


def test_members_cannot_create_channels(db_session, community, member, no_limit) -> None:
    with pytest.raises(PermissionDenied):
        create_channel(
            db_session, member.id, ChannelCreate(community_id=community.id, name="mine"), no_limit
        )


def test_messages_are_listed_newest_first(db_session, community, owner, member, no_limit) -> None:
    channel_id = list_channels(db_session, owner.id, community.id)[0].id
    first = send_message(db_session, owner.id, channel_id, "Morning all", no_limit)
    second = send_message(db_session, member.id, channel_id, "  Hello!  ", no_limit)
    assert second.content == "Hello!"
    assert second.author.name == "Max Member"

    page = list_messages(db_session, member.id, channel_id, limit=1)
    assert [message.id for message in page.items] == [second.id]
    assert page.has_more is True
    rest = list_messages(db_session, member.id, channel_id, limit=1, cursor=page.next_cursor)
    assert [message.id for message in rest.items] == [first.id]


def test_outsiders_cannot_chat(db_session, community, owner, outsider, no_limit) -> None:
    channel_id = list_channels(db_session, owner.id, community.id)[0].id
    with pytest.raises(PermissionDenied):
        send_message(db_session, outsider.id, channel_id, "Let me in", no_limit)
    with pytest.raises(PermissionDenied):
        list_messages(db_session, outsider.id, channel_id)


def test_blank_messages_are_rejected(db_session, community, owner, no_limit) -> None:
    channel_id = list_channels(db_session, owner.id, community.id)[0].id
    with pytest.raises(InvalidInput):
        send_message(db_session, owner.id, channel_id, "   ", no_limit)
