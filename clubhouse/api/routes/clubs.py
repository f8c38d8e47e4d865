"""
clubhouse.api.routes.clubs — Club, channel & message endpoints
===============================================================

Lookups are public; every write needs a bearer token whose ``sub`` is
the acting address.  Message content travels as UTF-8 text.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from clubhouse.api.deps import Caller, EngineDep, get_event_sink
from clubhouse.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, U64_MAX
from clubhouse.services import club_service, message_service, registry_service
from clubhouse.services.event_sink import EventSink
from clubhouse.services.snapshots import ClubSnapshot, MessageSnapshot

router = APIRouter(prefix="/clubs", tags=["clubs"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class ClubCreate(BaseModel):
    type_tag: str
    name: str
    logo: str = ""
    description: str = ""
    announcement: str = ""
    threshold: int = Field(0, ge=0, le=U64_MAX)
    default_channel_name: str
    fee: int | None = Field(None, ge=0, le=U64_MAX)


class ClubUpdate(BaseModel):
    name: str | None = None
    logo: str | None = None
    description: str | None = None
    announcement: str | None = None
    threshold: int | None = Field(None, ge=0, le=U64_MAX)


class AdminAdd(BaseModel):
    address: str


class ChannelCreate(BaseModel):
    name: str


class ChannelRename(BaseModel):
    name: str


class MessagePost(BaseModel):
    content: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _club_dict(c: ClubSnapshot) -> dict:
    return {
        "index": c.index,
        "id": c.id,
        "creator": c.creator,
        "admins": list(c.admins),
        "name": c.name,
        "logo": c.logo,
        "description": c.description,
        "announcement": c.announcement,
        "type_tag": c.type_tag,
        "threshold": c.threshold,
        "channels": [
            {
                "index": ch.index,
                "name": ch.name,
                "deleted": ch.deleted,
                "message_count": ch.message_count,
            }
            for ch in c.channels
        ],
    }


def _message_dict(m: MessageSnapshot) -> dict:
    return {
        "index": m.index,
        "sender": m.sender,
        "timestamp": m.timestamp,
        "content": m.text,
        "deleted": m.deleted,
    }


# ---------------------------------------------------------------------------
# Registry lookups (declared before /{club_id} so the paths don't collide)
# ---------------------------------------------------------------------------
@router.get("/by-index/{index}")
def lookup_by_index(index: int, engine: EngineDep):
    return {"index": index, "club_id": registry_service.lookup_by_index(engine, index)}


@router.get("/by-type")
def all_clubs_by_type(engine: EngineDep):
    return {"clubs_by_type": registry_service.clubs_by_type(engine)}


@router.get("/by-type/{type_tag:path}")
def lookup_by_type(type_tag: str, engine: EngineDep):
    return {"type_tag": type_tag, "club_ids": registry_service.lookup_by_type(engine, type_tag)}


@router.get("/by-owner/{address}")
def lookup_by_owner(address: str, engine: EngineDep):
    return {"owner": address, "club_ids": registry_service.lookup_by_owner(engine, address)}


# ---------------------------------------------------------------------------
# Clubs
# ---------------------------------------------------------------------------
@router.post("", status_code=201)
def create_club(
    body: ClubCreate,
    caller: Caller,
    engine: EngineDep,
    sink: Annotated[EventSink, Depends(get_event_sink)],
):
    created = club_service.create_club(
        engine,
        creator=caller,
        type_tag=body.type_tag,
        name=body.name,
        logo=body.logo,
        description=body.description,
        announcement=body.announcement,
        threshold=body.threshold,
        default_channel_name=body.default_channel_name,
        fee=body.fee,
        sink=sink,
    )
    return {"club_id": created.club_id, "event": created.event.to_payload()}


@router.get("/{club_id}")
def get_club(club_id: str, engine: EngineDep):
    return _club_dict(club_service.get_club(engine, club_id))


@router.patch("/{club_id}")
def update_club(club_id: str, body: ClubUpdate, caller: Caller, engine: EngineDep):
    fields = body.model_dump(exclude_none=True)
    club_service.update_club(engine, club_id, caller=caller, **fields)
    return _club_dict(club_service.get_club(engine, club_id))


@router.post("/{club_id}/admins", status_code=201)
def add_admin(club_id: str, body: AdminAdd, caller: Caller, engine: EngineDep):
    club_service.add_admin(engine, club_id, admin=body.address, caller=caller)
    return {"club_id": club_id, "address": body.address}


@router.delete("/{club_id}/admins/{address}", status_code=204)
def remove_admin(club_id: str, address: str, caller: Caller, engine: EngineDep):
    club_service.remove_admin(engine, club_id, admin=address, caller=caller)
    return None


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------
@router.post("/{club_id}/channels", status_code=201)
def add_channel(club_id: str, body: ChannelCreate, caller: Caller, engine: EngineDep):
    index = club_service.add_channel(engine, club_id, name=body.name, caller=caller)
    return {"club_id": club_id, "index": index}


@router.patch("/{club_id}/channels/{index}")
def rename_channel(
    club_id: str, index: int, body: ChannelRename, caller: Caller, engine: EngineDep
):
    club_service.rename_channel(engine, club_id, index, name=body.name, caller=caller)
    return {"club_id": club_id, "index": index, "name": body.name}


@router.delete("/{club_id}/channels/{index}", status_code=204)
def delete_channel(club_id: str, index: int, caller: Caller, engine: EngineDep):
    club_service.delete_channel(engine, club_id, index, caller=caller)
    return None


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------
@router.post("/{club_id}/channels/{index}/messages", status_code=201)
def post_message(
    club_id: str, index: int, body: MessagePost, caller: Caller, engine: EngineDep
):
    position = message_service.post_message(
        engine, club_id, index, body.content, sender=caller
    )
    return {"club_id": club_id, "channel": index, "index": position}


@router.get("/{club_id}/channels/{index}/messages")
def list_messages(
    club_id: str,
    index: int,
    engine: EngineDep,
    offset: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=0, le=MAX_PAGE_SIZE),
):
    msgs = message_service.get_messages(engine, club_id, index, offset=offset, limit=limit)
    return {"messages": [_message_dict(m) for m in msgs]}


@router.delete("/{club_id}/channels/{index}/messages/{message_index}", status_code=204)
def delete_message(
    club_id: str, index: int, message_index: int, caller: Caller, engine: EngineDep
):
    message_service.delete_message(engine, club_id, index, message_index, caller=caller)
    return None
