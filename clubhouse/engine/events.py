"""
clubhouse.engine.events — ClubCreated Event Payload
====================================================

The one structured notification the core emits.  It snapshots the club
exactly as it stood at creation: no admins yet and a single channel.
Downstream consumers treat it as read-only.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

__all__ = ["CLUB_CREATED", "ClubCreated", "build_club_created"]

CLUB_CREATED = "club_created"


@dataclass(frozen=True, slots=True)
class ClubCreated:
    index: int
    id: str
    creator: str
    name: str
    logo: str
    description: str
    announcement: str
    type_tag: str
    threshold: int
    admins: tuple[str, ...] = ()
    channels: tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict:
        """JSON-ready dict; tuples become lists."""
        payload = asdict(self)
        payload["admins"] = list(self.admins)
        payload["channels"] = list(self.channels)
        return payload


def build_club_created(
    *,
    index: int,
    club_id: str,
    creator: str,
    name: str,
    logo: str,
    description: str,
    announcement: str,
    type_tag: str,
    threshold: int,
    default_channel_name: str,
) -> ClubCreated:
    """Construct the creation payload.  Admins are always empty here."""
    return ClubCreated(
        index=index,
        id=club_id,
        creator=creator,
        name=name,
        logo=logo,
        description=description,
        announcement=announcement,
        type_tag=type_tag,
        threshold=threshold,
        admins=(),
        channels=(default_channel_name,),
    )
