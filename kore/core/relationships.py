"""
Directed user-to-user moderation relationships (blocks and mutes).

Blocks are permanent until removed. Mutes may carry an expiry; an expired
mute row is left in place and simply stops counting as active when it is
read (lazy expiration). Nothing here deletes expired rows on its own, see
``kore.core.mute_compaction`` for the optional purge.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, List, Optional, Protocol, Tuple

from loguru import logger

from kore.core.exceptions import InvalidArgument, UniqueConstraintViolation
from kore.utils.clock import utc_now


Clock = Callable[[], datetime]


class RelationshipKind(str, Enum):
    BLOCK = "block"
    MUTE = "mute"


class MuteDuration(str, Enum):
    PERMANENT = "permanent"
    HOURS_24 = "24h"
    DAYS_7 = "7d"
    DAYS_30 = "30d"


MUTE_DURATION_DELTAS = {
    MuteDuration.PERMANENT: None,
    MuteDuration.HOURS_24: timedelta(hours=24),
    MuteDuration.DAYS_7: timedelta(days=7),
    MuteDuration.DAYS_30: timedelta(days=30),
}


@dataclass(frozen=True)
class Relationship:
    kind: RelationshipKind
    source_user_id: str
    target_user_id: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    duration: Optional[MuteDuration] = None

    def is_active(self, now: datetime) -> bool:
        if self.kind is RelationshipKind.BLOCK:
            return True
        return self.expires_at is None or self.expires_at > now


class RelationshipStore(Protocol):
    def insert_relationship(
        self,
        kind: RelationshipKind,
        source_user_id: str,
        target_user_id: str,
        expires_at: Optional[datetime],
        duration: Optional[MuteDuration],
        created_at: datetime,
    ) -> Relationship:
        ...

    def find_relationship(
        self, kind: RelationshipKind, source_user_id: str, target_user_id: str
    ) -> Optional[Relationship]:
        ...

    def delete_relationship(
        self, kind: RelationshipKind, source_user_id: str, target_user_id: str
    ) -> int:
        ...

    def list_relationships_by_source(
        self, kind: RelationshipKind, source_user_id: str, limit: int, offset: int
    ) -> List[Relationship]:
        ...


def _lookup(enum_cls, value):
    # Values first ("block"), then member names ("BLOCK")
    try:
        return enum_cls(value)
    except ValueError:
        if isinstance(value, str) and value in enum_cls.__members__:
            return enum_cls[value]
        raise


def parse_kind(kind) -> RelationshipKind:
    try:
        return _lookup(RelationshipKind, kind)
    except ValueError:
        raise InvalidArgument(f"Unknown relationship kind: {kind!r}")


def parse_duration(duration) -> MuteDuration:
    if duration is None:
        return MuteDuration.PERMANENT
    try:
        return _lookup(MuteDuration, duration)
    except ValueError:
        raise InvalidArgument(f"Unknown mute duration: {duration!r}")


def mute_expiration(duration: MuteDuration, now: datetime) -> Optional[datetime]:
    delta = MUTE_DURATION_DELTAS[duration]
    if delta is None:
        return None
    return now + delta


class RelationshipManager:
    """
    Create, remove, check and list blocks and mutes for one store.

    The manager keeps no state between calls, so one instance per request
    is fine. Concurrent creators of the same (kind, source, target) rely on
    the store's unique constraint: the loser's insert fails, and the manager
    answers with the row the winner wrote.
    """

    def __init__(self, store: RelationshipStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    # --------------------------------------------------
    # Generic operations
    # --------------------------------------------------
    def get_or_create(
        self,
        kind,
        source_user_id: str,
        target_user_id: str,
        duration=None,
    ) -> Tuple[Relationship, bool]:
        """
        Return ``(relationship, created)``.

        An existing row is returned untouched, even an expired mute: its
        duration and expiry are never refreshed by a repeated call.
        """
        kind = parse_kind(kind)

        if kind is RelationshipKind.BLOCK:
            if duration is not None and parse_duration(duration) is not MuteDuration.PERMANENT:
                raise InvalidArgument("Blocks do not take a duration")
            mute_duration = None
        else:
            mute_duration = parse_duration(duration)

        existing = self.store.find_relationship(kind, source_user_id, target_user_id)
        if existing is not None:
            logger.debug(
                f"{kind.value} {source_user_id} -> {target_user_id} already exists"
            )
            return existing, False

        now = self.clock()
        expires_at = (
            mute_expiration(mute_duration, now)
            if mute_duration is not None
            else None
        )

        try:
            created = self.store.insert_relationship(
                kind,
                source_user_id,
                target_user_id,
                expires_at=expires_at,
                duration=mute_duration,
                created_at=now,
            )
        except UniqueConstraintViolation:
            # Lost a race with a concurrent create for the same key
            winner = self.store.find_relationship(kind, source_user_id, target_user_id)
            if winner is None:
                raise
            logger.info(
                f"Concurrent {kind.value} {source_user_id} -> {target_user_id}; "
                "returning the existing row"
            )
            return winner, False

        return created, True

    def create(
        self,
        kind,
        source_user_id: str,
        target_user_id: str,
        duration=None,
    ) -> Relationship:
        relationship, _ = self.get_or_create(
            kind, source_user_id, target_user_id, duration=duration
        )
        return relationship

    def get(self, kind, source_user_id: str, target_user_id: str) -> Optional[Relationship]:
        """Raw lookup; expired mutes are returned as stored."""
        return self.store.find_relationship(parse_kind(kind), source_user_id, target_user_id)

    def delete(self, kind, source_user_id: str, target_user_id: str) -> bool:
        kind = parse_kind(kind)
        removed = self.store.delete_relationship(kind, source_user_id, target_user_id)
        return removed > 0

    def exists(self, kind, source_user_id: str, target_user_id: str) -> bool:
        relationship = self.store.find_relationship(
            parse_kind(kind), source_user_id, target_user_id
        )
        if relationship is None:
            return False
        return relationship.is_active(self.clock())

    def list_targets(
        self,
        kind,
        source_user_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> List[str]:
        """
        Target user ids, most recent first.

        Mutes are filtered after the page is read, so expired rows still
        take up slots and a page can come back shorter than ``limit`` while
        later pages hold active mutes. Callers page on offset, not on the
        number of ids returned.
        """
        kind = parse_kind(kind)
        if limit < 1:
            raise InvalidArgument("limit must be at least 1")
        if offset < 0:
            raise InvalidArgument("offset must not be negative")

        rows = self.store.list_relationships_by_source(kind, source_user_id, limit, offset)
        if kind is RelationshipKind.BLOCK:
            return [row.target_user_id for row in rows]

        now = self.clock()
        return [row.target_user_id for row in rows if row.is_active(now)]

    # --------------------------------------------------
    # Blocks
    # --------------------------------------------------
    def create_block(self, source_user_id: str, target_user_id: str) -> Relationship:
        return self.create(RelationshipKind.BLOCK, source_user_id, target_user_id)

    def remove_block(self, source_user_id: str, target_user_id: str) -> bool:
        return self.delete(RelationshipKind.BLOCK, source_user_id, target_user_id)

    def is_blocked(self, source_user_id: str, target_user_id: str) -> bool:
        return self.exists(RelationshipKind.BLOCK, source_user_id, target_user_id)

    def list_blocked(self, source_user_id: str, limit: int = 50, offset: int = 0) -> List[str]:
        return self.list_targets(RelationshipKind.BLOCK, source_user_id, limit, offset)

    # --------------------------------------------------
    # Mutes
    # --------------------------------------------------
    def create_mute(
        self, source_user_id: str, target_user_id: str, duration=None
    ) -> Relationship:
        return self.create(
            RelationshipKind.MUTE, source_user_id, target_user_id, duration=duration
        )

    def remove_mute(self, source_user_id: str, target_user_id: str) -> bool:
        return self.delete(RelationshipKind.MUTE, source_user_id, target_user_id)

    def is_muted(self, source_user_id: str, target_user_id: str) -> bool:
        return self.exists(RelationshipKind.MUTE, source_user_id, target_user_id)

    def list_muted(self, source_user_id: str, limit: int = 50, offset: int = 0) -> List[str]:
        return self.list_targets(RelationshipKind.MUTE, source_user_id, limit, offset)
