from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from kore.core.exceptions import TransientStoreError, UniqueConstraintViolation
from kore.core.relationships import MuteDuration, Relationship, RelationshipKind
from kore.models.block import Block
from kore.models.mute import Mute


def block_to_relationship(row: Block) -> Relationship:
    return Relationship(
        kind=RelationshipKind.BLOCK,
        source_user_id=row.blocker_id,
        target_user_id=row.blocked_id,
        created_at=row.created_at,
    )


def mute_to_relationship(row: Mute) -> Relationship:
    return Relationship(
        kind=RelationshipKind.MUTE,
        source_user_id=row.muter_id,
        target_user_id=row.muted_id,
        created_at=row.created_at,
        expires_at=row.expires_at,
        duration=MuteDuration(row.mute_duration),
    )


class SqlRelationshipStore:
    """
    Blocks and mutes on top of one SQLAlchemy session.

    Every write commits on its own. Failed statements are rolled back before
    the error leaves, so the session stays usable for the re-fetch that
    follows a lost insert race.
    """

    def __init__(self, db: Session):
        self.db = db

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------
    def _model(self, kind: RelationshipKind):
        if kind is RelationshipKind.BLOCK:
            return Block, Block.blocker_id, Block.blocked_id, block_to_relationship
        return Mute, Mute.muter_id, Mute.muted_id, mute_to_relationship

    def _fail(self, exc: DBAPIError, operation: str):
        self.db.rollback()
        logger.error(f"Relationship store {operation} failed: {exc}")
        raise TransientStoreError(f"{operation} failed") from exc

    # --------------------------------------------------
    # Contract
    # --------------------------------------------------
    def insert_relationship(
        self,
        kind: RelationshipKind,
        source_user_id: str,
        target_user_id: str,
        expires_at: Optional[datetime],
        duration: Optional[MuteDuration],
        created_at: datetime,
    ) -> Relationship:
        if kind is RelationshipKind.BLOCK:
            row = Block(
                blocker_id=source_user_id,
                blocked_id=target_user_id,
                created_at=created_at,
            )
            to_relationship = block_to_relationship
        else:
            row = Mute(
                muter_id=source_user_id,
                muted_id=target_user_id,
                mute_duration=(duration or MuteDuration.PERMANENT).value,
                expires_at=expires_at,
                created_at=created_at,
            )
            to_relationship = mute_to_relationship

        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except IntegrityError as exc:
            self.db.rollback()
            # Foreign key failures share the exception type; only a
            # colliding row counts as a duplicate
            if self.find_relationship(kind, source_user_id, target_user_id) is None:
                raise
            raise UniqueConstraintViolation(
                f"{kind.value} {source_user_id} -> {target_user_id} already exists"
            ) from exc
        except DBAPIError as exc:
            self._fail(exc, "insert")

        return to_relationship(row)

    def find_relationship(
        self, kind: RelationshipKind, source_user_id: str, target_user_id: str
    ) -> Optional[Relationship]:
        model, source_col, target_col, to_relationship = self._model(kind)
        try:
            row = (
                self.db.query(model)
                .filter(source_col == source_user_id, target_col == target_user_id)
                .first()
            )
        except DBAPIError as exc:
            self._fail(exc, "lookup")

        return to_relationship(row) if row is not None else None

    def delete_relationship(
        self, kind: RelationshipKind, source_user_id: str, target_user_id: str
    ) -> int:
        model, source_col, target_col, _ = self._model(kind)
        try:
            removed = (
                self.db.query(model)
                .filter(source_col == source_user_id, target_col == target_user_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except DBAPIError as exc:
            self._fail(exc, "delete")

        return removed

    def list_relationships_by_source(
        self, kind: RelationshipKind, source_user_id: str, limit: int, offset: int
    ) -> List[Relationship]:
        model, source_col, _, to_relationship = self._model(kind)
        try:
            rows = (
                self.db.query(model)
                .filter(source_col == source_user_id)
                .order_by(model.created_at.desc(), model.id.desc())
                .limit(limit)
                .offset(offset)
                .all()
            )
        except DBAPIError as exc:
            self._fail(exc, "list")

        return [to_relationship(row) for row in rows]

    # --------------------------------------------------
    # Compaction only
    # --------------------------------------------------
    def delete_expired_mutes(self, now: datetime) -> int:
        try:
            removed = (
                self.db.query(Mute)
                .filter(Mute.expires_at.is_not(None), Mute.expires_at <= now)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except DBAPIError as exc:
            self._fail(exc, "compaction")

        return removed
