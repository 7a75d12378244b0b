from loguru import logger

from kore.core.relationship_store import SqlRelationshipStore
from kore.database import SessionLocal
from kore.utils.clock import utc_now


def compact_expired_mutes(store: SqlRelationshipStore, clock=utc_now) -> int:
    """
    Delete mute rows whose expiry has passed.

    Optional housekeeping: reads already treat these rows as absent, so
    running it or not changes storage size only.
    """
    now = clock()
    removed = store.delete_expired_mutes(now)
    logger.info(f"Compacted {removed} expired mute(s) older than {now.isoformat()}")
    return removed


def main():
    db = SessionLocal()
    try:
        compact_expired_mutes(SqlRelationshipStore(db))
    finally:
        db.close()


if __name__ == "__main__":
    main()
