from datetime import timedelta

import pytest

from kore.core.exceptions import InvalidArgument
from kore.core.relationships import (
    MuteDuration,
    RelationshipKind,
    parse_duration,
    parse_kind,
)
from kore.models.block import Block
from kore.models.mute import Mute


# --------------------------------------------------
# Creation
# --------------------------------------------------
def test_create_block_is_idempotent(db, manager, make_user, clock):
    alice, bob = make_user("Alice"), make_user("Bob")

    first, created_first = manager.get_or_create("block", alice.id, bob.id)
    clock.advance(minutes=5)
    second, created_second = manager.get_or_create("block", alice.id, bob.id)

    assert created_first is True
    assert created_second is False
    assert first == second
    assert db.query(Block).count() == 1


def test_repeat_create_does_not_write(manager, store, make_user, monkeypatch):
    alice, bob = make_user(), make_user()
    manager.create_mute(alice.id, bob.id, MuteDuration.DAYS_7)

    def fail_insert(*args, **kwargs):
        raise AssertionError("insert should not be called for an existing mute")

    monkeypatch.setattr(store, "insert_relationship", fail_insert)

    again = manager.create_mute(alice.id, bob.id, MuteDuration.HOURS_24)
    assert again.duration is MuteDuration.DAYS_7


@pytest.mark.parametrize(
    "duration, delta",
    [
        (MuteDuration.HOURS_24, timedelta(hours=24)),
        (MuteDuration.DAYS_7, timedelta(days=7)),
        (MuteDuration.DAYS_30, timedelta(days=30)),
        ("24h", timedelta(hours=24)),
    ],
)
def test_mute_expiry_follows_duration(manager, make_user, clock, duration, delta):
    alice, bob = make_user(), make_user()

    mute = manager.create_mute(alice.id, bob.id, duration)

    assert mute.created_at == clock()
    assert mute.expires_at == clock() + delta


def test_mute_defaults_to_permanent(db, manager, make_user):
    alice, bob = make_user(), make_user()

    mute = manager.create_mute(alice.id, bob.id)

    assert mute.duration is MuteDuration.PERMANENT
    assert mute.expires_at is None
    assert db.query(Mute).one().mute_duration == "permanent"


def test_block_has_no_expiry(manager, make_user):
    alice, bob = make_user(), make_user()

    relationship = manager.create_block(alice.id, bob.id)

    assert relationship.kind is RelationshipKind.BLOCK
    assert relationship.expires_at is None
    assert relationship.duration is None


def test_unknown_kind_rejected_before_io(manager, store, monkeypatch):
    def no_io(*args, **kwargs):
        raise AssertionError("store must not be touched")

    monkeypatch.setattr(store, "find_relationship", no_io)

    with pytest.raises(InvalidArgument):
        manager.create("follow", "a", "b")
    with pytest.raises(InvalidArgument):
        manager.exists("follow", "a", "b")


@pytest.mark.parametrize("kind", ["block", "BLOCK", RelationshipKind.BLOCK])
def test_kind_accepts_values_and_member_names(kind):
    assert parse_kind(kind) is RelationshipKind.BLOCK


@pytest.mark.parametrize("kind", ["Block", "follow", "", None])
def test_kind_rejects_other_spellings(kind):
    with pytest.raises(InvalidArgument):
        parse_kind(kind)


def test_duration_accepts_member_names(manager, make_user, clock):
    alice, bob = make_user(), make_user()

    assert parse_duration("HOURS_24") is MuteDuration.HOURS_24
    mute = manager.create_mute(alice.id, bob.id, "DAYS_7")
    assert mute.expires_at == clock() + timedelta(days=7)


def test_unknown_duration_rejected(manager, make_user):
    alice, bob = make_user(), make_user()

    with pytest.raises(InvalidArgument):
        manager.create_mute(alice.id, bob.id, "1y")


def test_block_with_duration_rejected(manager, make_user):
    alice, bob = make_user(), make_user()

    with pytest.raises(InvalidArgument):
        manager.create("block", alice.id, bob.id, duration=MuteDuration.DAYS_7)


def test_self_block_is_representable(manager, make_user):
    alice = make_user()

    manager.create_block(alice.id, alice.id)

    assert manager.is_blocked(alice.id, alice.id) is True


def test_block_is_directional(manager, make_user):
    alice, bob = make_user(), make_user()

    manager.create_block(alice.id, bob.id)

    assert manager.is_blocked(alice.id, bob.id) is True
    assert manager.is_blocked(bob.id, alice.id) is False


# --------------------------------------------------
# Expiration
# --------------------------------------------------
def test_expired_mute_is_inactive_but_still_stored(manager, store, make_user, clock):
    alice, bob = make_user(), make_user()
    manager.create_mute(alice.id, bob.id, MuteDuration.HOURS_24)

    clock.advance(hours=25)

    assert manager.is_muted(alice.id, bob.id) is False
    raw = store.find_relationship(RelationshipKind.MUTE, alice.id, bob.id)
    assert raw is not None
    assert raw.expires_at < clock()


def test_mute_active_until_exact_expiry(manager, make_user, clock):
    alice, bob = make_user(), make_user()
    manager.create_mute(alice.id, bob.id, MuteDuration.HOURS_24)

    clock.advance(hours=23, minutes=59)
    assert manager.is_muted(alice.id, bob.id) is True

    clock.advance(minutes=1)
    assert manager.is_muted(alice.id, bob.id) is False


def test_permanent_mute_never_expires(manager, make_user, clock):
    alice, bob = make_user(), make_user()
    manager.create_mute(alice.id, bob.id, MuteDuration.PERMANENT)

    clock.advance(days=365 * 50)

    assert manager.is_muted(alice.id, bob.id) is True


def test_blocks_never_expire(manager, make_user, clock):
    alice, bob = make_user(), make_user()
    manager.create_block(alice.id, bob.id)

    clock.advance(days=365 * 50)

    assert manager.is_blocked(alice.id, bob.id) is True


def test_recreate_after_expiry_returns_stale_mute(db, manager, make_user, clock):
    alice, bob = make_user(), make_user()
    original = manager.create_mute(alice.id, bob.id, MuteDuration.HOURS_24)

    clock.advance(hours=48)
    again, created = manager.get_or_create(
        "mute", alice.id, bob.id, duration=MuteDuration.DAYS_30
    )

    assert created is False
    assert again == original
    assert manager.is_muted(alice.id, bob.id) is False
    assert db.query(Mute).count() == 1


def test_unmute_then_mute_renews(manager, make_user, clock):
    alice, bob = make_user(), make_user()
    manager.create_mute(alice.id, bob.id, MuteDuration.HOURS_24)
    clock.advance(hours=48)

    assert manager.remove_mute(alice.id, bob.id) is True
    renewed = manager.create_mute(alice.id, bob.id, MuteDuration.DAYS_7)

    assert renewed.expires_at == clock() + timedelta(days=7)
    assert manager.is_muted(alice.id, bob.id) is True


# --------------------------------------------------
# Deletion
# --------------------------------------------------
def test_delete_twice(manager, make_user):
    alice, bob = make_user(), make_user()
    manager.create_block(alice.id, bob.id)

    assert manager.remove_block(alice.id, bob.id) is True
    assert manager.remove_block(alice.id, bob.id) is False
    assert manager.is_blocked(alice.id, bob.id) is False


def test_delete_missing_mute_returns_false(manager, make_user):
    alice, bob = make_user(), make_user()

    assert manager.remove_mute(alice.id, bob.id) is False


def test_delete_only_touches_its_kind(manager, make_user):
    alice, bob = make_user(), make_user()
    manager.create_block(alice.id, bob.id)
    manager.create_mute(alice.id, bob.id)

    manager.remove_block(alice.id, bob.id)

    assert manager.is_blocked(alice.id, bob.id) is False
    assert manager.is_muted(alice.id, bob.id) is True


def test_deleting_user_cascades(db, manager, make_user):
    alice, bob = make_user(), make_user()
    manager.create_block(alice.id, bob.id)
    manager.create_mute(bob.id, alice.id)

    db.delete(bob)
    db.commit()

    assert db.query(Block).count() == 0
    assert db.query(Mute).count() == 0


# --------------------------------------------------
# Listing
# --------------------------------------------------
def test_list_blocked_most_recent_first(manager, make_user, clock):
    alice = make_user()
    targets = [make_user() for _ in range(4)]

    for target in targets:
        manager.create_block(alice.id, target.id)
        clock.advance(minutes=1)

    expected = [t.id for t in reversed(targets)]
    assert manager.list_blocked(alice.id) == expected
    assert manager.list_blocked(alice.id, limit=2, offset=1) == expected[1:3]


def test_list_only_returns_own_relationships(manager, make_user):
    alice, bob, carol = make_user(), make_user(), make_user()
    manager.create_block(alice.id, bob.id)
    manager.create_block(carol.id, alice.id)

    assert manager.list_blocked(alice.id) == [bob.id]
    assert manager.list_muted(alice.id) == []


def test_mute_page_keeps_expired_slots(manager, make_user, clock):
    alice = make_user()
    targets = [make_user() for _ in range(5)]
    durations = [
        MuteDuration.PERMANENT,
        MuteDuration.PERMANENT,
        MuteDuration.DAYS_7,
        MuteDuration.HOURS_24,
        MuteDuration.HOURS_24,
    ]

    for target, duration in zip(targets, durations):
        manager.create_mute(alice.id, target.id, duration)
        clock.advance(minutes=1)

    # The two newest mutes lapse
    clock.advance(hours=25)

    first_page = manager.list_muted(alice.id, limit=3, offset=0)
    second_page = manager.list_muted(alice.id, limit=3, offset=3)

    assert first_page == [targets[2].id]
    assert len(first_page) < 3
    assert second_page == [targets[1].id, targets[0].id]


def test_list_rejects_bad_paging(manager):
    with pytest.raises(InvalidArgument):
        manager.list_blocked("someone", limit=0)
    with pytest.raises(InvalidArgument):
        manager.list_muted("someone", offset=-1)


def test_get_returns_expired_mute_as_stored(manager, make_user, clock):
    alice, bob = make_user(), make_user()
    manager.create_mute(alice.id, bob.id, MuteDuration.HOURS_24)
    clock.advance(days=2)

    raw = manager.get("mute", alice.id, bob.id)

    assert raw is not None
    assert raw.is_active(clock()) is False
    assert manager.get("block", alice.id, bob.id) is None
