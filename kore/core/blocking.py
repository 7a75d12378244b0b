from typing import Iterable, List, Tuple

from kore.core.relationships import RelationshipManager


def block_status(
    manager: RelationshipManager,
    viewer_id: str,
    other_id: str,
) -> Tuple[bool, bool]:
    """
    Returns (viewer blocked other, other blocked viewer).
    """
    return (
        manager.is_blocked(viewer_id, other_id),
        manager.is_blocked(other_id, viewer_id),
    )


def is_blocked_between(
    manager: RelationshipManager,
    user_a_id: str,
    user_b_id: str,
) -> bool:
    """
    Returns True if either user has blocked the other.
    """
    return any(block_status(manager, user_a_id, user_b_id))


def visible_user_ids(
    manager: RelationshipManager,
    viewer_id: str,
    candidate_ids: Iterable[str],
) -> List[str]:
    """
    Drop candidates the viewer should not see: blocked either way, or
    actively muted by the viewer. Order is preserved.
    """
    visible = []
    for candidate_id in candidate_ids:
        if is_blocked_between(manager, viewer_id, candidate_id):
            continue
        if manager.is_muted(viewer_id, candidate_id):
            continue
        visible.append(candidate_id)
    return visible
