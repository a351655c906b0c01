"""
Friendship edits applied to a working copy of the users mapping.

These functions are meant to run inside ``GraphStore.apply``: they mutate the
mapping they are given in place and report success with a boolean. Friend
edges and interaction entries are always written in both directions.
"""

from __future__ import annotations

import logging
from typing import MutableMapping, Optional

from .models import User


logger = logging.getLogger(__name__)

DEFAULT_INTERACTION_WEIGHT = 5


def add_friend(
    users: MutableMapping[int, User],
    user_id: int,
    friend_id: int,
    default_weight: Optional[int] = DEFAULT_INTERACTION_WEIGHT,
) -> bool:
    """
    Connect two users. Existing edges and interaction weights are left as
    they are; missing interaction entries get ``default_weight`` unless it is
    ``None``.
    """
    user = users.get(user_id)
    friend = users.get(friend_id)
    if user is None or friend is None:
        logger.warning("Cannot add friend %s to user %s: user not found", friend_id, user_id)
        return False
    if user_id == friend_id:
        logger.warning("Refusing to make user %s their own friend", user_id)
        return False

    if friend_id not in user.friends:
        user.friends.append(friend_id)
    if user_id not in friend.friends:
        friend.friends.append(user_id)

    if default_weight is not None:
        user.interactions.setdefault(friend_id, default_weight)
        friend.interactions.setdefault(user_id, default_weight)

    logger.info("Added user %s as a friend of user %s", friend_id, user_id)
    return True


def remove_friend(users: MutableMapping[int, User], user_id: int, friend_id: int) -> bool:
    """Disconnect two users and drop their interaction entries. Idempotent."""
    user = users.get(user_id)
    friend = users.get(friend_id)
    if user is None or friend is None:
        logger.warning("Cannot remove friend %s from user %s: user not found", friend_id, user_id)
        return False

    user.friends = [fid for fid in user.friends if fid != friend_id]
    friend.friends = [fid for fid in friend.friends if fid != user_id]
    user.interactions.pop(friend_id, None)
    friend.interactions.pop(user_id, None)

    logger.info("Removed user %s as a friend of user %s", friend_id, user_id)
    return True


def update_interaction_weight(
    users: MutableMapping[int, User],
    user_id: int,
    friend_id: int,
    weight: int,
) -> bool:
    """Set the interaction weight between two users in both directions."""
    if weight <= 0:
        raise ValueError("Interaction weight must be a positive integer")

    user = users.get(user_id)
    friend = users.get(friend_id)
    if user is None or friend is None:
        logger.warning(
            "Cannot update interaction between %s and %s: user not found", user_id, friend_id
        )
        return False
    if user_id == friend_id:
        logger.warning("Refusing to set a self-interaction for user %s", user_id)
        return False

    user.interactions[friend_id] = weight
    friend.interactions[user_id] = weight

    logger.info("Updated interaction weight between %s and %s to %s", user_id, friend_id, weight)
    return True
