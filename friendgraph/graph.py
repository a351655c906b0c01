"""
Breadth-first traversal over the friendship graph.

Every function here works on a snapshot: a read-only ``id -> User`` mapping
taken by the caller before the traversal starts. Dangling friend ids (ids with
no matching user) are skipped silently.

Levels count edges from the start user: 0 is the user, 1 a direct friend,
2 a friend of a friend, and so on.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterator, List, Mapping, Optional, Tuple

from .models import GraphEdge, TraversalStep, User


Snapshot = Mapping[int, User]

_QueueEntry = Tuple[User, int, Tuple[User, ...]]


@dataclass(frozen=True)
class Discovery:
    """A user reached for the first time, with its level and the path taken."""

    user: User
    level: int
    path: Tuple[User, ...]


def _breadth_first(
    snapshot: Snapshot,
    start_id: int,
    *,
    target_id: Optional[int] = None,
    max_level: Optional[int] = None,
    on_expanded: Optional[Callable[[User, int, Deque[_QueueEntry]], None]] = None,
) -> Iterator[Discovery]:
    """
    Yield users in BFS discovery order starting from ``start_id``.

    With ``target_id`` set, stop right after the target shows up as a
    neighbour of the user being expanded. With ``max_level`` set, users at
    that level are still yielded but never expanded. ``on_expanded`` is
    called after each user's neighbours have been processed.
    """
    start = snapshot.get(start_id)
    if start is None:
        return
    if max_level is not None and max_level < 1:
        return

    visited = {start_id}
    queue: Deque[_QueueEntry] = deque([(start, 0, (start,))])

    while queue:
        current, level, path = queue.popleft()

        for friend_id in current.friends:
            if target_id is not None and friend_id == target_id:
                target = snapshot.get(target_id)
                if target is not None:
                    yield Discovery(target, level + 1, path + (target,))
                    return

            if friend_id in visited:
                continue
            visited.add(friend_id)

            friend = snapshot.get(friend_id)
            if friend is None:
                continue

            discovery = Discovery(friend, level + 1, path + (friend,))
            yield discovery

            if max_level is None or discovery.level < max_level:
                queue.append((friend, discovery.level, discovery.path))

        if on_expanded is not None:
            on_expanded(current, level, queue)


def get_direct_friends(snapshot: Snapshot, user_id: int) -> List[User]:
    """Resolve ``user.friends`` to users, keeping their stored order."""
    user = snapshot.get(user_id)
    if user is None:
        return []
    return [snapshot[fid] for fid in user.friends if fid in snapshot]


def get_interaction_weight(snapshot: Snapshot, user_id: int, other_id: int) -> int:
    """Weight of ``user_id``'s interaction entry for ``other_id``, 0 if absent."""
    user = snapshot.get(user_id)
    if user is None:
        return 0
    return user.interactions.get(other_id, 0)


def find_connection_path(snapshot: Snapshot, start_id: int, end_id: int) -> List[User]:
    """
    Shortest path from ``start_id`` to ``end_id`` as a list of users.

    Ties between equally short paths go to whichever neighbour comes first in
    the expanding user's ``friends``. Returns ``[]`` when no path exists.
    """
    if start_id == end_id:
        user = snapshot.get(start_id)
        return [user] if user is not None else []

    for discovery in _breadth_first(snapshot, start_id, target_id=end_id):
        if discovery.user.id == end_id:
            return list(discovery.path)
    return []


def find_mutual_friends(snapshot: Snapshot, user_id: int, other_id: int) -> List[User]:
    """Friends shared by both users, in the order of the first user's friends."""
    user = snapshot.get(user_id)
    other = snapshot.get(other_id)
    if user is None or other is None:
        return []

    other_friends = set(other.friends)
    return [
        snapshot[fid]
        for fid in user.friends
        if fid in other_friends and fid in snapshot
    ]


def scan_levels(snapshot: Snapshot, user_id: int, max_level: int) -> List[Discovery]:
    """Every user reachable within ``max_level`` hops, in discovery order."""
    return list(_breadth_first(snapshot, user_id, max_level=max_level))


def trace_bfs(
    snapshot: Snapshot,
    user_id: int,
    max_level: Optional[int] = None,
) -> List[TraversalStep]:
    """Step-by-step record of a BFS run: one step per expanded user."""
    steps: List[TraversalStep] = []
    discovered: List[User] = []

    def record(current: User, level: int, queue: Deque[_QueueEntry]) -> None:
        steps.append(
            TraversalStep(
                user=current,
                level=level,
                discovered=list(discovered),
                queue=[entry[0].id for entry in queue],
            )
        )
        discovered.clear()

    for discovery in _breadth_first(
        snapshot, user_id, max_level=max_level, on_expanded=record
    ):
        discovered.append(discovery.user)
    return steps


def export_edges(snapshot: Snapshot) -> List[GraphEdge]:
    """All friendships as undirected edges, each pair once with ``source < target``."""
    seen = set()
    edges: List[GraphEdge] = []
    for user in snapshot.values():
        for fid in user.friends:
            if fid not in snapshot or fid == user.id:
                continue
            pair = (min(user.id, fid), max(user.id, fid))
            if pair in seen:
                continue
            seen.add(pair)
            weight = max(
                get_interaction_weight(snapshot, user.id, fid),
                get_interaction_weight(snapshot, fid, user.id),
            )
            edges.append(GraphEdge(source=pair[0], target=pair[1], weight=weight))
    return edges
