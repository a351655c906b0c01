"""
Data-access surface of the friend graph.

Each read takes one snapshot when it starts and works on it to the end, so a
concurrent mutation is never half-observed. Every user handed back is a deep
copy; callers cannot reach into the store through results.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, TypeVar

from pydantic import BaseModel

from . import friendship, graph, recommendation
from .config import Settings, get_settings
from .models import FriendSuggestion, GraphEdge, GraphStats, TraversalStep, User
from .store import GraphStore


M = TypeVar("M", bound=BaseModel)


def _copy(items: Sequence[M]) -> List[M]:
    return [item.model_copy(deep=True) for item in items]


class SocialGraphService:
    """Lookups, traversals, suggestions and friendship edits over a ``GraphStore``."""

    def __init__(self, store: GraphStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    async def get_all_users(self) -> List[User]:
        return await self.store.get_all_users()

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        return await self.store.get_user_by_id(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return await self.store.get_user_by_username(username)

    async def search_users(self, query: str, limit: int = 5) -> List[User]:
        """
        Search users by numeric id or case-insensitive name/username substring.
        """
        needle = query.strip().lower()
        if not needle:
            return []
        snapshot = await self.store.snapshot()
        matches = [
            user
            for user in snapshot.values()
            if str(user.id) == needle
            or needle in user.name.lower()
            or needle in user.username.lower()
        ]
        return _copy(matches[:limit])

    async def get_direct_friends(self, user_id: int) -> List[User]:
        snapshot = await self.store.snapshot()
        return _copy(graph.get_direct_friends(snapshot, user_id))

    async def find_connection_path(self, start_id: int, end_id: int) -> List[User]:
        snapshot = await self.store.snapshot()
        return _copy(graph.find_connection_path(snapshot, start_id, end_id))

    async def find_mutual_friends(self, user_id: int, other_id: int) -> List[User]:
        snapshot = await self.store.snapshot()
        return _copy(graph.find_mutual_friends(snapshot, user_id, other_id))

    async def get_friend_suggestions(
        self,
        user_id: int,
        max_level: Optional[int] = None,
        alpha_weight: Optional[float] = None,
        beta_weight: Optional[float] = None,
        min_mutual_friends: int = 0,
        limit: Optional[int] = None,
    ) -> List[FriendSuggestion]:
        """
        Ranked suggestions for ``user_id``. Unset parameters fall back to the
        configured defaults; ``min_mutual_friends`` and ``limit`` are applied
        after ranking.
        """
        snapshot = await self.store.snapshot()
        suggestions = recommendation.get_friend_suggestions(
            snapshot,
            user_id,
            max_level=self.settings.max_level if max_level is None else max_level,
            alpha_weight=self.settings.alpha_weight if alpha_weight is None else alpha_weight,
            beta_weight=self.settings.beta_weight if beta_weight is None else beta_weight,
        )
        if min_mutual_friends > 0:
            suggestions = recommendation.filter_suggestions(
                suggestions, min_mutual_friends=min_mutual_friends
            )
        if limit is not None:
            suggestions = suggestions[:limit]
        return _copy(suggestions)

    async def trace_bfs(self, user_id: int, max_level: Optional[int] = None) -> List[TraversalStep]:
        snapshot = await self.store.snapshot()
        return _copy(graph.trace_bfs(snapshot, user_id, max_level))

    async def export_edges(self) -> List[GraphEdge]:
        snapshot = await self.store.snapshot()
        return graph.export_edges(snapshot)

    async def get_stats(self) -> GraphStats:
        """Counts used by the diagnostics endpoint."""
        snapshot = await self.store.snapshot()
        edges = graph.export_edges(snapshot)
        dangling = sum(
            1 for user in snapshot.values() for fid in user.friends if fid not in snapshot
        )
        return GraphStats(
            user_count=len(snapshot),
            friendship_count=len(edges),
            interaction_count=sum(len(user.interactions) for user in snapshot.values()),
            isolated_user_count=sum(1 for user in snapshot.values() if not user.friends),
            dangling_edge_count=dangling,
        )

    async def add_friend(self, user_id: int, friend_id: int) -> bool:
        default_weight = self.settings.default_interaction_weight
        return await self.store.apply(
            lambda users: friendship.add_friend(users, user_id, friend_id, default_weight)
        )

    async def remove_friend(self, user_id: int, friend_id: int) -> bool:
        return await self.store.apply(
            lambda users: friendship.remove_friend(users, user_id, friend_id)
        )

    async def update_interaction_weight(self, user_id: int, friend_id: int, weight: int) -> bool:
        return await self.store.apply(
            lambda users: friendship.update_interaction_weight(users, user_id, friend_id, weight)
        )
