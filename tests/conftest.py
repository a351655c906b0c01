"""
Shared fixtures: the seed graph A-B, A-C, B-D, B-E, C-F, C-G with weight 1.
"""

from types import MappingProxyType
from typing import Dict, Iterable, List, Tuple

import pytest

from friendgraph.config import Settings
from friendgraph.models import User
from friendgraph.service import SocialGraphService
from friendgraph.store import InMemoryGraphStore


A, B, C, D, E, F, G = range(1, 8)

SEED_EDGES = [(A, B), (A, C), (B, D), (B, E), (C, F), (C, G)]


def make_users(
    edges: Iterable[Tuple[int, int]],
    ids: Iterable[int] = (),
    weights: Dict[Tuple[int, int], int] | None = None,
    default_weight: int = 1,
) -> List[User]:
    """Build users with symmetric edges in the given order; weights keyed by (a, b)."""
    weights = weights or {}
    users: Dict[int, User] = {uid: User(id=uid, username=f"user{uid}") for uid in ids}
    for a, b in edges:
        for uid in (a, b):
            users.setdefault(uid, User(id=uid, username=f"user{uid}"))
        weight = weights.get((a, b), weights.get((b, a), default_weight))
        users[a].friends.append(b)
        users[b].friends.append(a)
        users[a].interactions[b] = weight
        users[b].interactions[a] = weight
    return [users[uid] for uid in sorted(users)]


def as_snapshot(users: Iterable[User]):
    return MappingProxyType({u.id: u for u in users})


@pytest.fixture
def seed_users() -> List[User]:
    users = make_users(SEED_EDGES)
    for user, letter in zip(users, "ABCDEFG"):
        user.name = letter
        user.username = letter.lower()
    return users


@pytest.fixture
def seed_snapshot(seed_users):
    return as_snapshot(seed_users)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        backend="memory",
        max_level=2,
        alpha_weight=2.0,
        beta_weight=1.0,
        default_interaction_weight=5,
    )


@pytest.fixture
def store(seed_users) -> InMemoryGraphStore:
    return InMemoryGraphStore(seed_users)


@pytest.fixture
def service(store, settings) -> SocialGraphService:
    return SocialGraphService(store, settings)
