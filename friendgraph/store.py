"""
Graph store: the authoritative collection of users.

Readers get immutable snapshots; all writes go through ``apply``, which runs a
mutation against a private working copy inside a critical section and then
publishes the result in one swap.
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

from .models import User, UsersFile


T = TypeVar("T")

Mutation = Callable[[Dict[int, User]], T]


def index_users(users: Iterable[User]) -> Dict[int, User]:
    """Build an ``id -> User`` dict, rejecting duplicate ids or usernames."""
    indexed: Dict[int, User] = {}
    usernames = set()
    for user in users:
        if user.id in indexed:
            raise ValueError(f"Duplicate user id {user.id}")
        if user.username in usernames:
            raise ValueError(f"Duplicate username {user.username!r}")
        indexed[user.id] = user
        usernames.add(user.username)
    return indexed


def load_users(path: Path) -> List[User]:
    """Load and validate a ``{"users": [...]}`` dataset file."""
    with Path(path).open("r", encoding="utf-8") as f:
        data = json.load(f)
    users = UsersFile.model_validate(data).users
    index_users(users)
    return users


class GraphStore(ABC):
    """Storage interface for the user graph."""

    @abstractmethod
    async def snapshot(self) -> Mapping[int, User]:
        """Return a read-only ``id -> User`` view that will never change."""

    @abstractmethod
    async def apply(self, mutation: Mutation) -> T:
        """Run ``mutation`` on a working copy and publish it atomically."""

    async def get_all_users(self) -> List[User]:
        snapshot = await self.snapshot()
        return [user.model_copy(deep=True) for user in snapshot.values()]

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        snapshot = await self.snapshot()
        user = snapshot.get(user_id)
        return user.model_copy(deep=True) if user is not None else None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        snapshot = await self.snapshot()
        for user in snapshot.values():
            if user.username == username:
                return user.model_copy(deep=True)
        return None

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryGraphStore(GraphStore):
    """Copy-on-write store held in process memory."""

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._lock = asyncio.Lock()
        self._users: Mapping[int, User] = MappingProxyType(
            index_users(user.model_copy(deep=True) for user in users)
        )

    @classmethod
    def from_file(cls, path: Path) -> "InMemoryGraphStore":
        return cls(load_users(path))

    async def snapshot(self) -> Mapping[int, User]:
        return self._users

    async def apply(self, mutation: Mutation) -> T:
        async with self._lock:
            working = {uid: user.model_copy(deep=True) for uid, user in self._users.items()}
            result = mutation(working)
            index_users(working.values())
            self._users = MappingProxyType(working)
            return result
