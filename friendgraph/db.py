"""
Neo4j driver management and a graph store backed by Neo4j.

Users are ``:User`` nodes. Each friendship direction is a ``:KNOWS``
relationship and each interaction entry an ``:INTERACTS {weight}``
relationship, so both halves of the user model survive a round trip.
"""

from __future__ import annotations

import asyncio
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncManagedTransaction

from .config import get_settings
from .models import User
from .store import GraphStore, Mutation, T, index_users


_driver: AsyncDriver | None = None


LOCK_QUERY = """
MERGE (l:GraphLock {id: 0})
SET l.version = coalesce(l.version, 0) + 1
"""

SNAPSHOT_QUERY = """
MATCH (u:User)
OPTIONAL MATCH (u)-[:KNOWS]->(f:User)
WITH u, f ORDER BY f.id
WITH u, collect(f.id) AS friends
OPTIONAL MATCH (u)-[i:INTERACTS]->(o:User)
RETURN u.id AS id,
       u.name AS name,
       u.username AS username,
       u.email AS email,
       u.bio AS bio,
       u.avatar AS avatar,
       friends,
       collect({user_id: o.id, weight: i.weight}) AS interactions
ORDER BY id
"""

UPSERT_USER_QUERY = """
MERGE (u:User {id: $id})
SET u.name = $name,
    u.username = $username,
    u.email = $email,
    u.bio = $bio,
    u.avatar = $avatar
WITH u
OPTIONAL MATCH (u)-[r:KNOWS|INTERACTS]->()
DELETE r
"""

WRITE_FRIENDS_QUERY = """
MATCH (u:User {id: $id})
UNWIND $friends AS friend_id
MATCH (f:User {id: friend_id})
MERGE (u)-[:KNOWS]->(f)
"""

WRITE_INTERACTIONS_QUERY = """
MATCH (u:User {id: $id})
UNWIND $interactions AS interaction
MATCH (o:User {id: interaction.user_id})
MERGE (u)-[r:INTERACTS]->(o)
SET r.weight = interaction.weight
"""


def get_driver() -> AsyncDriver:
    """
    Lazily create and cache the Neo4j async driver.
    """
    global _driver  # noqa: PLW0603
    if _driver is None:
        settings = get_settings()
        _driver = AsyncGraphDatabase.driver(
            settings.neo4j_uri,
            auth=(settings.neo4j_user, settings.neo4j_password),
        )
    return _driver


def record_to_user(record: Mapping[str, Any]) -> User:
    """Convert a row of ``SNAPSHOT_QUERY`` into a ``User``."""
    # OPTIONAL MATCH without a hit still collects one all-null map.
    interactions = {
        entry["user_id"]: entry["weight"]
        for entry in record.get("interactions") or []
        if entry.get("user_id") is not None and entry.get("weight") is not None
    }
    return User(
        id=record["id"],
        name=record.get("name") or "",
        username=record.get("username") or str(record["id"]),
        email=record.get("email") or "",
        bio=record.get("bio") or "",
        avatar=record.get("avatar") or "",
        friends=list(record.get("friends") or []),
        interactions=interactions,
    )


def changed_user_ids(before: Mapping[int, User], after: Mapping[int, User]) -> List[int]:
    """Ids of users that are new or differ between two snapshots."""
    return [uid for uid, user in after.items() if before.get(uid) != user]


async def _read_users(tx: AsyncManagedTransaction) -> Dict[int, User]:
    result = await tx.run(SNAPSHOT_QUERY)
    records = await result.data()
    return index_users(record_to_user(record) for record in records)


async def _write_users(tx: AsyncManagedTransaction, users: List[User]) -> None:
    # Nodes first, so relationships between new users can be matched.
    for user in users:
        await tx.run(
            UPSERT_USER_QUERY,
            id=user.id,
            name=user.name,
            username=user.username,
            email=user.email,
            bio=user.bio,
            avatar=user.avatar,
        )
    for user in users:
        await tx.run(WRITE_FRIENDS_QUERY, id=user.id, friends=user.friends)
        await tx.run(
            WRITE_INTERACTIONS_QUERY,
            id=user.id,
            interactions=[
                {"user_id": uid, "weight": weight}
                for uid, weight in user.interactions.items()
            ],
        )


async def _apply_in_transaction(tx: AsyncManagedTransaction, mutation: Mutation) -> Any:
    # Writing the lock node first holds its write lock until commit, so
    # concurrent writers from other processes read only committed state.
    result = await tx.run(LOCK_QUERY)
    await result.consume()
    before = await _read_users(tx)
    working = {uid: user.model_copy(deep=True) for uid, user in before.items()}
    outcome = mutation(working)
    index_users(working.values())
    await _write_users(tx, [working[uid] for uid in changed_user_ids(before, working)])
    return outcome


class Neo4jGraphStore(GraphStore):
    """Graph store on top of the async Neo4j driver."""

    def __init__(self, driver: AsyncDriver | None = None) -> None:
        self._driver = driver or get_driver()
        self._lock = asyncio.Lock()

    async def snapshot(self) -> Mapping[int, User]:
        async with self._driver.session() as session:
            users = await session.execute_read(_read_users)
        return MappingProxyType(users)

    async def apply(self, mutation: Mutation) -> T:
        # The managed transaction may retry the work, so ``mutation`` has to
        # act only on the working copy it is given.
        async with self._lock:
            async with self._driver.session() as session:
                return await session.execute_write(_apply_in_transaction, mutation)

    async def ensure_constraints(self) -> None:
        """Create the uniqueness constraints used by the store."""
        async with self._driver.session() as session:
            await session.run("CREATE CONSTRAINT IF NOT EXISTS FOR (u:User) REQUIRE u.id IS UNIQUE")
            await session.run(
                "CREATE CONSTRAINT IF NOT EXISTS FOR (u:User) REQUIRE u.username IS UNIQUE"
            )

    async def close(self) -> None:
        global _driver  # noqa: PLW0603
        await self._driver.close()
        if self._driver is _driver:
            _driver = None
