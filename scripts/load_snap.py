"""
ETL script to turn SNAP social network data into a friend graph dataset.

It expects the following files at the project root:
- musae_git_edges.csv   (columns id_1, id_2)
- musae_git_target.csv  (columns id, name, ...)

This script:
- Builds one user per target row, with symmetric friend lists from the edges
- Gives every friendship a default interaction weight in both directions
- Writes ``{"users": [...]}`` JSON usable by the in-memory store
- Optionally pushes the same users into Neo4j through ``Neo4jGraphStore``
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from friendgraph.config import get_settings
from friendgraph.db import Neo4jGraphStore
from friendgraph.models import User, UsersFile


PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_OUTPUT = PROJECT_ROOT / "snap_users.json"


def load_edges() -> pd.DataFrame:
    """Load follower edges."""
    path = PROJECT_ROOT / "musae_git_edges.csv"
    df = pd.read_csv(path)
    # Standard SNAP format: columns id_1, id_2 with integer IDs.
    df = df.rename(columns={"id_1": "src", "id_2": "dst"})
    return df[["src", "dst"]]


def load_targets() -> pd.DataFrame:
    """Load node targets (id -> name/label)."""
    path = PROJECT_ROOT / "musae_git_target.csv"
    return pd.read_csv(path)


def build_users(edges: pd.DataFrame, targets: pd.DataFrame, weight: int = 1) -> List[User]:
    """
    Build users from an edge list and a targets table.

    Edges are made symmetric, self loops and duplicates are dropped, and
    edges pointing at ids missing from ``targets`` are ignored. Usernames are
    the lowercased name, suffixed with the id until no two collide. Repeated
    target ids keep their first row.
    """
    targets = targets.drop_duplicates(subset="id").copy()
    if "name" not in targets.columns:
        targets["name"] = targets["id"].astype(str)
    targets["name"] = targets["name"].fillna(targets["id"].astype(str)).astype(str)
    handles = targets["name"].str.lower().str.replace(r"\s+", "_", regex=True)
    ids = targets["id"].astype(str)
    # A suffixed handle can collide with another name, so repeat until unique.
    while handles.duplicated().any():
        clashing = handles.duplicated(keep=False)
        handles = handles.where(~clashing, handles + "_" + ids)
    targets["username"] = handles

    known = set(targets["id"].astype(int))
    both_ways = pd.concat(
        [edges[["src", "dst"]], edges.rename(columns={"src": "dst", "dst": "src"})[["src", "dst"]]],
        ignore_index=True,
    ).astype(int)
    both_ways = both_ways[
        (both_ways["src"] != both_ways["dst"])
        & both_ways["src"].isin(known)
        & both_ways["dst"].isin(known)
    ].drop_duplicates()

    friends: Dict[int, List[int]] = {}
    for src, dst in both_ways.itertuples(index=False):
        friends.setdefault(int(src), []).append(int(dst))

    users: List[User] = []
    for row in targets.itertuples(index=False):
        node_id = int(row.id)
        node_friends = friends.get(node_id, [])
        users.append(
            User(
                id=node_id,
                name=row.name,
                username=row.username,
                friends=node_friends,
                interactions={fid: weight for fid in node_friends},
            )
        )
    return users


async def push_to_neo4j(users: List[User]) -> None:
    """Write all users into Neo4j in one transaction."""
    store = Neo4jGraphStore()
    try:
        await store.ensure_constraints()
        await store.apply(lambda working: working.update({u.id: u for u in users}))
    finally:
        await store.close()


def run(output: Path = DEFAULT_OUTPUT, push: Optional[bool] = None) -> None:
    """
    Main ETL entrypoint.

    ``push`` defaults to ``FRIENDGRAPH_SNAP_PUSH`` from the settings.
    """
    if push is None:
        push = get_settings().snap_push_to_neo4j
    print("[SNAP ETL] Loading CSV files...")
    edges = load_edges()
    targets = load_targets()
    print(f"[SNAP ETL] Loaded: {len(edges)} edges, {len(targets)} targets")

    users = build_users(edges, targets)
    friendships = sum(len(u.friends) for u in users) // 2
    print(f"[SNAP ETL] Built {len(users)} users and {friendships} friendships")

    payload = UsersFile(users=users).model_dump(mode="json")
    with output.open("w", encoding="utf-8") as f:
        json.dump(payload, f)
    print(f"[SNAP ETL] ✓ Wrote dataset to {output}")

    if push:
        print(f"[SNAP ETL] Pushing users to Neo4j at: {get_settings().neo4j_uri}")
        asyncio.run(push_to_neo4j(users))
        print("[SNAP ETL] ✓ Neo4j load completed")

    print("[SNAP ETL] ✓ ETL completed successfully")


if __name__ == "__main__":
    run()
