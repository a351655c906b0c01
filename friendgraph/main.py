"""
FastAPI application exposing the friend graph explorer.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from .config import Settings, get_settings
from .db import Neo4jGraphStore
from .models import (
    FriendSuggestion,
    GraphEdge,
    GraphStats,
    InteractionUpdate,
    MutationResponse,
    PathResponse,
    TraversalStep,
    User,
)
from .service import SocialGraphService
from .store import GraphStore, InMemoryGraphStore


logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Friend Graph Explorer API",
    description="BFS-based friend paths and weighted 'people you may know' suggestions.",
    version="0.1.0",
)


def build_store(settings: Settings) -> GraphStore:
    """Create the store selected by ``settings.backend``."""
    if settings.backend == "neo4j":
        logger.info("Using Neo4j graph store at %s", settings.neo4j_uri)
        return Neo4jGraphStore()
    if settings.backend != "memory":
        raise ValueError(f"Unknown graph store backend {settings.backend!r}")
    logger.info("Loading users from %s", settings.users_path)
    return InMemoryGraphStore.from_file(settings.users_path)


@lru_cache(maxsize=1)
def get_service() -> SocialGraphService:
    """Dependency providing the process-wide service."""
    settings = get_settings()
    return SocialGraphService(build_store(settings), settings)


async def require_user(user_id: int, service: SocialGraphService) -> User:
    user = await service.get_user_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    return user


@app.get("/health")
async def health() -> dict:
    """Simple health-check endpoint."""
    return {"status": "ok"}


@app.get("/api/users", response_model=List[User])
async def list_users(service: SocialGraphService = Depends(get_service)) -> List[User]:
    return await service.get_all_users()


@app.get("/api/users/search", response_model=List[User])
async def search_users(
    q: str = Query(..., description="User id or part of the name or username"),
    limit: int = Query(5, ge=1),
    service: SocialGraphService = Depends(get_service),
) -> List[User]:
    """
    Search users by numeric id or case-insensitive name substring.
    """
    return await service.search_users(q, limit)


@app.get("/api/users/by-username/{username}", response_model=User)
async def get_user_by_username(
    username: str,
    service: SocialGraphService = Depends(get_service),
) -> User:
    user = await service.get_user_by_username(username)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User {username!r} not found")
    return user


@app.get("/api/users/{user_id}", response_model=User)
async def get_user(user_id: int, service: SocialGraphService = Depends(get_service)) -> User:
    return await require_user(user_id, service)


@app.get("/api/users/{user_id}/friends", response_model=List[User])
async def get_friends(
    user_id: int,
    service: SocialGraphService = Depends(get_service),
) -> List[User]:
    """Direct (level 1) friends."""
    await require_user(user_id, service)
    return await service.get_direct_friends(user_id)


@app.get("/api/users/{user_id}/mutual/{other_id}", response_model=List[User])
async def get_mutual_friends(
    user_id: int,
    other_id: int,
    service: SocialGraphService = Depends(get_service),
) -> List[User]:
    await require_user(user_id, service)
    await require_user(other_id, service)
    return await service.find_mutual_friends(user_id, other_id)


@app.get("/api/users/{user_id}/suggestions", response_model=List[FriendSuggestion])
async def suggest_friends(
    user_id: int,
    max_level: Optional[int] = Query(None, ge=1),
    alpha: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
    beta: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
    min_mutual_friends: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1),
    service: SocialGraphService = Depends(get_service),
) -> List[FriendSuggestion]:
    """'People you may know' ranked by mutual friends and interaction strength."""
    await require_user(user_id, service)
    try:
        return await service.get_friend_suggestions(
            user_id,
            max_level=max_level,
            alpha_weight=alpha,
            beta_weight=beta,
            min_mutual_friends=min_mutual_friends,
            limit=limit,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@app.get("/api/users/{user_id}/bfs", response_model=List[TraversalStep])
async def bfs_walkthrough(
    user_id: int,
    max_level: Optional[int] = Query(None, ge=1),
    service: SocialGraphService = Depends(get_service),
) -> List[TraversalStep]:
    """Step-by-step breadth-first expansion from a user."""
    await require_user(user_id, service)
    return await service.trace_bfs(user_id, max_level)


@app.get("/api/paths/shortest", response_model=PathResponse)
async def shortest_path(
    from_user: int,
    to_user: int,
    service: SocialGraphService = Depends(get_service),
) -> PathResponse:
    """
    Shortest path between two users along friend edges.
    """
    path = await service.find_connection_path(from_user, to_user)
    if not path:
        raise HTTPException(status_code=404, detail="No path found")
    return PathResponse(path=path, connection_level=len(path) - 1)


@app.get("/api/graph", response_model=List[GraphEdge])
async def graph_edges(service: SocialGraphService = Depends(get_service)) -> List[GraphEdge]:
    """Undirected friendship edges with their interaction weights."""
    return await service.export_edges()


@app.get("/api/debug/stats", response_model=GraphStats)
async def debug_stats(service: SocialGraphService = Depends(get_service)) -> GraphStats:
    """
    Diagnostic endpoint with user, edge and interaction counts.
    """
    return await service.get_stats()


@app.post("/api/users/{user_id}/friends/{friend_id}", response_model=MutationResponse)
async def add_friend(
    user_id: int,
    friend_id: int,
    service: SocialGraphService = Depends(get_service),
) -> MutationResponse:
    if user_id == friend_id:
        raise HTTPException(status_code=400, detail="A user cannot befriend themselves")
    if not await service.add_friend(user_id, friend_id):
        raise HTTPException(status_code=404, detail="User or friend not found")
    return MutationResponse(success=True, message=f"Added {friend_id} as a friend of {user_id}")


@app.delete("/api/users/{user_id}/friends/{friend_id}", response_model=MutationResponse)
async def remove_friend(
    user_id: int,
    friend_id: int,
    service: SocialGraphService = Depends(get_service),
) -> MutationResponse:
    if not await service.remove_friend(user_id, friend_id):
        raise HTTPException(status_code=404, detail="User or friend not found")
    return MutationResponse(success=True, message=f"Removed {friend_id} from {user_id}'s friends")


@app.put("/api/users/{user_id}/interactions/{friend_id}", response_model=MutationResponse)
async def update_interaction(
    user_id: int,
    friend_id: int,
    payload: InteractionUpdate,
    service: SocialGraphService = Depends(get_service),
) -> MutationResponse:
    if not await service.update_interaction_weight(user_id, friend_id, payload.weight):
        raise HTTPException(status_code=404, detail="User or friend not found")
    return MutationResponse(success=True)
