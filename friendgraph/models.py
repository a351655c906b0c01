"""
Pydantic models for the friendship graph and API payloads and responses.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, PositiveInt, field_validator


class User(BaseModel):
    """A person in the graph with symmetric friend edges and interaction weights."""

    id: int
    name: str = ""
    username: str
    email: str = ""
    bio: str = ""
    avatar: str = ""
    friends: List[int] = Field(default_factory=list)
    interactions: Dict[int, PositiveInt] = Field(default_factory=dict)

    @field_validator("interactions", mode="before")
    @classmethod
    def _interactions_from_list(cls, value: Any) -> Any:
        # Datasets store interactions as [{"userId": 2, "weight": 3}, ...].
        if value is None:
            return {}
        if isinstance(value, list):
            return {
                entry.get("userId", entry.get("user_id")): entry["weight"]
                for entry in value
            }
        return value


class UsersFile(BaseModel):
    """Top-level shape of a users dataset file."""

    users: List[User]


class FriendSuggestion(BaseModel):
    """A ranked "people you may know" candidate, computed per request."""

    user: User
    mutual_friends: List[User]
    connection_level: int
    connection_path: List[User]
    score: float
    interaction_weight: int


class TraversalStep(BaseModel):
    """One dequeue of a breadth-first run."""

    user: User
    level: int
    discovered: List[User] = Field(default_factory=list)
    queue: List[int] = Field(default_factory=list)


class GraphEdge(BaseModel):
    """Undirected friendship edge, reported once per pair."""

    source: int
    target: int
    weight: int = 0


class GraphStats(BaseModel):
    """Counts describing the current graph snapshot."""

    user_count: int
    friendship_count: int
    interaction_count: int
    isolated_user_count: int
    dangling_edge_count: int


class PathResponse(BaseModel):
    """Shortest connection path between two users."""

    path: List[User]
    connection_level: int


class InteractionUpdate(BaseModel):
    """Request body for updating an interaction weight."""

    weight: PositiveInt


class MutationResponse(BaseModel):
    """Result of a friendship mutation."""

    success: bool
    message: Optional[str] = None
