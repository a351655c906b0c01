"""
Configuration utilities for the friend graph explorer.
"""

from functools import lru_cache
import os
from pathlib import Path
from pydantic import BaseModel


DEFAULT_USERS_PATH = Path(__file__).resolve().parent / "data" / "users.json"


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    backend: str = os.getenv("FRIENDGRAPH_BACKEND", "memory")
    users_path: Path = Path(os.getenv("FRIENDGRAPH_USERS_PATH", str(DEFAULT_USERS_PATH)))

    max_level: int = int(os.getenv("FRIENDGRAPH_MAX_LEVEL", "2"))
    alpha_weight: float = float(os.getenv("FRIENDGRAPH_ALPHA", "2.0"))
    beta_weight: float = float(os.getenv("FRIENDGRAPH_BETA", "1.0"))
    default_interaction_weight: int = int(os.getenv("FRIENDGRAPH_DEFAULT_WEIGHT", "5"))

    log_level: str = os.getenv("FRIENDGRAPH_LOG_LEVEL", "INFO")

    snap_push_to_neo4j: bool = os.getenv("FRIENDGRAPH_SNAP_PUSH", "false").lower() in ("1", "true", "yes")

    neo4j_uri: str = os.getenv("NEO4J_URI", "bolt://localhost:7687")
    neo4j_user: str = os.getenv("NEO4J_USER", "neo4j")
    neo4j_password: str = os.getenv("NEO4J_PASSWORD", "password")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()
