"""
Core recommendation logic: weighted "people you may know" suggestions.

Candidates are users found by the BFS level scan at level 2 or deeper. Each
one is scored as

    score = alpha * len(mutual_friends) + beta * interaction_weight

where ``interaction_weight`` sums, over every mutual friend, the weaker of the
two interaction weights along that two-hop path.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

import numpy as np

from .graph import Snapshot, find_mutual_friends, get_interaction_weight, scan_levels
from .models import FriendSuggestion, User


DEFAULT_MAX_LEVEL = 2
DEFAULT_ALPHA_WEIGHT = 2.0
DEFAULT_BETA_WEIGHT = 1.0


def calculate_interaction_weight(
    snapshot: Snapshot,
    user_id: int,
    candidate_id: int,
    mutual_friends: Sequence[User],
) -> int:
    """Sum of bottleneck weights over every two-hop path through a mutual friend."""
    total = 0
    for friend in mutual_friends:
        weight_in = get_interaction_weight(snapshot, user_id, friend.id)
        weight_out = get_interaction_weight(snapshot, friend.id, candidate_id)
        total += min(weight_in, weight_out)
    return total


def get_friend_suggestions(
    snapshot: Snapshot,
    user_id: int,
    max_level: int = DEFAULT_MAX_LEVEL,
    alpha_weight: float = DEFAULT_ALPHA_WEIGHT,
    beta_weight: float = DEFAULT_BETA_WEIGHT,
) -> List[FriendSuggestion]:
    """
    Rank every non-friend reachable within ``max_level`` hops.

    Results are sorted by descending score; equal scores keep BFS discovery
    order. Returns ``[]`` for an unknown user.
    """
    if not (math.isfinite(alpha_weight) and math.isfinite(beta_weight)):
        raise ValueError("alpha_weight and beta_weight must be finite")
    if alpha_weight < 0 or beta_weight < 0:
        raise ValueError("alpha_weight and beta_weight must be non-negative")

    if user_id not in snapshot:
        return []

    candidates = [d for d in scan_levels(snapshot, user_id, max_level) if d.level >= 2]
    if not candidates:
        return []

    mutuals = [find_mutual_friends(snapshot, user_id, d.user.id) for d in candidates]
    weights = [
        calculate_interaction_weight(snapshot, user_id, d.user.id, mutual)
        for d, mutual in zip(candidates, mutuals)
    ]

    mutual_counts = np.array([len(m) for m in mutuals], dtype=float)
    scores = alpha_weight * mutual_counts + beta_weight * np.array(weights, dtype=float)

    # Stable sort on the negated scores keeps discovery order for ties.
    order = np.argsort(-scores, kind="stable")

    return [
        FriendSuggestion(
            user=candidates[idx].user,
            mutual_friends=mutuals[idx],
            connection_level=candidates[idx].level,
            connection_path=list(candidates[idx].path),
            score=float(scores[idx]),
            interaction_weight=weights[idx],
        )
        for idx in order
    ]


def filter_suggestions(
    suggestions: Sequence[FriendSuggestion],
    max_level: Optional[int] = None,
    min_mutual_friends: int = 0,
) -> List[FriendSuggestion]:
    """Keep suggestions within ``max_level`` and with enough mutual friends."""
    return [
        s
        for s in suggestions
        if (max_level is None or s.connection_level <= max_level)
        and len(s.mutual_friends) >= min_mutual_friends
    ]
