"""
Unit tests for the weighted 'people you may know' scoring.
"""

import numpy as np
import pytest

from friendgraph.recommendation import (
    calculate_interaction_weight,
    filter_suggestions,
    get_friend_suggestions,
)

from conftest import A, B, C, D, E, F, G, as_snapshot, make_users


def test_suggestions_for_seed_graph(seed_snapshot):
    suggestions = get_friend_suggestions(seed_snapshot, A, max_level=2)
    assert [s.user.id for s in suggestions] == [D, E, F, G]
    assert all(s.connection_level == 2 for s in suggestions)

    first = suggestions[0]
    assert [u.id for u in first.mutual_friends] == [B]
    assert [u.id for u in first.connection_path] == [A, B, D]
    assert first.interaction_weight == 1
    assert np.isclose(first.score, 2 * 1 + 1 * 1)


def test_suggestions_exclude_self_and_direct_friends(seed_snapshot):
    for user_id in seed_snapshot:
        suggestions = get_friend_suggestions(seed_snapshot, user_id, max_level=5)
        direct = set(seed_snapshot[user_id].friends)
        for s in suggestions:
            assert s.user.id != user_id
            assert s.user.id not in direct
            assert s.connection_level >= 2
            assert len(s.connection_path) == s.connection_level + 1


def test_suggestions_unknown_user(seed_snapshot):
    assert get_friend_suggestions(seed_snapshot, 99) == []


def test_suggestions_need_level_two(seed_snapshot):
    assert get_friend_suggestions(seed_snapshot, A, max_level=1) == []


def test_suggestions_deeper_levels(seed_snapshot):
    suggestions = get_friend_suggestions(seed_snapshot, D, max_level=3)
    assert [(s.user.id, s.connection_level) for s in suggestions] == [(A, 2), (E, 2), (C, 3)]
    assert suggestions[-1].mutual_friends == []
    assert suggestions[-1].score == 0.0


def test_ranking_prefers_more_mutual_friends():
    # 4 is reached through both 2 and 3, 5 only through 2.
    users = make_users([(1, 2), (1, 3), (2, 5), (2, 4), (3, 4)])
    suggestions = get_friend_suggestions(as_snapshot(users), 1)
    assert [s.user.id for s in suggestions] == [4, 5]
    assert np.isclose(suggestions[0].score, 2 * 2 + 1 * 2)
    assert np.isclose(suggestions[1].score, 2 * 1 + 1 * 1)


def test_interaction_weight_uses_bottleneck():
    users = make_users(
        [(1, 2), (1, 3), (2, 4), (3, 4)],
        weights={(1, 2): 8, (2, 4): 3, (1, 3): 2, (3, 4): 9},
    )
    snapshot = as_snapshot(users)
    mutual = [snapshot[2], snapshot[3]]
    assert calculate_interaction_weight(snapshot, 1, 4, mutual) == 3 + 2


def test_missing_interaction_counts_as_zero():
    users = make_users([(1, 2), (2, 3)])
    del users[1].interactions[3]
    suggestions = get_friend_suggestions(as_snapshot(users), 1)
    assert suggestions[0].interaction_weight == 0
    assert np.isclose(suggestions[0].score, 2.0)


def test_ties_keep_discovery_order():
    users = make_users([(1, 2), (2, 9), (2, 5), (2, 7)])
    suggestions = get_friend_suggestions(as_snapshot(users), 1)
    assert [s.user.id for s in suggestions] == [9, 5, 7]


def test_custom_weights_change_ranking():
    # 4: two mutual friends with weak ties; 5: one mutual friend with a strong tie.
    users = make_users(
        [(1, 2), (1, 3), (2, 4), (3, 4), (2, 5)],
        weights={(1, 2): 10, (2, 5): 10},
    )
    snapshot = as_snapshot(users)
    by_mutuals = get_friend_suggestions(snapshot, 1, alpha_weight=10, beta_weight=0)
    by_interaction = get_friend_suggestions(snapshot, 1, alpha_weight=0, beta_weight=1)
    assert by_mutuals[0].user.id == 4
    assert by_interaction[0].user.id == 5


def test_raising_alpha_never_lowers_rank_of_better_connected_candidate():
    # X (id 5) has two mutual friends, Y (id 4) one; both total interaction 2.
    users = make_users(
        [(1, 2), (1, 3), (2, 4), (2, 5), (3, 5)],
        weights={(1, 2): 5, (1, 3): 5, (2, 4): 2, (2, 5): 1, (3, 5): 1},
    )
    snapshot = as_snapshot(users)
    previous_rank = None
    for alpha in [0, 0.5, 1, 2, 10]:
        ranked = [s.user.id for s in get_friend_suggestions(snapshot, 1, alpha_weight=alpha)]
        rank = ranked.index(5)
        if previous_rank is not None:
            assert rank <= previous_rank
        previous_rank = rank
    assert previous_rank == 0


def test_negative_weights_rejected(seed_snapshot):
    with pytest.raises(ValueError):
        get_friend_suggestions(seed_snapshot, A, alpha_weight=-1)
    with pytest.raises(ValueError):
        get_friend_suggestions(seed_snapshot, A, beta_weight=-0.5)


def test_filter_suggestions(seed_snapshot):
    suggestions = get_friend_suggestions(seed_snapshot, D, max_level=3)
    assert [s.user.id for s in filter_suggestions(suggestions, max_level=2)] == [A, E]
    assert [s.user.id for s in filter_suggestions(suggestions, min_mutual_friends=1)] == [A, E]
    assert filter_suggestions(suggestions, min_mutual_friends=2) == []
    assert [s.user.id for s in filter_suggestions(suggestions)] == [A, E, C]


def test_non_finite_weights_rejected(seed_snapshot):
    with pytest.raises(ValueError):
        get_friend_suggestions(seed_snapshot, D, max_level=3, alpha_weight=float("inf"))
    with pytest.raises(ValueError):
        get_friend_suggestions(seed_snapshot, D, max_level=3, beta_weight=float("nan"))
