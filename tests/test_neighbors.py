from __future__ import annotations

import numpy as np
import pytest

from src.memory_cf.neighbors import select_all_neighbors, select_neighbors


def _sim_with_row(owner: int, row: list[float]) -> np.ndarray:
    n = len(row)
    sim = np.eye(n)
    sim[owner] = row
    return sim


def test_owner_inside_initial_window_extends_it_by_one() -> None:
    sim = _sim_with_row(1, [0.2, 1.0, 0.5, 0.1, 0.3])
    # window is 0..3 minus the owner; candidate 4 then replaces user 3 (0.1)
    assert select_neighbors(sim, 1, 3) == [0, 2, 4]


def test_owner_outside_initial_window_is_skipped_during_scan() -> None:
    sim = _sim_with_row(4, [0.1, 0.2, 0.3, 0.9, 1.0])
    assert select_neighbors(sim, 4, 3) == [3, 1, 2]


def test_initial_window_covering_everyone_stops_early() -> None:
    sim = _sim_with_row(0, [1.0, -0.0, 0.1, 0.2])
    assert select_neighbors(sim, 0, 3) == [1, 2, 3]


def test_ties_at_the_boundary_keep_the_incumbent() -> None:
    sim = _sim_with_row(0, [1.0, 0.5, 0.5, 0.5, 0.5])
    assert select_neighbors(sim, 0, 3) == [1, 2, 3]


def test_earliest_weakest_slot_is_replaced() -> None:
    sim = _sim_with_row(0, [1.0, 0.2, 0.2, 0.9, 0.5])
    assert select_neighbors(sim, 0, 3) == [4, 2, 3]


def test_negative_neighbors_are_pruned_after_the_scan() -> None:
    sim = _sim_with_row(0, [1.0, -0.5, 0.3, -0.1, -0.2])
    assert select_neighbors(sim, 0, 3) == [2]


def test_zero_similarity_neighbors_are_kept() -> None:
    sim = _sim_with_row(0, [1.0, 0.0, 0.0, 0.0])
    assert select_neighbors(sim, 0, 3) == [1, 2, 3]


def test_neighbor_sets_respect_size_self_and_sign() -> None:
    rng = np.random.default_rng(11)
    raw = rng.uniform(-1.0, 1.0, size=(9, 9))
    sim = (raw + raw.T) / 2.0
    np.fill_diagonal(sim, 1.0)

    k = 4
    for u, neigh in enumerate(select_all_neighbors(sim, k)):
        assert u not in neigh
        assert len(neigh) <= k
        assert len(set(neigh)) == len(neigh)
        assert all(sim[u, v] >= 0.0 for v in neigh)


def test_single_pass_keeps_the_k_largest_without_ties() -> None:
    sim = _sim_with_row(2, [0.3, 0.8, 1.0, 0.1, 0.7, 0.6, 0.9])
    assert set(select_neighbors(sim, 2, 3)) == {1, 4, 6}


def test_select_all_requires_square_input() -> None:
    with pytest.raises(ValueError, match="square"):
        select_all_neighbors(np.zeros((3, 4)), 3)


def test_owner_out_of_range() -> None:
    with pytest.raises(IndexError):
        select_neighbors(np.eye(4), 4, 3)
