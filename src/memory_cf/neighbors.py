from __future__ import annotations

import logging

import numpy as np


logger = logging.getLogger(__name__)

MIN_NEIGHBORS = 3


def select_neighbors(similarity: np.ndarray, owner: int, num_neighbors: int) -> list[int]:
    """Pick up to `num_neighbors` other users for `owner` in a single pass.

    The first `num_neighbors` candidate indices (one more when the owner sits
    among them) seed the neighborhood. Every later candidate replaces the
    weakest incumbent only when strictly more similar; when several
    incumbents share the minimum the earliest slot is replaced. Neighbors
    with a negative similarity are dropped at the end.
    """
    n = int(similarity.shape[0])
    owner = int(owner)
    k = int(num_neighbors)
    if not 0 <= owner < n:
        raise IndexError(f"user index {owner} out of range [0, {n})")
    if k < 1:
        raise ValueError(f"num_neighbors must be positive, got {k}")

    window = k + 1 if owner < k else k
    window = min(window, n)
    neighbors = [c for c in range(window) if c != owner]

    if window < n:
        for candidate in range(window, n):
            if candidate == owner:
                continue
            weakest = 0
            for slot in range(1, len(neighbors)):
                if similarity[owner, neighbors[slot]] < similarity[owner, neighbors[weakest]]:
                    weakest = slot
            if similarity[owner, candidate] > similarity[owner, neighbors[weakest]]:
                neighbors[weakest] = candidate

    kept = [v for v in neighbors if similarity[owner, v] >= 0.0]
    if len(kept) < len(neighbors):
        logger.debug("user %d: pruned %d negatively-similar neighbors", owner, len(neighbors) - len(kept))
    return kept


def select_all_neighbors(similarity: np.ndarray, num_neighbors: int) -> list[list[int]]:
    similarity = np.asarray(similarity, dtype=np.float64)
    if similarity.ndim != 2 or similarity.shape[0] != similarity.shape[1]:
        raise ValueError(f"similarity must be a square matrix, got shape {similarity.shape}")
    return [select_neighbors(similarity, u, num_neighbors) for u in range(similarity.shape[0])]
