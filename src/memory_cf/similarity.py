"""User-user similarity over co-rated items.

Three metrics are supported:
- pearson: correlation of mean-centered ratings (each user centered by the
  mean of *all* their known ratings, summed over the co-rated subset only)
- cosine: raw dot product over the L2 norms of the co-rated ratings
- euclidean: inverse of the euclidean distance between co-rated ratings

A pair without co-rated items, or with a zero denominator, scores 0.0. For
euclidean a zero distance also scores 0.0 rather than infinity, so identical
co-rated ratings look exactly like no overlap at all.
"""
from __future__ import annotations

import logging
import math
from typing import Literal

import numpy as np

from .matrix import RatingMatrix, user_means


logger = logging.getLogger(__name__)

Metric = Literal["pearson", "cosine", "euclidean"]
METRICS: tuple[str, ...] = ("pearson", "cosine", "euclidean")


def _bounded(x: float) -> float:
    # Rounding can push a correlation a hair outside [-1, 1].
    return min(1.0, max(-1.0, x))


def pearson_similarity(a: np.ndarray, b: np.ndarray, mean_a: float, mean_b: float) -> float:
    da = a - mean_a
    db = b - mean_b
    den_a = math.sqrt(float((da * da).sum()))
    den_b = math.sqrt(float((db * db).sum()))
    if den_a == 0.0 or den_b == 0.0:
        return 0.0
    return _bounded(float((da * db).sum()) / (den_a * den_b))


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    norm_a = math.sqrt(float((a * a).sum()))
    norm_b = math.sqrt(float((b * b).sum()))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return _bounded(float((a * b).sum()) / (norm_a * norm_b))


def euclidean_similarity(a: np.ndarray, b: np.ndarray) -> float:
    diff = a - b
    distance = math.sqrt(float((diff * diff).sum()))
    if distance == 0.0:
        return 0.0
    return 1.0 / distance


def check_metric(metric: str) -> str:
    if metric not in METRICS:
        raise ValueError(f"Unsupported similarity metric: {metric!r} (expected one of {list(METRICS)})")
    return metric


class SimilarityEngine:
    """Scores pairs of users of a rating matrix under one metric.

    The ratings and means are snapshotted at construction, so cells written
    into the matrix afterwards (predictions) never change a similarity.
    """

    def __init__(self, matrix: RatingMatrix, metric: Metric, *, means: np.ndarray | None = None) -> None:
        self.metric = check_metric(metric)
        self._values = np.array(matrix.values, dtype=np.float64)
        self._known = np.array(matrix.known_mask, dtype=bool)
        self._means = np.array(user_means(matrix) if means is None else means, dtype=np.float64)
        if self._means.shape != (matrix.n_users,):
            raise ValueError(f"means must have shape ({matrix.n_users},), got {self._means.shape}")

    @property
    def n_users(self) -> int:
        return int(self._values.shape[0])

    def co_rated(self, u1: int, u2: int) -> np.ndarray:
        """Boolean mask of the items both users have rated."""
        return self._known[u1] & self._known[u2]

    def similarity(self, u1: int, u2: int) -> float:
        for u in (u1, u2):
            if not 0 <= int(u) < self.n_users:
                raise IndexError(f"user index {u} out of range [0, {self.n_users})")
        if u1 == u2:
            return 1.0

        mask = self.co_rated(u1, u2)
        if not mask.any():
            return 0.0
        a = self._values[u1, mask]
        b = self._values[u2, mask]

        if self.metric == "pearson":
            return pearson_similarity(a, b, float(self._means[u1]), float(self._means[u2]))
        if self.metric == "cosine":
            return cosine_similarity(a, b)
        return euclidean_similarity(a, b)

    def matrix(self) -> np.ndarray:
        """Full n x n table, every ordered pair computed on its own."""
        n = self.n_users
        out = np.empty((n, n), dtype=np.float64)
        for u1 in range(n):
            for u2 in range(n):
                out[u1, u2] = self.similarity(u1, u2)
        logger.debug("similarity matrix (%s) computed for %d users", self.metric, n)
        return out
