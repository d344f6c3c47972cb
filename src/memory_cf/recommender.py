from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .config import MemoryCFConfig
from .matrix import RatingMatrix, user_means
from .neighbors import select_all_neighbors
from .predict import Prediction, RatingPredictor
from .scheduler import PredictionScheduler
from .similarity import SimilarityEngine


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemoryCFResult:
    matrix: RatingMatrix
    similarity: np.ndarray
    neighbors: list[list[int]]
    means: np.ndarray
    predictions: list[Prediction]


class MemoryCFRecommender:
    """Memory-based user-user CF: similarity -> neighborhoods -> predictions.

    The configuration is checked against the matrix before any work is done.
    Means and similarities come from the matrix as given; predictions written
    during the pass do not feed back into either.
    """

    def __init__(self, config: MemoryCFConfig | None = None) -> None:
        self.config = (config or MemoryCFConfig()).validate()

    def run(self, matrix: RatingMatrix) -> MemoryCFResult:
        """Complete a copy of `matrix`; the caller's matrix is left untouched."""
        return self.run_inplace(matrix.copy())

    def run_inplace(self, matrix: RatingMatrix) -> MemoryCFResult:
        cfg = self.config.validate(n_users=matrix.n_users)
        logger.info(
            "MemoryCF: users=%d items=%d missing=%d metric=%s k=%d prediction=%s",
            matrix.n_users,
            matrix.n_items,
            matrix.missing_count(),
            cfg.metric,
            cfg.num_neighbors,
            cfg.prediction,
        )

        means = user_means(matrix)
        similarity = SimilarityEngine(matrix, cfg.metric, means=means).matrix()
        neighbors = select_all_neighbors(similarity, cfg.num_neighbors)

        predictor = RatingPredictor(matrix, similarity, means, cfg.prediction)
        predictions = PredictionScheduler(predictor).run(neighbors)
        _warn_out_of_bounds(matrix, predictions)

        return MemoryCFResult(
            matrix=matrix,
            similarity=similarity,
            neighbors=neighbors,
            means=means,
            predictions=predictions,
        )


def _warn_out_of_bounds(matrix: RatingMatrix, predictions: list[Prediction]) -> None:
    lo = matrix.min_rating if matrix.min_rating is not None else -np.inf
    hi = matrix.max_rating if matrix.max_rating is not None else np.inf
    outside = [p for p in predictions if not lo <= p.value <= hi]
    if outside:
        logger.warning(
            "%d predictions fall outside the rating range [%s, %s], e.g. user=%d item=%d value=%.4f",
            len(outside),
            matrix.min_rating,
            matrix.max_rating,
            outside[0].user,
            outside[0].item,
            outside[0].value,
        )
