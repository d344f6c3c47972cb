from __future__ import annotations

import logging
from typing import Sequence

from .matrix import RatingMatrix
from .predict import Prediction, RatingPredictor


logger = logging.getLogger(__name__)


def prediction_order(matrix: RatingMatrix) -> tuple[list[int], list[int]]:
    """Users and items sorted ascending by missing count (stable on index)."""
    user_missing = [matrix.missing_count_for_user(u) for u in range(matrix.n_users)]
    item_missing = [matrix.missing_count_for_item(i) for i in range(matrix.n_items)]
    users = sorted(range(matrix.n_users), key=lambda u: user_missing[u])
    items = sorted(range(matrix.n_items), key=lambda i: item_missing[i])
    return users, items


class PredictionScheduler:
    """Fills every unrated cell, fewest-missing users and items first.

    The pass is strictly sequential: a prediction written for one cell is
    visible as a neighbor rating to every cell predicted after it, so the
    results depend on this order.
    """

    def __init__(self, predictor: RatingPredictor) -> None:
        self.predictor = predictor

    def run(self, neighborhoods: Sequence[Sequence[int]]) -> list[Prediction]:
        matrix = self.predictor.matrix
        if len(neighborhoods) != matrix.n_users:
            raise ValueError(f"expected {matrix.n_users} neighborhoods, got {len(neighborhoods)}")

        users, items = prediction_order(matrix)
        written: list[Prediction] = []
        for u in users:
            for i in items:
                if not matrix.is_missing(u, i):
                    continue
                pred = self.predictor.predict(u, i, neighborhoods[u])
                matrix.set_rating(u, i, pred.value)
                written.append(pred)

        n_fallback = sum(1 for p in written if p.fallback)
        logger.info("Predicted %d cells (%d fell back to the user mean)", len(written), n_fallback)
        return written
