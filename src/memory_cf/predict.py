from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

import numpy as np

from .matrix import RatingMatrix


PredictionType = Literal["simple", "mean_difference"]
PREDICTION_TYPES: tuple[str, ...] = ("simple", "mean_difference")


def check_prediction_type(prediction: str) -> str:
    if prediction not in PREDICTION_TYPES:
        raise ValueError(f"Unsupported prediction type: {prediction!r} (expected one of {list(PREDICTION_TYPES)})")
    return prediction


@dataclass(frozen=True)
class Prediction:
    user: int
    item: int
    value: float
    neighbors_used: tuple[int, ...]
    fallback: bool = False


class RatingPredictor:
    """Neighbor-weighted estimate for a single unrated cell.

    simple:           sum(sim * r_vi) / sum(|sim|)
    mean_difference:  mean_u + sum(sim * (r_vi - mean_v)) / sum(|sim|)

    Both sum over the neighbors that currently have a rating for the item, so
    a value written earlier in the same run counts as a rating. A zero weight
    sum falls back to the user's mean.
    """

    def __init__(
        self,
        matrix: RatingMatrix,
        similarity: np.ndarray,
        means: np.ndarray,
        prediction: PredictionType = "simple",
    ) -> None:
        self.matrix = matrix
        self.similarity = np.asarray(similarity, dtype=np.float64)
        self.means = np.asarray(means, dtype=np.float64)
        self.prediction = check_prediction_type(prediction)

    def predict(self, user: int, item: int, neighbors: Sequence[int]) -> Prediction:
        if not self.matrix.is_missing(user, item):
            raise ValueError(f"cell ({user}, {item}) is already rated; only unrated cells are predicted")

        numerator = 0.0
        denominator = 0.0
        used: list[int] = []
        for v in neighbors:
            if self.matrix.is_missing(v, item):
                continue
            sim = float(self.similarity[user, v])
            r = self.matrix.rating(v, item)
            if self.prediction == "mean_difference":
                r -= float(self.means[v])
            numerator += sim * r
            denominator += abs(sim)
            used.append(int(v))

        mean_u = float(self.means[user])
        if denominator == 0.0:
            return Prediction(user=int(user), item=int(item), value=mean_u, neighbors_used=tuple(used), fallback=True)

        value = numerator / denominator
        if self.prediction == "mean_difference":
            value += mean_u
        return Prediction(user=int(user), item=int(item), value=value, neighbors_used=tuple(used))
