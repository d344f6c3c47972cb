from __future__ import annotations

import math

import numpy as np
import pytest

from src.memory_cf.config import MemoryCFConfig
from src.memory_cf.matrix import RatingMatrix, user_means
from src.memory_cf.predict import RatingPredictor
from src.memory_cf.recommender import MemoryCFRecommender
from src.memory_cf.scheduler import PredictionScheduler, prediction_order


ORDER_ROWS = [
    [5, 4, 3, "-"],
    ["-", "-", 2, 1],
    ["-", 3, 4, 5],
    [3, 3, 3, 3],
]


def test_prediction_order_is_fewest_missing_first_and_stable() -> None:
    users, items = prediction_order(RatingMatrix(ORDER_ROWS))
    assert users == [3, 0, 2, 1]
    assert items == [2, 1, 3, 0]


def test_cells_are_filled_user_outer_item_inner() -> None:
    result = MemoryCFRecommender(MemoryCFConfig("cosine", 3, "simple")).run(RatingMatrix(ORDER_ROWS))

    order = [(p.user, p.item) for p in result.predictions]
    assert order == [(0, 3), (2, 0), (1, 1), (1, 0)]
    assert result.matrix.missing_count() == 0


def test_scheduler_writes_in_place_and_later_cells_see_earlier_writes() -> None:
    matrix = RatingMatrix(
        [
            [4, "-", 3],
            [4, "-", "-"],
            [2, 4, 3],
            [4, 2, 3],
        ]
    )
    means = user_means(matrix)
    sim = np.eye(4)
    sim[0] = [1.0, 0.0, 0.0, 1.0]
    sim[1] = [1.0, 1.0, 0.0, 0.0]
    predictor = RatingPredictor(matrix, sim, means, "simple")

    written = PredictionScheduler(predictor).run([[1, 3], [0], [0], [0]])

    assert [(p.user, p.item) for p in written] == [(0, 1), (1, 2), (1, 1)]
    # user 0's item 1 comes from user 3, then feeds user 1's item 1
    assert written[0].value == pytest.approx(2.0)
    assert written[2].value == pytest.approx(2.0)
    assert written[2].neighbors_used == (0,)
    assert matrix.rating(1, 1) == pytest.approx(2.0)


def test_fully_rated_matrix_is_left_unchanged() -> None:
    rows = [[1, 2, 3], [3, 2, 1], [2, 2, 2], [5, 4, 3]]
    matrix = RatingMatrix(rows)

    result = MemoryCFRecommender(MemoryCFConfig("pearson", 3, "mean_difference")).run_inplace(matrix)

    assert result.predictions == []
    assert matrix.to_rows() == [[float(x) for x in r] for r in rows]


def test_neighborhood_count_must_match_users() -> None:
    matrix = RatingMatrix(ORDER_ROWS)
    predictor = RatingPredictor(matrix, np.eye(4), user_means(matrix), "simple")
    with pytest.raises(ValueError, match="neighborhoods"):
        PredictionScheduler(predictor).run([[1, 2, 3]])


def test_cosine_simple_scenario() -> None:
    matrix = RatingMatrix(
        [
            [5, 3, "-"],
            [4, "-", 2],
            ["-", 4, 5],
            [3, 3, 3],
        ],
        min_rating=1,
        max_rating=5,
    )
    result = MemoryCFRecommender(MemoryCFConfig("cosine", 3, "simple")).run(matrix)

    assert result.similarity[3, 3] == 1.0
    assert result.matrix.missing_count() == 0
    assert matrix.missing_count() == 3  # caller's matrix untouched
    assert [sorted(n) for n in result.neighbors] == [[1, 2, 3], [0, 2, 3], [0, 1, 3], [0, 1, 2]]

    s03 = 24.0 / math.sqrt(34.0 * 18.0)
    s13 = 18.0 / math.sqrt(20.0 * 18.0)
    s23 = 27.0 / math.sqrt(41.0 * 18.0)
    completed = result.matrix
    assert completed.rating(0, 2) == pytest.approx((2.0 + 5.0 + 3.0 * s03) / (2.0 + s03))
    assert completed.rating(1, 1) == pytest.approx((3.0 + 4.0 + 3.0 * s13) / (2.0 + s13))
    assert completed.rating(2, 0) == pytest.approx((5.0 + 4.0 + 3.0 * s23) / (2.0 + s23))

    for p in result.predictions:
        assert math.isfinite(p.value)
        assert 1.0 <= p.value <= 5.0


def test_means_are_not_recomputed_after_writes() -> None:
    matrix = RatingMatrix([[5, "-", "-"], [1, 1, 1], [2, 2, 2], [3, 3, 3]])
    result = MemoryCFRecommender(MemoryCFConfig("euclidean", 3, "mean_difference")).run(matrix)
    assert result.means[0] == 5.0


def test_config_is_checked_before_any_work() -> None:
    rec = MemoryCFRecommender(MemoryCFConfig("cosine", 4, "simple"))
    with pytest.raises(ValueError, match="exceeds"):
        rec.run(RatingMatrix(ORDER_ROWS))
