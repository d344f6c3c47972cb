from __future__ import annotations

from typing import Any, Sequence

import numpy as np
import pandas as pd


DEFAULT_SENTINEL = "-"


class RatingMatrix:
    """Dense user x item rating table with a sentinel for unrated cells.

    Rows are users and columns are items. Known ratings live in a float array
    and a parallel boolean mask records which cells are known; sentinel cells
    hold NaN in the float array and are never read as numbers.
    """

    def __init__(
        self,
        rows: Sequence[Sequence[Any]],
        *,
        sentinel: str = DEFAULT_SENTINEL,
        min_rating: float | None = None,
        max_rating: float | None = None,
    ) -> None:
        rows = [list(r) for r in rows]
        if not rows:
            raise ValueError("rating matrix must have at least one user row")
        n_items = len(rows[0])
        if n_items == 0:
            raise ValueError("rating matrix must have at least one item column")

        sentinel = str(sentinel).strip()
        try:
            sentinel_value: float | None = float(sentinel)
        except ValueError:
            sentinel_value = None

        values = np.full((len(rows), n_items), np.nan, dtype=np.float64)
        known = np.zeros((len(rows), n_items), dtype=bool)
        for u, row in enumerate(rows):
            if len(row) != n_items:
                raise ValueError(f"row {u} has {len(row)} values, expected {n_items}")
            for i, cell in enumerate(row):
                if str(cell).strip() == sentinel:
                    continue
                try:
                    value = float(cell)
                except (TypeError, ValueError) as exc:
                    raise ValueError(
                        f"cell ({u}, {i}) is neither a number nor the sentinel {sentinel!r}: {cell!r}"
                    ) from exc
                # a numeric sentinel matches any spelling of its value (0, 0.0, "0")
                if sentinel_value is not None and value == sentinel_value:
                    continue
                if not np.isfinite(value):
                    raise ValueError(f"cell ({u}, {i}) is not a finite rating: {cell!r}")
                values[u, i] = value
                known[u, i] = True

        self.sentinel = sentinel
        self.min_rating = None if min_rating is None else float(min_rating)
        self.max_rating = None if max_rating is None else float(max_rating)
        self._values = values
        self._known = known

    @classmethod
    def _from_arrays(cls, values: np.ndarray, known: np.ndarray, template: "RatingMatrix") -> "RatingMatrix":
        obj = cls.__new__(cls)
        obj.sentinel = template.sentinel
        obj.min_rating = template.min_rating
        obj.max_rating = template.max_rating
        obj._values = values
        obj._known = known
        return obj

    @property
    def n_users(self) -> int:
        return int(self._values.shape[0])

    @property
    def n_items(self) -> int:
        return int(self._values.shape[1])

    @property
    def shape(self) -> tuple[int, int]:
        return (self.n_users, self.n_items)

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the ratings; sentinel cells are NaN."""
        view = self._values.view()
        view.flags.writeable = False
        return view

    @property
    def known_mask(self) -> np.ndarray:
        view = self._known.view()
        view.flags.writeable = False
        return view

    def _check_user(self, u: int) -> int:
        if not 0 <= int(u) < self.n_users:
            raise IndexError(f"user index {u} out of range [0, {self.n_users})")
        return int(u)

    def _check_item(self, i: int) -> int:
        if not 0 <= int(i) < self.n_items:
            raise IndexError(f"item index {i} out of range [0, {self.n_items})")
        return int(i)

    def is_missing(self, u: int, i: int) -> bool:
        return not bool(self._known[self._check_user(u), self._check_item(i)])

    def rating(self, u: int, i: int) -> float:
        u, i = self._check_user(u), self._check_item(i)
        if not self._known[u, i]:
            raise ValueError(f"cell ({u}, {i}) is unrated")
        return float(self._values[u, i])

    def missing_count_for_user(self, u: int) -> int:
        return int((~self._known[self._check_user(u)]).sum())

    def missing_count_for_item(self, i: int) -> int:
        return int((~self._known[:, self._check_item(i)]).sum())

    def missing_count(self) -> int:
        return int((~self._known).sum())

    def set_rating(self, u: int, i: int, value: float) -> None:
        """Fill a currently unrated cell in place."""
        u, i = self._check_user(u), self._check_item(i)
        if self._known[u, i]:
            raise ValueError(f"cell ({u}, {i}) already holds a rating")
        self._values[u, i] = float(value)
        self._known[u, i] = True

    def copy(self) -> "RatingMatrix":
        return RatingMatrix._from_arrays(self._values.copy(), self._known.copy(), self)

    def to_rows(self) -> list[list[float | str]]:
        """Plain nested lists; unrated cells come back as the sentinel."""
        out: list[list[float | str]] = []
        for u in range(self.n_users):
            out.append(
                [float(self._values[u, i]) if self._known[u, i] else self.sentinel for i in range(self.n_items)]
            )
        return out

    def to_frame(self, *, decimals: int | None = None) -> pd.DataFrame:
        """Display table with `User N` / `Item N` labels."""
        df = pd.DataFrame(
            self._values,
            index=[f"User {u}" for u in range(self.n_users)],
            columns=[f"Item {i}" for i in range(self.n_items)],
        )
        if decimals is not None:
            df = df.round(int(decimals))
        return df.astype(object).where(self._known, self.sentinel)

    def __repr__(self) -> str:
        return f"RatingMatrix(n_users={self.n_users}, n_items={self.n_items}, missing={self.missing_count()})"


def user_means(matrix: RatingMatrix) -> np.ndarray:
    """Per-user mean over known ratings only (0.0 for a user with none)."""
    values = matrix.values
    known = matrix.known_mask
    means = np.zeros(matrix.n_users, dtype=np.float64)
    for u in range(matrix.n_users):
        row = values[u, known[u]]
        if row.size:
            means[u] = float(row.sum()) / float(row.size)
    return means
