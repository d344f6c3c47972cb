from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from .memory_cf.matrix import DEFAULT_SENTINEL, RatingMatrix


@dataclass(frozen=True)
class RatingFile:
    min_rating: float
    max_rating: float
    matrix: RatingMatrix


def parse_rating_text(text: str, *, sentinel: str = DEFAULT_SENTINEL) -> RatingFile:
    """Parse the rating-matrix text format.

    Layout
    ------
    line 1: minimum rating
    line 2: maximum rating
    rest:   one user per line, whitespace-separated ratings, `sentinel` for unrated
    """
    lines = [ln for ln in text.splitlines() if ln.strip()]
    if len(lines) < 3:
        raise ValueError("rating file needs a min rating line, a max rating line and at least one user row")

    try:
        min_rating = float(lines[0].strip())
        max_rating = float(lines[1].strip())
    except ValueError as exc:
        raise ValueError(f"invalid rating bounds: {lines[0].strip()!r}, {lines[1].strip()!r}") from exc
    if min_rating > max_rating:
        raise ValueError(f"min rating {min_rating} is greater than max rating {max_rating}")

    try:
        frame = pd.read_csv(
            io.StringIO("\n".join(lines[2:])),
            sep=r"\s+",
            header=None,
            dtype=str,
            keep_default_na=False,
        )
    except pd.errors.ParserError as exc:
        raise ValueError(f"rating rows are not rectangular: {exc}") from exc

    validate_rating_frame(frame, sentinel=sentinel, min_rating=min_rating, max_rating=max_rating)
    matrix = RatingMatrix(
        frame.values.tolist(),
        sentinel=sentinel,
        min_rating=min_rating,
        max_rating=max_rating,
    )
    return RatingFile(min_rating=min_rating, max_rating=max_rating, matrix=matrix)


def validate_rating_frame(frame: pd.DataFrame, *, sentinel: str, min_rating: float, max_rating: float) -> None:
    """Check shape, tokens and bounds of the parsed rows."""
    short = frame.isna() | (frame == "")
    if short.any().any():
        row = int(short.any(axis=1).to_numpy().argmax())
        raise ValueError(f"user row {row} has fewer than {frame.shape[1]} ratings")

    numeric = frame.apply(pd.to_numeric, errors="coerce")
    is_sentinel = frame == sentinel
    sentinel_value = pd.to_numeric(pd.Series([sentinel]), errors="coerce").iloc[0]
    if pd.notna(sentinel_value):
        # numeric sentinels also match other spellings, e.g. "0.0" for "0"
        is_sentinel |= numeric == sentinel_value

    bad_mask = numeric.isna() & ~is_sentinel
    if bad_mask.any().any():
        bad_values = sorted(set(frame.to_numpy()[bad_mask.to_numpy()].tolist()))
        raise ValueError(f"invalid rating tokens (expected numbers or {sentinel!r}): {bad_values}")

    out_of_range = ((numeric < min_rating) | (numeric > max_rating)) & ~is_sentinel
    if out_of_range.any().any():
        bad_values = sorted(set(numeric.to_numpy()[out_of_range.to_numpy()].tolist()))
        raise ValueError(f"ratings outside [{min_rating}, {max_rating}]: {bad_values}")


def load_rating_file(path: Path, *, sentinel: str = DEFAULT_SENTINEL) -> RatingFile:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Rating matrix file not found: {path}")
    return parse_rating_text(path.read_text(), sentinel=sentinel)
