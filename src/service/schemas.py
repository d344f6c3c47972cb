"""Pydantic schemas for the memory-based CF prediction API."""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class PredictRequest(BaseModel):
    """Payload for `/predict`: a rating matrix plus the CF settings."""

    ratings: list[list[Union[float, str]]] = Field(
        ..., min_length=1, description="Rows = users, columns = items; the sentinel marks unrated cells."
    )
    sentinel: str = Field("-", min_length=1, description="Token marking an unrated cell.")
    min_rating: Optional[float] = Field(None, description="Lower rating bound (reporting only).")
    max_rating: Optional[float] = Field(None, description="Upper rating bound (reporting only).")
    metric: Optional[Literal["pearson", "cosine", "euclidean"]] = Field(
        None, description="Similarity metric; server default when omitted."
    )
    num_neighbors: Optional[int] = Field(None, ge=3, description="Neighborhood size (>= 3).")
    prediction: Optional[Literal["simple", "mean_difference"]] = Field(
        None, description="Prediction formula; server default when omitted."
    )


class PredictionItem(BaseModel):
    """One filled cell, in the order it was predicted."""

    user: int
    item: int
    value: float
    neighbors_used: list[int]
    fallback: bool


class PredictResponse(BaseModel):
    metric: str
    num_neighbors: int
    prediction: str
    completed: list[list[float]]
    similarity: list[list[float]]
    neighbors: list[list[int]]
    means: list[float]
    predictions: list[PredictionItem]
