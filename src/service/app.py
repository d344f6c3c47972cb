"""FastAPI service entrypoint for the memory-based CF predictor."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import replace
from pathlib import Path

from fastapi import FastAPI, HTTPException

from ..memory_cf.config import MemoryCFConfig, load_config
from ..memory_cf.matrix import RatingMatrix
from ..memory_cf.recommender import MemoryCFRecommender
from ..paths import get_repo_root
from ..utils import setup_logging
from .schemas import PredictRequest, PredictResponse

logger = logging.getLogger(__name__)


def _get_env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or str(raw).strip() == "":
        return default
    p = Path(str(raw))
    return p if p.is_absolute() else (get_repo_root() / p).resolve()


def _default_config() -> MemoryCFConfig:
    try:
        config_path = _get_env_path("CONFIG_PATH", get_repo_root() / "config.yaml")
    except FileNotFoundError:
        return MemoryCFConfig()
    if not config_path.exists():
        logger.info("No config at %s; using built-in MemoryCF defaults", config_path)
        return MemoryCFConfig()
    logger.info("Loading MemoryCF defaults from %s", config_path)
    return load_config(config_path)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    app.state.default_config = _default_config().validate()
    yield


app = FastAPI(title="Memory-based Collaborative Filtering Service", lifespan=lifespan)


def _config_for(req: PredictRequest) -> MemoryCFConfig:
    base = getattr(app.state, "default_config", None) or MemoryCFConfig()
    overrides = {
        "metric": req.metric,
        "num_neighbors": req.num_neighbors,
        "prediction": req.prediction,
    }
    return replace(base, **{k: v for k, v in overrides.items() if v is not None})


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/predict", response_model=PredictResponse)
def predict(req: PredictRequest) -> dict:
    """Fill every unrated cell of the posted matrix."""
    cfg = _config_for(req)
    try:
        matrix = RatingMatrix(
            req.ratings,
            sentinel=req.sentinel,
            min_rating=req.min_rating,
            max_rating=req.max_rating,
        )
        result = MemoryCFRecommender(cfg).run(matrix)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "metric": cfg.metric,
        "num_neighbors": int(cfg.num_neighbors),
        "prediction": cfg.prediction,
        "completed": result.matrix.values.tolist(),
        "similarity": result.similarity.tolist(),
        "neighbors": result.neighbors,
        "means": result.means.tolist(),
        "predictions": [
            {
                "user": p.user,
                "item": p.item,
                "value": p.value,
                "neighbors_used": list(p.neighbors_used),
                "fallback": p.fallback,
            }
            for p in result.predictions
        ],
    }
