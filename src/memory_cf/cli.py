from __future__ import annotations

import argparse
import logging
from pathlib import Path

import numpy as np
import pandas as pd

from ..data import load_rating_file
from ..paths import ProjectPaths, get_repo_root
from ..utils import setup_logging
from .config import load_config, read_yaml
from .predict import PREDICTION_TYPES
from .recommender import MemoryCFRecommender, MemoryCFResult
from .similarity import METRICS


logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Memory-based user-user collaborative filtering (fill unrated cells)")
    p.add_argument("--matrix", type=Path, required=True, help="Rating matrix file (min, max, then one row per user)")
    p.add_argument("--config", type=Path, default=None, help="Config YAML; default <repo>/config.yaml if present")
    p.add_argument("--metric", choices=METRICS, default=None, help="Similarity metric")
    p.add_argument("--neighbors", type=int, default=None, help="Neighborhood size (>= 3)")
    p.add_argument("--prediction", choices=PREDICTION_TYPES, default=None, help="Prediction formula")
    p.add_argument("--sentinel", type=str, default=None, help="Token marking an unrated cell (default '-')")
    p.add_argument("--decimals", type=int, default=3, help="Decimals shown in printed tables")
    p.add_argument("--log-level", type=str, default="INFO", help="Logging level")
    return p


def _project_paths(config_path: Path | None) -> ProjectPaths:
    try:
        repo_root = get_repo_root()
    except FileNotFoundError:
        repo_root = Path.cwd()
    if config_path is not None:
        return ProjectPaths.from_repo_root(repo_root, config_path=config_path)
    return ProjectPaths.from_repo_root(repo_root)


def similarity_frame(result: MemoryCFResult, *, decimals: int) -> pd.DataFrame:
    labels = [f"User {u}" for u in range(result.similarity.shape[0])]
    return pd.DataFrame(np.round(result.similarity, decimals), index=labels, columns=labels)


def neighbors_frame(result: MemoryCFResult, *, decimals: int) -> pd.DataFrame:
    rows = []
    for u, neigh in enumerate(result.neighbors):
        rows.append(
            {
                "user": u,
                "mean": round(float(result.means[u]), decimals),
                "neighbors": ", ".join(f"{v} ({result.similarity[u, v]:.{decimals}f})" for v in neigh) or "-",
            }
        )
    return pd.DataFrame(rows)


def predictions_frame(result: MemoryCFResult, *, decimals: int) -> pd.DataFrame:
    rows = [
        {
            "order": n,
            "cell": f"({p.user}, {p.item})",
            "prediction": round(p.value, decimals),
            "neighbors_used": ", ".join(str(v) for v in p.neighbors_used) or "-",
            "mean_fallback": p.fallback,
        }
        for n, p in enumerate(result.predictions, start=1)
    ]
    return pd.DataFrame(rows, columns=["order", "cell", "prediction", "neighbors_used", "mean_fallback"])


def main(argv: list[str] | None = None) -> None:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    paths = _project_paths(args.config)
    config_path = paths.config_path if (args.config is not None or paths.config_path.exists()) else None

    dataset_cfg: dict = {}
    if config_path is not None:
        raw = read_yaml(config_path).get("dataset", {})
        dataset_cfg = raw if isinstance(raw, dict) else {}
    if "data_dir" in dataset_cfg:
        paths = ProjectPaths.from_repo_root(
            paths.repo_root, data_dir=str(dataset_cfg["data_dir"]), config_path=paths.config_path
        )
    sentinel = args.sentinel if args.sentinel is not None else str(dataset_cfg.get("sentinel", "-"))

    cfg = load_config(config_path, metric=args.metric, num_neighbors=args.neighbors, prediction=args.prediction)
    matrix_path = paths.resolve_matrix(args.matrix)
    logger.info("Loading rating matrix from %s", matrix_path)
    rating_file = load_rating_file(matrix_path, sentinel=sentinel)

    result = MemoryCFRecommender(cfg).run(rating_file.matrix)
    d = int(args.decimals)

    print(f"\n=== Rating Matrix (range {rating_file.min_rating:g}..{rating_file.max_rating:g}) ===")
    print(rating_file.matrix.to_frame(decimals=d).to_string())

    print(f"\n=== Similarity ({cfg.metric}) ===")
    print(similarity_frame(result, decimals=d).to_string())

    print(f"\n=== Neighbors (k={cfg.num_neighbors}) ===")
    print(neighbors_frame(result, decimals=d).to_string(index=False))

    print(f"\n=== Predictions ({cfg.prediction}) ===")
    if result.predictions:
        print(predictions_frame(result, decimals=d).to_string(index=False))
    else:
        print("No unrated cells; nothing to predict.")

    print("\n=== Completed Matrix ===")
    print(result.matrix.to_frame(decimals=d).to_string())


if __name__ == "__main__":
    main()
