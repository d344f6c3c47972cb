from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ProjectPaths:
    repo_root: Path
    data_dir: Path
    config_path: Path

    @classmethod
    def from_repo_root(
        cls,
        repo_root: Path,
        *,
        data_dir: Path | str = "data",
        config_path: Path | str = "config.yaml",
    ) -> "ProjectPaths":
        def _resolve(p: Path | str) -> Path:
            p_path = Path(p) if isinstance(p, str) else p
            if not p_path.is_absolute():
                p_path = repo_root / p_path
            return p_path.resolve()

        return cls(
            repo_root=repo_root.resolve(),
            data_dir=_resolve(data_dir),
            config_path=_resolve(config_path),
        )

    def resolve_matrix(self, path: Path | str) -> Path:
        """Resolve a matrix path: as given if it exists, else under `data_dir`."""
        p = Path(path)
        if p.is_absolute() or p.exists():
            return p.resolve()
        return (self.data_dir / p).resolve()


def get_repo_root() -> Path:
    """Return repo root by searching upwards for `config.yaml` or `.git`."""
    start = Path.cwd().resolve()
    if start.is_file():
        start = start.parent

    for candidate in (start, *start.parents):
        if (candidate / "config.yaml").is_file() or (candidate / ".git").exists():
            return candidate

    # Fallback: search upwards from this file (useful if called from elsewhere).
    start = Path(__file__).resolve().parent
    for candidate in (start, *start.parents):
        if (candidate / "config.yaml").is_file() or (candidate / ".git").exists():
            return candidate

    raise FileNotFoundError("Could not locate repo root (expected `config.yaml` or `.git`).")
