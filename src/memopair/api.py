"""High-level public API for motif-pair methylation state."""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from memopair.pileup import PILEUP_FORMATS
from memopair.pipeline import Pipeline
from memopair.report import AggregateReport

PathRef = Union[str, Path]


@dataclass(frozen=True)
class EngineConfig:
    """Unified configuration object for library usage."""

    min_cov: int = 5
    min_mod_fraction: float = 0.5
    pileup_format: str = "bedmethyl"
    strict_references: bool = False
    n_jobs: int = 1
    keep_details: bool = False


def create_config(
    min_cov: int = 5,
    min_mod_fraction: float = 0.5,
    pileup_format: str = "bedmethyl",
    strict_references: bool = False,
    n_jobs: int = 1,
    keep_details: bool = False,
) -> EngineConfig:
    """Build a validated engine config."""

    if isinstance(min_cov, bool) or not isinstance(min_cov, int) or min_cov < 0:
        raise ValueError(f"min_cov must be a non-negative integer, got {min_cov!r}")
    if not 0.0 < min_mod_fraction <= 1.0:
        raise ValueError(f"min_mod_fraction must be in (0, 1], got {min_mod_fraction!r}")
    if pileup_format not in PILEUP_FORMATS:
        available = ", ".join(PILEUP_FORMATS)
        raise ValueError(f"Unknown pileup format: {pileup_format!r}. Available: {available}")
    if n_jobs == 0:
        raise ValueError("n_jobs must be non-zero; use -1 for all cores")

    return EngineConfig(
        min_cov=min_cov,
        min_mod_fraction=float(min_mod_fraction),
        pileup_format=pileup_format,
        strict_references=bool(strict_references),
        n_jobs=int(n_jobs),
        keep_details=bool(keep_details),
    )


def run_engine(
    reference: PathRef, pileup: PathRef, motif_pairs: Iterable[str], config: EngineConfig
) -> AggregateReport:
    """Execute one run using the unified config."""

    pipeline = Pipeline(**asdict(config))
    return pipeline.run_pipeline(reference, pileup, motif_pairs)


def compute_motif_methylation_state(
    reference: PathRef,
    pileup: PathRef,
    motif_pairs: Iterable[str],
    config: Optional[EngineConfig] = None,
    **config_kwargs,
) -> AggregateReport:
    """Single-call entry point: scan, classify and aggregate motif-pair methylation."""

    if config is not None and config_kwargs:
        raise ValueError("Use either 'config' or config kwargs, not both.")

    resolved = config or create_config(**config_kwargs)
    return run_engine(reference, pileup, motif_pairs, resolved)
