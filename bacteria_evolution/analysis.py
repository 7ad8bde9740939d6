"""
analysis.py

Summary statistics over a population snapshot and pandas views of the
recorded history (population, trait averages, extinction events).
"""

from __future__ import annotations

from typing import Dict, Iterable, Sequence

import numpy as np
import pandas as pd

from bacteria_evolution.agent import TRAIT_NAMES, AgentView
from bacteria_evolution.environment import StatisticsSnapshot


def average(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def median(values: Sequence[float]) -> float:
    return float(np.median(values)) if len(values) else 0.0


def standard_deviation(values: Sequence[float]) -> float:
    # Population standard deviation (ddof=0)
    return float(np.std(values)) if len(values) else 0.0


def trait_values(agents: Iterable[AgentView], trait: str) -> np.ndarray:
    if trait not in TRAIT_NAMES:
        raise ValueError(f"unknown trait {trait!r}")
    return np.array([getattr(ag.traits, trait) for ag in agents], dtype=float)


def dominant_trait(agents: Sequence[AgentView], trait: str) -> Dict[str, float]:
    """Most common trait value after rounding to one decimal, with its share in percent."""
    values = trait_values(agents, trait)
    if values.size == 0:
        return {"value": 0.0, "percentage": 0.0}
    rounded = np.round(values, 1)
    uniques, counts = np.unique(rounded, return_counts=True)
    best = int(np.argmax(counts))
    return {"value": float(uniques[best]), "percentage": 100.0 * counts[best] / values.size}


def trait_distribution(agents: Sequence[AgentView], trait: str, bins: int = 10) -> Dict[str, object]:
    values = trait_values(agents, trait)
    if values.size == 0:
        return {"distribution": np.zeros(bins, dtype=int), "min": 0.0, "max": 0.0}

    lo = float(values.min())
    hi = float(values.max())
    hi += (hi - lo) * 0.01
    if hi == lo:
        counts = np.zeros(bins, dtype=int)
        counts[0] = values.size
    else:
        idx = np.floor((values - lo) / (hi - lo) * bins).astype(int)
        counts = np.bincount(np.clip(idx, 0, bins - 1), minlength=bins)
    return {"distribution": counts, "min": lo, "max": hi}


def latest_trait_averages(statistics: StatisticsSnapshot) -> Dict[str, float]:
    return {name: (hist[-1] if hist else 0.0) for name, hist in statistics.trait_history.items()}


# ============================================================
# PANDAS FRAMES
# ============================================================

def population_frame(statistics: StatisticsSnapshot, generation: int) -> pd.DataFrame:
    """One row per recorded step. `generation` is the current counter; history may be truncated at the front."""
    n = len(statistics.population_history)
    first = generation - n + 1
    return pd.DataFrame(
        {
            "generation": np.arange(first, first + n, dtype=int),
            "population": np.array(statistics.population_history, dtype=int),
        }
    )


def trait_frame(statistics: StatisticsSnapshot) -> pd.DataFrame:
    # Trait rows are only written for non-empty populations, so they are indexed by sample number.
    return pd.DataFrame({name: pd.Series(hist, dtype=float) for name, hist in statistics.trait_history.items()})


def extinction_frame(statistics: StatisticsSnapshot) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "generation": ev.generation,
                "previous_population": ev.previous_population,
                "current_population": ev.current_population,
            }
            for ev in statistics.extinction_events
        ],
        columns=["generation", "previous_population", "current_population"],
    )
