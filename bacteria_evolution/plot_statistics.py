"""
plot_statistics.py

matplotlib charts of a run's recorded statistics: population history, the six
trait averages, extinction events and the trait distribution of the current
population.

Each function draws into a new figure and returns it; pass `show=True` to
display it immediately, or `path=` to save it.
"""

from __future__ import annotations

from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np

from bacteria_evolution.agent import TRAIT_NAMES, AgentView
from bacteria_evolution.analysis import population_frame, trait_distribution, trait_frame
from bacteria_evolution.simulation import SimulationSnapshot


def _finish(fig: plt.Figure, show: bool, path: str | None) -> plt.Figure:
    fig.tight_layout()
    if path is not None:
        fig.savefig(path)
    if show:
        plt.show()
    return fig


def plot_population(snapshot: SimulationSnapshot, show: bool = False, path: str | None = None) -> plt.Figure:
    df = population_frame(snapshot.statistics, snapshot.generation)
    fig, ax = plt.subplots(figsize=(8.0, 3.5))
    ax.plot(df["generation"], df["population"], label="Population")
    for ev in snapshot.statistics.extinction_events:
        ax.axvline(ev.generation, color="red", alpha=0.3, linewidth=0.8)
    ax.set_xlabel("Generation")
    ax.set_ylabel("Population")
    ax.set_title(f"Population (generation {snapshot.generation})")
    ax.grid(alpha=0.25)
    ax.legend(loc="upper right")
    return _finish(fig, show, path)


def plot_traits(snapshot: SimulationSnapshot, show: bool = False, path: str | None = None) -> plt.Figure:
    df = trait_frame(snapshot.statistics)
    fig, axes = plt.subplots(2, 3, figsize=(11.0, 6.0), sharex=True)
    for ax, name in zip(axes.flat, TRAIT_NAMES):
        ax.plot(df.index, df[name])
        ax.set_title(name.replace("_", " ").capitalize())
        ax.grid(alpha=0.25)
    for ax in axes[-1]:
        ax.set_xlabel("Sample")
    fig.suptitle("Average traits")
    return _finish(fig, show, path)


def plot_trait_distribution(
    agents: Sequence[AgentView],
    trait: str,
    bins: int = 10,
    show: bool = False,
    path: str | None = None,
) -> plt.Figure:
    dist = trait_distribution(agents, trait, bins=bins)
    edges = np.linspace(dist["min"], dist["max"], bins + 1)
    fig, ax = plt.subplots(figsize=(6.0, 3.5))
    ax.bar(edges[:-1], dist["distribution"], width=np.diff(edges) if dist["max"] > dist["min"] else 1.0, align="edge")
    ax.set_xlabel(trait.replace("_", " "))
    ax.set_ylabel("Count")
    ax.set_title(f"{trait.replace('_', ' ').capitalize()} distribution")
    return _finish(fig, show, path)


def plot_summary(snapshot: SimulationSnapshot, show: bool = True, path: str | None = None) -> None:
    """Population and trait charts for the end of a run."""
    if not snapshot.statistics.population_history:
        print("No statistics to plot.")
        return
    plot_population(snapshot, path=None if path is None else f"{path}_population.png")
    plot_traits(snapshot, path=None if path is None else f"{path}_traits.png")
    if show:
        plt.show()
