"""
field.py

Nutrient and toxicity concentration grids laid over the rectangular world.

A field is a (grid_size, grid_size) numpy array indexed [cell_y, cell_x].
Fields are regenerated as a whole and never edited in place; the array is
flagged read-only so snapshots can share it safely.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


GRID_SIZE = 20

NUTRIENT = "nutrient"
TOXICITY = "toxicity"
FIELD_KINDS = (NUTRIENT, TOXICITY)

# Nutrient patches: rich areas double, otherwise poor areas halve
RICH_PROBABILITY = 0.1
RICH_FACTOR = 2.0
POOR_PROBABILITY = 0.1
POOR_FACTOR = 0.5

# Toxicity hotspots
HOTSPOT_PROBABILITY = 0.05
HOTSPOT_FACTOR = 3.0


@dataclass(frozen=True)
class Field:
    kind: str
    grid: np.ndarray
    cell_width: float
    cell_height: float
    grid_size: int
    base_level: float

    def sample(self, x: float, y: float) -> float:
        return float(self.grid[self.cell_index(y, self.cell_height), self.cell_index(x, self.cell_width)])

    def cell_index(self, coord: float, cell_extent: float) -> int:
        # Total over floats: nan maps to 0, out-of-extent and inf clamp to the edge cells.
        if coord != coord or cell_extent <= 0:
            return 0
        ratio = coord / cell_extent
        if ratio < 0:
            return 0
        if ratio >= self.grid_size:
            return self.grid_size - 1
        return int(ratio)

    def max_value(self) -> float:
        return float(self.grid.max())

    def mean_value(self) -> float:
        return float(self.grid.mean())


def generate_field(
    base_level: float,
    kind: str,
    width: float,
    height: float,
    rng: np.random.Generator,
    grid_size: int = GRID_SIZE,
) -> Field:
    """Draw a fresh field; every cell roll is independent and redrawn each call."""
    if kind not in FIELD_KINDS:
        raise ValueError(f"unknown field kind {kind!r}; expected one of {FIELD_KINDS}")
    if grid_size < 1:
        raise ValueError(f"grid_size must be >= 1, got {grid_size}")

    shape = (grid_size, grid_size)
    grid = base_level * (0.5 + rng.random(shape))

    if kind == NUTRIENT:
        rich = rng.random(shape) < RICH_PROBABILITY
        poor = ~rich & (rng.random(shape) < POOR_PROBABILITY)
        grid[rich] *= RICH_FACTOR
        grid[poor] *= POOR_FACTOR
    else:
        hotspot = rng.random(shape) < HOTSPOT_PROBABILITY
        grid[hotspot] *= HOTSPOT_FACTOR

    grid.setflags(write=False)
    return Field(
        kind=kind,
        grid=grid,
        cell_width=width / grid_size,
        cell_height=height / grid_size,
        grid_size=grid_size,
        base_level=base_level,
    )


def sample(field: Field, x: float, y: float) -> float:
    return field.sample(x, y)
