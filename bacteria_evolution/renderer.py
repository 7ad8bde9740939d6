"""
renderer.py

Paint a SimulationSnapshot onto a pygame Surface:
- light background
- nutrient cells as translucent green (opacity ~ value / (2 * base))
- toxicity cells as translucent red (opacity ~ value / (3 * base)), skipped below 0.1
- every live bacterium as a filled circle of radius `size` in its trait colour,
  with a short line along its velocity

The world extent is scaled to the surface size. Drawing only reads the snapshot.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
import pygame

from bacteria_evolution.field import Field
from bacteria_evolution.simulation import SimulationSnapshot


BACKGROUND = (240, 240, 240)
NUTRIENT_RGB = (0, 128, 0)
TOXICITY_RGB = (255, 0, 0)
DIRECTION_RGBA = (0, 0, 0, 128)

LAYER_OPACITY = 0.3
TOXICITY_MIN_LEVEL = 0.1


def _scale(snapshot: SimulationSnapshot, surface: pygame.Surface) -> Tuple[float, float]:
    params = snapshot.parameters
    return surface.get_width() / params.width, surface.get_height() / params.height


def _alpha(level: float) -> int:
    return int(round(float(np.clip(level * LAYER_OPACITY, 0.0, 1.0)) * 255))


def _draw_field(
    layer: pygame.Surface,
    field: Field,
    normalizer: float,
    rgb: Tuple[int, int, int],
    sx: float,
    sy: float,
    min_level: float | None = None,
) -> None:
    if normalizer <= 0:
        return
    cw = field.cell_width * sx
    ch = field.cell_height * sy
    levels = field.grid / normalizer
    for cy in range(field.grid_size):
        for cx in range(field.grid_size):
            level = float(levels[cy, cx])
            if min_level is not None and level <= min_level:
                continue
            rect = pygame.Rect(int(cx * cw), int(cy * ch), int(np.ceil(cw)), int(np.ceil(ch)))
            layer.fill((*rgb, _alpha(level)), rect)


def draw(
    surface: pygame.Surface,
    snapshot: SimulationSnapshot,
    show_nutrients: bool = True,
    show_toxicity: bool = True,
) -> None:
    sx, sy = _scale(snapshot, surface)
    params = snapshot.parameters
    env = snapshot.environment

    surface.fill(BACKGROUND)

    overlay = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
    if show_nutrients:
        _draw_field(overlay, env.nutrient_field, params.nutrients * 2.0, NUTRIENT_RGB, sx, sy)
        surface.blit(overlay, (0, 0))
        overlay.fill((0, 0, 0, 0))
    if show_toxicity:
        _draw_field(
            overlay, env.toxicity_field, params.toxicity * 3.0, TOXICITY_RGB, sx, sy, min_level=TOXICITY_MIN_LEVEL
        )
        surface.blit(overlay, (0, 0))
        overlay.fill((0, 0, 0, 0))

    for ag in snapshot.agents:
        if not ag.alive:
            continue
        cx, cy = ag.x * sx, ag.y * sy
        radius = max(1, int(round(ag.traits.size * min(sx, sy))))
        pygame.draw.circle(surface, ag.rgb_color(), (int(cx), int(cy)), radius)
        tip = (int(cx + ag.vx * ag.traits.size * sx), int(cy + ag.vy * ag.traits.size * sy))
        pygame.draw.line(overlay, DIRECTION_RGBA, (int(cx), int(cy)), tip)
    surface.blit(overlay, (0, 0))
