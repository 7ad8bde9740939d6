"""
agent.py

A single bacterium: trait vector, physiological state and the per-step
energy / aging / movement / reproduction rules.

Every random draw goes through the numpy Generator handed to the agent at
construction, and offspring inherit their parent's generator, so a whole run
is reproducible from one seed.
"""

from __future__ import annotations

import colorsys
import itertools
import math
import numbers
from dataclasses import dataclass, fields
from typing import Dict, Tuple

import numpy as np


# ============================================================
# CONFIG
# ============================================================

INITIAL_ENERGY = 100.0
REPRODUCTION_ENERGY_MIN = 50.0
REPRODUCTION_ENERGY_KEEP = 0.7
REPRODUCTION_COOLDOWN = 20
OFFSPRING_JITTER = 5.0

MUTATION_STRENGTH = 0.2
TURN_PROBABILITY = 0.1

OPTIMAL_TEMPERATURE = 50.0
OPTIMAL_PH = 7.0

TRAIT_NAMES = ("size", "speed", "metabolism", "resistance", "lifespan", "mutation_rate")

_agent_ids = itertools.count(1)


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class Traits:
    size: float = 5.0
    speed: float = 1.0
    metabolism: float = 1.0
    resistance: float = 1.0
    lifespan: float = 100.0
    mutation_rate: float = 0.1

    def __post_init__(self):
        for f in fields(self):
            check_trait(f.name, getattr(self, f.name))

    def as_dict(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in TRAIT_NAMES}


@dataclass(frozen=True)
class LocalConditions:
    """What an agent sees at its position for one step."""

    temperature: float
    ph: float
    nutrient: float
    toxicity: float
    width: float
    height: float


@dataclass(frozen=True)
class AgentView:
    """Read-only copy of an agent handed to renderers and statistics."""

    id: int
    x: float
    y: float
    vx: float
    vy: float
    age: int
    energy: float
    alive: bool
    reproduction_cooldown: int
    traits: Traits

    def color(self) -> Tuple[float, float, float]:
        return hsl_color(self.traits)

    def rgb_color(self) -> Tuple[int, int, int]:
        return hsl_to_rgb(*hsl_color(self.traits))


# ============================================================
# HELPERS
# ============================================================

def check_trait(name: str, value: float) -> float:
    """mutation_rate may be 0 (a lineage that never mutates); every other trait must be > 0."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
        raise ValueError(f"trait '{name}' must be a finite number, got {value!r}")
    if value < 0 or (value == 0 and name != "mutation_rate"):
        raise ValueError(f"trait '{name}' must be a positive finite number, got {value!r}")
    return float(value)


def hsl_color(traits: Traits) -> Tuple[float, float, float]:
    """(hue degrees, saturation %, lightness %) derived from resistance, metabolism, speed."""
    hue = (traits.resistance * 120.0) % 360.0
    saturation = 50.0 + traits.metabolism * 50.0
    lightness = 30.0 + traits.speed * 40.0
    return hue, saturation, lightness


def hsl_to_rgb(hue: float, saturation: float, lightness: float) -> Tuple[int, int, int]:
    # Traits are unbounded, so saturation/lightness can leave the 0-100 range.
    s = min(max(saturation / 100.0, 0.0), 1.0)
    l = min(max(lightness / 100.0, 0.0), 1.0)
    r, g, b = colorsys.hls_to_rgb((hue % 360.0) / 360.0, l, s)
    return int(round(r * 255)), int(round(g * 255)), int(round(b * 255))


# ============================================================
# AGENT
# ============================================================

class Agent:
    def __init__(self, traits: Traits, x: float, y: float, rng: np.random.Generator):
        self.id = next(_agent_ids)
        self.traits = traits
        self.x = float(x)
        self.y = float(y)
        self.rng = rng

        self.age = 0
        self.energy = INITIAL_ENERGY
        self.alive = True
        self.reproduction_cooldown = 0

        self.vx, self.vy = self._random_velocity()

    def __repr__(self):
        return (
            f"Agent(id={self.id}, x={self.x:.1f}, y={self.y:.1f}, energy={self.energy:.1f}, "
            f"age={self.age}, alive={self.alive})"
        )

    def _random_velocity(self) -> Tuple[float, float]:
        speed = self.traits.speed
        return float(self.rng.uniform(-1.0, 1.0)) * speed, float(self.rng.uniform(-1.0, 1.0)) * speed

    # ---- Physiology ----

    def temperature_factor(self, temperature: float) -> float:
        deviation = abs(temperature - OPTIMAL_TEMPERATURE) / 50.0
        return 1.0 + deviation * (1.0 - self.traits.resistance * 0.5)

    def ph_factor(self, ph: float) -> float:
        deviation = abs(ph - OPTIMAL_PH) / 7.0
        return 1.0 + deviation * (1.0 - self.traits.resistance * 0.5)

    def toxicity_factor(self, toxicity: float) -> float:
        return 1.0 + toxicity * (1.0 - self.traits.resistance * 0.8)

    def energy_consumption(self, temperature: float, ph: float, toxicity: float) -> float:
        t = self.traits
        return (
            t.size
            * t.metabolism
            * self.temperature_factor(temperature)
            * self.ph_factor(ph)
            * self.toxicity_factor(toxicity)
        )

    def absorb_nutrients(self, nutrient: float) -> float:
        absorption_rate = self.traits.size * 0.5
        processing_efficiency = 0.5 + self.traits.metabolism * 0.5
        return nutrient * absorption_rate * processing_efficiency

    def step(self, conditions: LocalConditions) -> bool:
        """Advance one tick. Returns whether the agent is still alive."""
        if not self.alive:
            return False

        self.energy -= self.energy_consumption(conditions.temperature, conditions.ph, conditions.toxicity)
        self.energy += self.absorb_nutrients(conditions.nutrient)
        self.age += 1
        if self.reproduction_cooldown > 0:
            self.reproduction_cooldown -= 1

        if self.energy <= 0 or self.age >= self.traits.lifespan:
            self.alive = False
            return False

        self.move(conditions.width, conditions.height)
        return True

    def move(self, width: float, height: float) -> None:
        if self.rng.random() < TURN_PROBABILITY:
            self.vx, self.vy = self._random_velocity()

        self.x += self.vx
        self.y += self.vy

        if self.x < 0:
            self.x = 0.0
            self.vx = -self.vx
        elif self.x > width:
            self.x = float(width)
            self.vx = -self.vx

        if self.y < 0:
            self.y = 0.0
            self.vy = -self.vy
        elif self.y > height:
            self.y = float(height)
            self.vy = -self.vy

    # ---- Reproduction ----

    def can_reproduce(self) -> bool:
        return self.alive and self.reproduction_cooldown <= 0 and self.energy >= REPRODUCTION_ENERGY_MIN

    def reproduce(self, conditions: LocalConditions | None = None) -> Agent | None:
        """Split off one mutated child, or return None without touching the parent."""
        if not self.can_reproduce():
            return None

        self.energy *= REPRODUCTION_ENERGY_KEEP
        self.reproduction_cooldown = REPRODUCTION_COOLDOWN

        child_x = self.x + float(self.rng.uniform(-OFFSPRING_JITTER, OFFSPRING_JITTER))
        child_y = self.y + float(self.rng.uniform(-OFFSPRING_JITTER, OFFSPRING_JITTER))
        child_traits = Traits(**{name: self.mutate_property(getattr(self.traits, name)) for name in TRAIT_NAMES})
        return Agent(child_traits, child_x, child_y, self.rng)

    def mutate_property(self, value: float) -> float:
        # mutation_rate is itself mutated and never clamped, so it can drift freely.
        if self.rng.random() < self.traits.mutation_rate:
            change = 1.0 + float(self.rng.uniform(-MUTATION_STRENGTH, MUTATION_STRENGTH))
            return value * change
        return value

    # ---- Views ----

    def color(self) -> Tuple[float, float, float]:
        return hsl_color(self.traits)

    def rgb_color(self) -> Tuple[int, int, int]:
        return hsl_to_rgb(*hsl_color(self.traits))

    def view(self) -> AgentView:
        return AgentView(
            id=self.id,
            x=self.x,
            y=self.y,
            vx=self.vx,
            vy=self.vy,
            age=self.age,
            energy=self.energy,
            alive=self.alive,
            reproduction_cooldown=self.reproduction_cooldown,
            traits=self.traits,
        )
