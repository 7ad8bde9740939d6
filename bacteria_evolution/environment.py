"""
environment.py

Global environment parameters, rolling population / trait statistics,
the extinction-event log, and the two spatial fields.

Statistics are recorded on the population as it stood *before* the step's
deaths and births (advance() is called first by the controller).
"""

from __future__ import annotations

import math
import numbers
from collections import deque
from dataclasses import asdict, dataclass, fields, replace
from types import MappingProxyType
from typing import Deque, Dict, Iterable, List, Mapping, Tuple

import numpy as np

from bacteria_evolution.agent import TRAIT_NAMES, Agent, AgentView, LocalConditions
from bacteria_evolution.field import GRID_SIZE, NUTRIENT, TOXICITY, Field, generate_field


# ============================================================
# CONFIG
# ============================================================

HISTORY_LIMIT = 1000
NUTRIENT_REGEN_PERIOD = 100
TOXICITY_REGEN_PERIOD = 150

# Extinction event: previous population above this ...
EXTINCTION_MIN_PREVIOUS = 10
# ... and current population at or below this fraction of it
EXTINCTION_DROP_FRACTION = 0.5

NUTRIENT_TRIGGERS = ("nutrients", "width", "height")
TOXICITY_TRIGGERS = ("toxicity", "width", "height")


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class EnvironmentParams:
    width: float = 800.0
    height: float = 600.0
    temperature: float = 50.0
    ph: float = 7.0
    nutrients: float = 5.0
    toxicity: float = 0.0
    antibiotics: float = 0.0
    carrying_capacity: int = 200

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, numbers.Real) or not math.isfinite(value) or value < 0:
                raise ValueError(f"environment parameter '{f.name}' must be a non-negative finite number, got {value!r}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"environment extent must be positive, got {self.width}x{self.height}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, float], base: EnvironmentParams | None = None) -> EnvironmentParams:
        """Merge `values` over `base` (defaults when None), rejecting unknown names."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"unknown environment parameter(s): {', '.join(unknown)}")
        return replace(base if base is not None else cls(), **values)

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ExtinctionEvent:
    generation: int
    previous_population: int
    current_population: int


@dataclass(frozen=True)
class StatisticsSnapshot:
    population_history: Tuple[int, ...]
    trait_history: Mapping[str, Tuple[float, ...]]
    extinction_events: Tuple[ExtinctionEvent, ...]

    @property
    def current_population(self) -> int:
        return self.population_history[-1] if self.population_history else 0


@dataclass(frozen=True)
class EnvironmentSnapshot:
    parameters: EnvironmentParams
    statistics: StatisticsSnapshot
    generation: int
    nutrient_field: Field
    toxicity_field: Field


# ============================================================
# STATISTICS
# ============================================================

class Statistics:
    def __init__(self, limit: int = HISTORY_LIMIT):
        self.population_history: Deque[int] = deque(maxlen=limit)
        self.trait_history: Dict[str, Deque[float]] = {name: deque(maxlen=limit) for name in TRAIT_NAMES}
        self.extinction_events: List[ExtinctionEvent] = []

    def record(self, generation: int, agents: Iterable[Agent | AgentView]) -> ExtinctionEvent | None:
        population = list(agents)
        current = len(population)
        previous = self.population_history[-1] if self.population_history else None

        self.population_history.append(current)

        if current > 0:
            values = np.array([[getattr(ag.traits, name) for name in TRAIT_NAMES] for ag in population], dtype=float)
            for name, mean in zip(TRAIT_NAMES, values.mean(axis=0)):
                self.trait_history[name].append(float(mean))

        if (
            previous is not None
            and previous > EXTINCTION_MIN_PREVIOUS
            and current <= previous * EXTINCTION_DROP_FRACTION
        ):
            event = ExtinctionEvent(generation, previous, current)
            self.extinction_events.append(event)
            return event
        return None

    def snapshot(self) -> StatisticsSnapshot:
        return StatisticsSnapshot(
            population_history=tuple(self.population_history),
            trait_history=MappingProxyType({name: tuple(h) for name, h in self.trait_history.items()}),
            extinction_events=tuple(self.extinction_events),
        )


# ============================================================
# ENVIRONMENT
# ============================================================

class Environment:
    def __init__(
        self,
        params: EnvironmentParams | None = None,
        rng: np.random.Generator | None = None,
        grid_size: int = GRID_SIZE,
    ):
        self.params = params if params is not None else EnvironmentParams()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.grid_size = grid_size
        self.generation = 0
        self.statistics = Statistics()

        self.nutrient_field = self._generate(NUTRIENT)
        self.toxicity_field = self._generate(TOXICITY)

    def _generate(self, kind: str) -> Field:
        base = self.params.nutrients if kind == NUTRIENT else self.params.toxicity
        return generate_field(base, kind, self.params.width, self.params.height, self.rng, self.grid_size)

    # ---- Parameters ----

    def set_parameters(self, params: Mapping[str, float] | None = None, **changes) -> EnvironmentParams:
        """Merge the given values into the current parameters.

        A field is regenerated only when its base level or the extent actually
        changes value. Invalid input raises ValueError and leaves the
        environment untouched.
        """
        merged = dict(params or {})
        merged.update(changes)

        old = self.params
        self.params = EnvironmentParams.from_mapping(merged, base=old)

        if any(getattr(old, name) != getattr(self.params, name) for name in NUTRIENT_TRIGGERS):
            self.nutrient_field = self._generate(NUTRIENT)
        if any(getattr(old, name) != getattr(self.params, name) for name in TOXICITY_TRIGGERS):
            self.toxicity_field = self._generate(TOXICITY)
        return self.params

    # ---- Stepping ----

    def advance(self, agents: Iterable[Agent | AgentView]) -> ExtinctionEvent | None:
        self.generation += 1
        event = self.statistics.record(self.generation, agents)

        if self.generation % NUTRIENT_REGEN_PERIOD == 0:
            self.nutrient_field = self._generate(NUTRIENT)
        if self.generation % TOXICITY_REGEN_PERIOD == 0:
            self.toxicity_field = self._generate(TOXICITY)
        return event

    # ---- Sampling ----

    def field_sample(self, kind: str, x: float, y: float) -> float:
        if kind == NUTRIENT:
            return self.nutrient_field.sample(x, y)
        if kind == TOXICITY:
            return self.toxicity_field.sample(x, y)
        raise ValueError(f"unknown field kind {kind!r}")

    def nutrient_at(self, x: float, y: float) -> float:
        return self.nutrient_field.sample(x, y)

    def toxicity_at(self, x: float, y: float) -> float:
        return self.toxicity_field.sample(x, y)

    def local_conditions(self, x: float, y: float) -> LocalConditions:
        p = self.params
        return LocalConditions(
            temperature=p.temperature,
            ph=p.ph,
            nutrient=self.nutrient_field.sample(x, y),
            toxicity=self.toxicity_field.sample(x, y),
            width=p.width,
            height=p.height,
        )

    def snapshot(self) -> EnvironmentSnapshot:
        return EnvironmentSnapshot(
            parameters=self.params,
            statistics=self.statistics.snapshot(),
            generation=self.generation,
            nutrient_field=self.nutrient_field,
            toxicity_field=self.toxicity_field,
        )
