"""
simulation.py

Simulation controller: owns the live population and the Environment, and
drives one discrete step at a time.

Per step:
- stop early (returning the current snapshot) unless Running
- Environment.advance() on the pre-step population (stats + field schedule)
- update every agent captured at the start of the step; survivors are kept
  and may reproduce while the running count is below the carrying capacity
- swap in the new population and hand back an immutable snapshot

The capacity check is cumulative within the single pass, so agents earlier
in the list get to reproduce first when the population is near the ceiling.

The controller keeps no clock of its own. A driver calls step()
`steps_per_tick` times per frame (see bacteria_pygame_ui.py).
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Dict, List, Mapping, Tuple

import numpy as np

from bacteria_evolution.agent import TRAIT_NAMES, Agent, AgentView, Traits, check_trait
from bacteria_evolution.environment import Environment, EnvironmentParams, EnvironmentSnapshot, StatisticsSnapshot


# ============================================================
# CONFIG
# ============================================================

DEFAULT_POPULATION = 50

# Random seeding around these baselines when no explicit trait value is given
TRAIT_BASELINES: Dict[str, Tuple[float, float]] = {
    "size": (5.0, 1.5),
    "speed": (1.0, 0.3),
    "metabolism": (1.0, 0.2),
    "resistance": (1.0, 0.2),
    "lifespan": (100.0, 20.0),
    "mutation_rate": (0.1, 0.02),
}


@dataclass(frozen=True)
class SimulationSnapshot:
    agents: Tuple[AgentView, ...]
    environment: EnvironmentSnapshot
    running: bool
    speed: float

    @property
    def statistics(self) -> StatisticsSnapshot:
        return self.environment.statistics

    @property
    def parameters(self) -> EnvironmentParams:
        return self.environment.parameters

    @property
    def generation(self) -> int:
        return self.environment.generation

    @property
    def population(self) -> int:
        return len(self.agents)


def _check_trait_seed(seed: Mapping[str, float]) -> Dict[str, float]:
    unknown = sorted(set(seed) - set(TRAIT_NAMES))
    if unknown:
        raise ValueError(f"unknown trait(s): {', '.join(unknown)}")
    out = {}
    for name, value in seed.items():
        if value is None:
            continue
        out[name] = check_trait(name, value)
    return out


class Simulation:
    def __init__(
        self,
        environment_params: EnvironmentParams | Mapping[str, float] | None = None,
        initial_traits: Mapping[str, float] | None = None,
        initial_population: int = DEFAULT_POPULATION,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

        if environment_params is None:
            params = EnvironmentParams()
        elif isinstance(environment_params, EnvironmentParams):
            params = environment_params
        else:
            params = EnvironmentParams.from_mapping(environment_params)

        self.environment = Environment(params, rng=self.rng)
        self.initial_traits = _check_trait_seed(initial_traits or {})
        self.initial_population = self._check_count(initial_population)
        self.agents: List[Agent] = []

        self.running = False
        self.speed = 1.0

        self.initialize_population()

    @staticmethod
    def _check_count(count: int) -> int:
        if not isinstance(count, numbers.Integral) or count < 0:
            raise ValueError(f"population size must be a non-negative integer, got {count!r}")
        return int(count)

    # ---- Population ----

    def _seed_traits(self, seed: Mapping[str, float]) -> Traits:
        values = {}
        for name in TRAIT_NAMES:
            if name in seed:
                values[name] = seed[name]
            else:
                base, spread = TRAIT_BASELINES[name]
                values[name] = base + float(self.rng.uniform(-spread, spread))
        return Traits(**values)

    def initialize_population(self, count: int | None = None, trait_seed: Mapping[str, float] | None = None) -> None:
        count = self.initial_population if count is None else self._check_count(count)
        seed = self.initial_traits if trait_seed is None else _check_trait_seed(trait_seed)
        width, height = self.environment.params.width, self.environment.params.height

        self.agents = []
        for _ in range(count):
            traits = self._seed_traits(seed)
            x = float(self.rng.uniform(0.0, width))
            y = float(self.rng.uniform(0.0, height))
            self.agents.append(Agent(traits, x, y, self.rng))

    @property
    def population(self) -> int:
        return len(self.agents)

    # ---- Run state ----

    def start(self) -> None:
        self.running = True

    def pause(self) -> None:
        self.running = False

    def toggle(self) -> bool:
        self.running = not self.running
        return self.running

    def set_speed(self, multiplier: float) -> None:
        if not isinstance(multiplier, numbers.Real) or not math.isfinite(multiplier) or multiplier < 0:
            raise ValueError(f"speed must be a non-negative finite number, got {multiplier!r}")
        self.speed = float(multiplier)

    @property
    def steps_per_tick(self) -> int:
        # Half-up rounding, so a 2.5x speed gives 3 steps.
        return int(math.floor(max(1.0, self.speed) + 0.5))

    def reset(self) -> SimulationSnapshot:
        """Fresh environment from the current parameters (history cleared) and a fresh population."""
        self.environment = Environment(self.environment.params, rng=self.rng, grid_size=self.environment.grid_size)
        self.initialize_population()
        return self.snapshot()

    # ---- Parameter merges ----

    def set_environment_parameters(self, params: Mapping[str, float] | None = None, **changes) -> EnvironmentParams:
        return self.environment.set_parameters(params, **changes)

    def set_initial_traits(self, params: Mapping[str, float] | None = None, **changes) -> Dict[str, float]:
        merged = dict(params or {})
        merged.update(changes)
        checked = _check_trait_seed(merged)
        self.initial_traits = {**self.initial_traits, **checked}
        return dict(self.initial_traits)

    def set_initial_population(self, count: int) -> None:
        self.initial_population = self._check_count(count)

    # ---- Stepping ----

    def step(self) -> SimulationSnapshot:
        if not self.running:
            return self.snapshot()

        env = self.environment
        env.advance(self.agents)
        capacity = env.params.carrying_capacity

        # Offspring appended below are not updated until the next step.
        current = list(self.agents)
        next_agents: List[Agent] = []
        for agent in current:
            if not agent.alive:
                continue
            conditions = env.local_conditions(agent.x, agent.y)
            if not agent.step(conditions):
                continue
            next_agents.append(agent)
            if len(next_agents) < capacity:
                child = agent.reproduce(conditions)
                if child is not None:
                    next_agents.append(child)

        self.agents = next_agents
        return self.snapshot()

    def run(self, steps: int) -> SimulationSnapshot:
        self.start()
        snap = self.snapshot()
        for _ in range(steps):
            snap = self.step()
        return snap

    def snapshot(self) -> SimulationSnapshot:
        return SimulationSnapshot(
            agents=tuple(agent.view() for agent in self.agents),
            environment=self.environment.snapshot(),
            running=self.running,
            speed=self.speed,
        )

    get_state = snapshot
