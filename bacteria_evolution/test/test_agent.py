import dataclasses
import math

import numpy as np
import pytest

from bacteria_evolution.agent import (
    INITIAL_ENERGY,
    REPRODUCTION_COOLDOWN,
    TRAIT_NAMES,
    Agent,
    LocalConditions,
    Traits,
    hsl_color,
)


class FixedRng:
    """Never turns, zero jitter, zero initial velocity."""

    def random(self):
        return 0.5

    def uniform(self, low, high):
        return (low + high) / 2.0


def _conditions(temperature=50.0, ph=7.0, nutrient=0.0, toxicity=0.0, width=800.0, height=600.0):
    return LocalConditions(temperature, ph, nutrient, toxicity, width, height)


@pytest.mark.parametrize("resistance", [0.1, 1.0, 2.5, 10.0])
def test_factors_are_one_at_optimum(rng, resistance):
    agent = Agent(Traits(resistance=resistance), 10, 10, rng)

    assert agent.temperature_factor(50) == 1.0
    assert agent.ph_factor(7) == 1.0
    assert agent.toxicity_factor(0) == 1.0
    assert agent.energy_consumption(50, 7, 0) == pytest.approx(agent.traits.size * agent.traits.metabolism)


def test_step_energy_accounting(rng):
    agent = Agent(Traits(), 100, 100, rng)
    cond = _conditions(temperature=60, ph=6, nutrient=3.0, toxicity=0.2)
    expected = INITIAL_ENERGY - agent.energy_consumption(60, 6, 0.2) + agent.absorb_nutrients(3.0)

    assert agent.step(cond) is True
    assert agent.energy == pytest.approx(expected)
    assert agent.age == 1


def test_step_neutral_numbers(rng):
    # size 5, metabolism 1: consumption 5, absorption 3 * 2.5 * 1.0
    agent = Agent(Traits(), 100, 100, rng)
    agent.step(_conditions(nutrient=3.0))
    assert agent.energy == pytest.approx(102.5)


def test_starved_agent_dies(rng):
    agent = Agent(Traits(), 100, 100, rng)
    agent.energy = 1.0

    assert agent.step(_conditions()) is False
    assert agent.energy <= 0
    assert agent.alive is False


def test_agent_dies_at_lifespan(rng):
    agent = Agent(Traits(lifespan=3), 100, 100, rng)
    cond = _conditions(nutrient=5.0)

    assert agent.step(cond) and agent.step(cond)
    assert agent.step(cond) is False
    assert agent.age == 3
    assert not agent.alive


def test_dead_agent_is_terminal(rng):
    agent = Agent(Traits(), 100, 100, rng)
    agent.alive = False
    before = (agent.x, agent.y, agent.age, agent.energy)

    assert agent.step(_conditions(nutrient=5.0)) is False
    assert agent.reproduce() is None
    assert (agent.x, agent.y, agent.age, agent.energy) == before


def test_cooldown_counts_down(rng):
    agent = Agent(Traits(), 100, 100, rng)
    agent.reproduction_cooldown = 2
    agent.step(_conditions(nutrient=5.0))
    agent.step(_conditions(nutrient=5.0))
    agent.step(_conditions(nutrient=5.0))
    assert agent.reproduction_cooldown == 0


def test_move_reflects_at_walls():
    agent = Agent(Traits(), 799.0, 1.0, FixedRng())
    agent.vx, agent.vy = 5.0, -4.0

    agent.move(800, 600)

    assert (agent.x, agent.y) == (800.0, 0.0)
    assert (agent.vx, agent.vy) == (-5.0, 4.0)


def test_positions_stay_in_extent(rng):
    agent = Agent(Traits(speed=30), 400, 300, rng)
    for _ in range(500):
        agent.move(800, 600)
        assert 0 <= agent.x <= 800
        assert 0 <= agent.y <= 600


@pytest.mark.parametrize("energy, cooldown", [(49.99, 0), (100.0, 1), (100.0, REPRODUCTION_COOLDOWN)])
def test_reproduce_fails_leaves_parent_unchanged(rng, energy, cooldown):
    agent = Agent(Traits(), 100, 100, rng)
    agent.energy = energy
    agent.reproduction_cooldown = cooldown

    assert agent.can_reproduce() is False
    assert agent.reproduce() is None
    assert agent.energy == energy
    assert agent.reproduction_cooldown == cooldown


def test_reproduce_success(rng):
    parent = Agent(Traits(), 100, 100, rng)

    child = parent.reproduce()

    assert child is not None
    assert parent.energy == pytest.approx(70.0)
    assert parent.reproduction_cooldown == REPRODUCTION_COOLDOWN
    assert child.id != parent.id
    assert child.rng is parent.rng
    assert child.energy == INITIAL_ENERGY and child.age == 0 and child.alive
    assert abs(child.x - parent.x) <= 5 and abs(child.y - parent.y) <= 5
    assert all(getattr(child.traits, name) > 0 for name in TRAIT_NAMES)


def test_zero_mutation_rate_is_identity(rng):
    agent = Agent(Traits(mutation_rate=0), 100, 100, rng)
    for value in [0.001, 1.0, 5.0, 123.456, 1e9]:
        assert agent.mutate_property(value) == value

    child = agent.reproduce()
    assert child.traits == agent.traits


def test_mutation_stays_within_strength(rng):
    agent = Agent(Traits(mutation_rate=1.0), 100, 100, rng)
    values = [agent.mutate_property(10.0) for _ in range(200)]

    assert all(8.0 <= v <= 12.0 for v in values)
    assert len(set(values)) > 1


@pytest.mark.parametrize("name, value", [
    ("size", 0),
    ("speed", -1.0),
    ("lifespan", math.nan),
    ("metabolism", math.inf),
    ("mutation_rate", -0.01),
    ("resistance", "1"),
])
def test_traits_reject_invalid_values(name, value):
    with pytest.raises(ValueError, match=name):
        Traits(**{name: value})


def test_traits_are_frozen():
    traits = Traits()
    with pytest.raises(dataclasses.FrozenInstanceError):
        traits.size = 3.0
    assert traits.as_dict() == dict(size=5.0, speed=1.0, metabolism=1.0, resistance=1.0, lifespan=100.0, mutation_rate=0.1)


def test_color_mapping(rng):
    agent = Agent(Traits(), 100, 100, rng)
    assert agent.color() == hsl_color(agent.traits) == (120.0, 100.0, 70.0)

    r, g, b = agent.rgb_color()
    assert g == 255 and r == b

    # Out-of-range lightness is clamped rather than rejected
    bright = Agent(Traits(speed=5.0), 100, 100, rng)
    assert bright.rgb_color() == (255, 255, 255)


def test_view_is_a_frozen_copy(rng):
    agent = Agent(Traits(), 100, 100, rng)
    view = agent.view()
    agent.step(_conditions(nutrient=1.0))

    assert view.age == 0 and agent.age == 1
    with pytest.raises(dataclasses.FrozenInstanceError):
        view.energy = 0.0


def test_agent_ids_are_unique(rng):
    ids = {Agent(Traits(), 0, 0, rng).id for _ in range(100)}
    assert len(ids) == 100


def test_same_seed_same_trajectory():
    a = Agent(Traits(), 100, 100, np.random.default_rng(3))
    b = Agent(Traits(), 100, 100, np.random.default_rng(3))
    for _ in range(50):
        a.move(800, 600)
        b.move(800, 600)
    assert (a.x, a.y) == (b.x, b.y)
