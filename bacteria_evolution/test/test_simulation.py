import dataclasses
import math

import numpy as np
import pytest

from bacteria_evolution.agent import Agent, Traits
from bacteria_evolution.environment import EnvironmentParams
from bacteria_evolution.presets import get_bacteria_preset, get_environment_preset
from bacteria_evolution.simulation import DEFAULT_POPULATION, TRAIT_BASELINES, Simulation


def _sim(**kwargs):
    kwargs.setdefault("seed", 2024)
    return Simulation(**kwargs)


def test_initial_population_within_extent():
    sim = _sim(environment_params={"width": 300, "height": 200})
    snap = sim.snapshot()

    assert snap.population == DEFAULT_POPULATION
    assert snap.generation == 0
    assert snap.running is False
    assert all(0 <= ag.x <= 300 and 0 <= ag.y <= 200 for ag in snap.agents)


def test_random_traits_around_baselines():
    sim = _sim(initial_population=200)
    for ag in sim.snapshot().agents:
        for name, (base, spread) in TRAIT_BASELINES.items():
            assert base - spread <= getattr(ag.traits, name) <= base + spread


def test_trait_seed_fixes_named_traits_only():
    sim = _sim(initial_traits={"size": 7})
    sizes = {ag.traits.size for ag in sim.snapshot().agents}
    speeds = {ag.traits.speed for ag in sim.snapshot().agents}

    assert sizes == {7.0}
    assert len(speeds) > 1


def test_step_is_noop_while_stopped():
    sim = _sim()
    before = sim.snapshot()

    after = sim.step()

    assert after.generation == 0
    assert after.agents == before.agents
    assert after.statistics.population_history == ()


def test_statistics_reflect_pre_step_population():
    sim = _sim(initial_population=5, initial_traits=get_bacteria_preset("balanced"))
    sim.start()
    snap = sim.step()

    assert snap.generation == 1
    assert snap.statistics.population_history == (5,)
    # every fresh agent survives the first step and splits once
    assert snap.population == 10


def test_capacity_gate_is_cumulative():
    sim = _sim(
        environment_params={"carrying_capacity": 6},
        initial_population=5,
        initial_traits=get_bacteria_preset("balanced"),
    )
    sim.start()
    snap = sim.step()

    # survivors 1, 2, 3 reproduce (running counts 1, 3, 5 < 6); 4 and 5 do not
    assert snap.population == 8


def test_zero_capacity_means_no_births():
    sim = _sim(environment_params={"carrying_capacity": 0}, initial_population=20)
    sim.start()
    ids = {ag.id for ag in sim.snapshot().agents}
    for _ in range(30):
        snap = sim.step()
        assert {ag.id for ag in snap.agents} <= ids


def test_empty_population_runs_quietly():
    sim = _sim(initial_population=0)
    snap = sim.run(100)

    assert snap.population == 0
    assert snap.generation == 100
    assert set(snap.statistics.population_history) == {0}
    assert snap.statistics.extinction_events == ()


def test_starvation_logs_extinction_event():
    sim = _sim(
        environment_params={"nutrients": 0, "carrying_capacity": 0},
        initial_population=40,
        initial_traits={"size": 10, "metabolism": 3, "lifespan": 1000},
    )
    snap = sim.run(10)

    # consumption 30 per step: the whole population dies on step 4
    assert snap.population == 0
    assert snap.statistics.population_history[:5] == (40, 40, 40, 40, 0)
    events = snap.statistics.extinction_events
    assert len(events) == 1
    assert (events[0].generation, events[0].previous_population, events[0].current_population) == (5, 40, 0)


def test_snapshot_is_detached_from_live_state():
    sim = _sim(initial_population=10)
    snap = sim.snapshot()
    sim.run(5)

    assert snap.generation == 0
    assert all(ag.age == 0 for ag in snap.agents)
    with pytest.raises(dataclasses.FrozenInstanceError):
        snap.agents[0].x = 0.0
    assert isinstance(snap.agents, tuple)


def test_run_state_controls():
    sim = _sim()
    assert sim.toggle() is True and sim.running
    sim.pause()
    assert not sim.running
    sim.start()
    assert sim.snapshot().running


@pytest.mark.parametrize("speed, steps", [(0, 1), (0.5, 1), (1, 1), (2.4, 2), (2.5, 3), (10, 10)])
def test_steps_per_tick(speed, steps):
    sim = _sim(initial_population=0)
    sim.set_speed(speed)
    assert sim.steps_per_tick == steps
    assert sim.snapshot().speed == speed


@pytest.mark.parametrize("speed", [-1, math.nan, math.inf])
def test_invalid_speed_rejected(speed):
    sim = _sim(initial_population=0)
    with pytest.raises(ValueError, match="speed"):
        sim.set_speed(speed)
    assert sim.speed == 1.0


def test_reset_clears_history_and_keeps_parameters():
    sim = _sim(environment_params={"temperature": 70}, initial_population=10)
    sim.run(20)
    sim.set_initial_population(3)

    snap = sim.reset()

    assert snap.generation == 0
    assert snap.statistics.population_history == ()
    assert snap.population == 3
    assert snap.parameters.temperature == 70


def test_set_initial_traits_merges():
    sim = _sim(initial_population=4)
    sim.set_initial_traits(size=7)
    merged = sim.set_initial_traits({"speed": 2})

    assert merged == {"size": 7.0, "speed": 2.0}
    snap = sim.reset()
    assert all(ag.traits.size == 7.0 and ag.traits.speed == 2.0 for ag in snap.agents)


def test_set_environment_parameters_flows_into_snapshot():
    sim = _sim(initial_population=0)
    before = sim.snapshot().environment.nutrient_field

    params = sim.set_environment_parameters(nutrients=8)

    snap = sim.snapshot()
    assert params.nutrients == snap.parameters.nutrients == 8
    assert not np.array_equal(before.grid, snap.environment.nutrient_field.grid)


@pytest.mark.parametrize("kwargs", [
    {"initial_population": -1},
    {"initial_population": 2.5},
    {"initial_traits": {"size": 0}},
    {"initial_traits": {"colour": 1}},
    {"environment_params": {"ph": -1}},
    {"environment_params": {"oxygen": 1}},
])
def test_invalid_construction_rejected(kwargs):
    with pytest.raises(ValueError):
        _sim(**kwargs)


def test_invalid_setters_rejected():
    sim = _sim(initial_population=0)
    with pytest.raises(ValueError):
        sim.set_initial_population(-3)
    with pytest.raises(ValueError):
        sim.set_initial_traits(lifespan=-1)
    with pytest.raises(ValueError):
        sim.set_environment_parameters(width=0)
    assert sim.initial_population == 0
    assert sim.initial_traits == {}


def test_accepts_params_instance_and_shared_rng():
    rng = np.random.default_rng(1)
    sim = Simulation(EnvironmentParams(ph=5), initial_population=3, rng=rng)

    assert sim.environment.params.ph == 5
    assert sim.environment.rng is rng
    assert all(agent.rng is rng for agent in sim.agents)


def test_same_seed_same_run():
    a = Simulation(seed=77).run(60)
    b = Simulation(seed=77).run(60)

    assert a.statistics.population_history == b.statistics.population_history
    assert [(ag.x, ag.y, ag.energy) for ag in a.agents] == [(ag.x, ag.y, ag.energy) for ag in b.agents]


def test_live_agents_stay_in_extent():
    sim = _sim(environment_params={"width": 100, "height": 80}, initial_traits={"speed": 6})
    sim.start()
    for _ in range(50):
        snap = sim.step()
        for ag in snap.agents:
            assert ag.alive
            # offspring jitter is not clamped until the child's first move
            assert -5 <= ag.x <= 105 and -5 <= ag.y <= 85


def test_get_state_alias():
    sim = _sim(initial_population=2)
    assert sim.get_state().agents == sim.snapshot().agents


def test_balanced_population_survives_neutral_environment():
    survived = 0
    seeds = range(5)
    for seed in seeds:
        sim = Simulation(
            environment_params=get_environment_preset("neutral"),
            initial_traits=get_bacteria_preset("balanced"),
            initial_population=50,
            seed=seed,
        )
        if sim.run(500).population > 0:
            survived += 1
    assert survived >= len(seeds) - 1


def test_agent_class_is_what_simulation_holds():
    sim = _sim(initial_population=3)
    assert all(isinstance(agent, Agent) and isinstance(agent.traits, Traits) for agent in sim.agents)
