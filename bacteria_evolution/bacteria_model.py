"""
Bacteria evolution: headless runner

Runs the simulation for a fixed number of steps and reports progress on
stdout. Environment and starting traits come from the named presets and can
be overridden one by one.

Usage
-----
$ python -m bacteria_evolution.bacteria_model                   # 500 steps, neutral / balanced
$ python -m bacteria_evolution.bacteria_model --steps 2000 --seed 42 --env-preset toxic
$ python -m bacteria_evolution.bacteria_model --temperature 80 --resistance 1.5 --plot
$ python -m bacteria_evolution.bacteria_model --csv output/run   # writes run_population.csv etc.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Dict, List

from bacteria_evolution.agent import TRAIT_NAMES
from bacteria_evolution.analysis import extinction_frame, latest_trait_averages, population_frame, trait_frame
from bacteria_evolution.presets import (
    BACTERIA_PRESETS,
    ENVIRONMENT_PRESETS,
    get_bacteria_preset,
    get_environment_preset,
)
from bacteria_evolution.simulation import DEFAULT_POPULATION, Simulation, SimulationSnapshot


STEPS = 500
REPORT_EVERY = 50

ENV_OVERRIDES = ("width", "height", "temperature", "ph", "nutrients", "toxicity", "antibiotics", "carrying_capacity")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Bacteria evolution simulation (headless)")
    ap.add_argument("--steps", type=int, default=STEPS)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--population", type=int, default=DEFAULT_POPULATION)
    ap.add_argument("--env-preset", choices=sorted(ENVIRONMENT_PRESETS), default="neutral")
    ap.add_argument("--bacteria-preset", choices=sorted(BACTERIA_PRESETS), default=None,
                    help="fix starting traits to a preset (default: random around the baselines)")
    ap.add_argument("--sim-speed", type=float, default=1.0, help="steps per report tick multiplier")
    ap.add_argument("--report-every", type=int, default=REPORT_EVERY)
    ap.add_argument("--csv", default=None, help="path prefix for CSV export of the recorded history")
    ap.add_argument("--plot", action="store_true", help="show matplotlib charts at the end")

    for name in ENV_OVERRIDES:
        kind = int if name == "carrying_capacity" else float
        ap.add_argument(f"--{name.replace('_', '-')}", dest=name, type=kind, default=None)
    for name in TRAIT_NAMES:
        ap.add_argument(f"--{name.replace('_', '-')}", dest=f"trait_{name}", type=float, default=None)
    return ap


def environment_from_args(args: argparse.Namespace) -> Dict[str, float]:
    params = get_environment_preset(args.env_preset)
    for name in ENV_OVERRIDES:
        value = getattr(args, name)
        if value is not None:
            params[name] = value
    return params


def traits_from_args(args: argparse.Namespace) -> Dict[str, float]:
    traits = get_bacteria_preset(args.bacteria_preset) if args.bacteria_preset else {}
    for name in TRAIT_NAMES:
        value = getattr(args, f"trait_{name}")
        if value is not None:
            traits[name] = value
    return traits


def format_report(snapshot: SimulationSnapshot) -> str:
    avg = latest_trait_averages(snapshot.statistics)
    return (
        f"t={snapshot.generation:5d} population={snapshot.population:4d} "
        f"size={avg['size']:.2f} speed={avg['speed']:.2f} metabolism={avg['metabolism']:.2f} "
        f"resistance={avg['resistance']:.2f} lifespan={avg['lifespan']:.1f} "
        f"mutation_rate={avg['mutation_rate']:.3f}"
    )


def run(sim: Simulation, steps: int, report_every: int = REPORT_EVERY) -> List[SimulationSnapshot]:
    """Step `sim` for `steps` generations, printing progress; returns the reported snapshots."""
    sim.start()
    reports: List[SimulationSnapshot] = []
    seen_events = len(sim.environment.statistics.extinction_events)
    extinct_reported = False

    snap = sim.snapshot()
    for t in range(steps):
        snap = sim.step()

        events = snap.statistics.extinction_events
        for ev in events[seen_events:]:
            print(
                f"Extinction event at generation {ev.generation}: "
                f"{ev.previous_population} -> {ev.current_population}"
            )
        seen_events = len(events)

        if report_every > 0 and (t + 1) % report_every == 0:
            print(format_report(snap))
            reports.append(snap)

        if snap.population == 0 and not extinct_reported:
            print(f"Population extinct at generation {snap.generation}")
            extinct_reported = True

    sim.pause()
    return reports


def export_csv(snapshot: SimulationSnapshot, prefix: str) -> List[Path]:
    base = Path(prefix)
    base.parent.mkdir(parents=True, exist_ok=True)
    outputs = {
        f"{base.name}_population.csv": population_frame(snapshot.statistics, snapshot.generation),
        f"{base.name}_traits.csv": trait_frame(snapshot.statistics),
        f"{base.name}_extinctions.csv": extinction_frame(snapshot.statistics),
    }
    written = []
    for name, df in outputs.items():
        path = base.parent / name
        df.to_csv(path, index=False)
        written.append(path)
    return written


def main(argv: List[str] | None = None) -> SimulationSnapshot:
    args = build_parser().parse_args(argv)

    sim = Simulation(
        environment_params=environment_from_args(args),
        initial_traits=traits_from_args(args),
        initial_population=args.population,
        seed=args.seed,
    )
    sim.set_speed(args.sim_speed)

    # An external driver steps `steps_per_tick` times per tick; here one tick is one report slot.
    run(sim, args.steps, report_every=args.report_every * sim.steps_per_tick)
    final = sim.snapshot()
    print(f"Simulation finished after {final.generation} generations.")
    print(f"Population remaining: {final.population}")
    print(f"Extinction events: {len(final.statistics.extinction_events)}")

    if args.csv:
        for path in export_csv(final, args.csv):
            print(f"Saved: {path}")

    if args.plot:
        from bacteria_evolution.plot_statistics import plot_summary

        plot_summary(final, show=True)
    return final


if __name__ == "__main__":
    main()
