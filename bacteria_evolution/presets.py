"""Named environment and bacteria starting points. Unknown names fall back to the default preset."""

from __future__ import annotations

from typing import Dict


ENVIRONMENT_PRESETS: Dict[str, Dict[str, float]] = {
    "neutral": dict(temperature=50, ph=7, nutrients=5, toxicity=0, antibiotics=0, carrying_capacity=200),
    "hot": dict(temperature=80, ph=7, nutrients=5, toxicity=0, antibiotics=0, carrying_capacity=200),
    "cold": dict(temperature=20, ph=7, nutrients=5, toxicity=0, antibiotics=0, carrying_capacity=200),
    "acidic": dict(temperature=50, ph=3, nutrients=5, toxicity=0, antibiotics=0, carrying_capacity=200),
    "alkaline": dict(temperature=50, ph=11, nutrients=5, toxicity=0, antibiotics=0, carrying_capacity=200),
    "nutrient_rich": dict(temperature=50, ph=7, nutrients=10, toxicity=0, antibiotics=0, carrying_capacity=300),
    "nutrient_poor": dict(temperature=50, ph=7, nutrients=2, toxicity=0, antibiotics=0, carrying_capacity=100),
    "toxic": dict(temperature=50, ph=7, nutrients=5, toxicity=0.5, antibiotics=0, carrying_capacity=150),
    "antibiotic": dict(temperature=50, ph=7, nutrients=5, toxicity=0, antibiotics=0.5, carrying_capacity=150),
    "extreme": dict(temperature=85, ph=2, nutrients=3, toxicity=0.3, antibiotics=0.3, carrying_capacity=100),
}

BACTERIA_PRESETS: Dict[str, Dict[str, float]] = {
    "balanced": dict(size=5, speed=1, metabolism=1, resistance=1, lifespan=100, mutation_rate=0.1),
    "large": dict(size=8, speed=0.7, metabolism=1.5, resistance=1.2, lifespan=120, mutation_rate=0.08),
    "small": dict(size=3, speed=1.3, metabolism=0.8, resistance=0.8, lifespan=80, mutation_rate=0.12),
    "fast": dict(size=4, speed=2, metabolism=1.2, resistance=0.9, lifespan=90, mutation_rate=0.1),
    "efficient": dict(size=5, speed=0.8, metabolism=0.6, resistance=1.1, lifespan=130, mutation_rate=0.08),
    "resistant": dict(size=6, speed=0.9, metabolism=1.1, resistance=2, lifespan=110, mutation_rate=0.09),
    "mutable": dict(size=5, speed=1, metabolism=1, resistance=1, lifespan=100, mutation_rate=0.3),
    "stable": dict(size=5, speed=1, metabolism=1, resistance=1, lifespan=100, mutation_rate=0.03),
}


def get_environment_preset(name: str) -> Dict[str, float]:
    return dict(ENVIRONMENT_PRESETS.get(name, ENVIRONMENT_PRESETS["neutral"]))


def get_bacteria_preset(name: str) -> Dict[str, float]:
    return dict(BACTERIA_PRESETS.get(name, BACTERIA_PRESETS["balanced"]))
