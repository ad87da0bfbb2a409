"""Scenario catalogue loaded from ``scenarios.json``.

The file is read once and cached; lookups by scenario and level return the
rounds of predefined questions the guided mode walks through.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from roleplay_tutor.domain.conversation import LevelId, ScenarioId
from roleplay_tutor.domain.scenario import RoundConfig, ScenarioConfig

DATA_PATH = Path(__file__).resolve().parent / "scenarios.json"


@lru_cache(maxsize=1)
def load_scenarios() -> Dict[ScenarioId, ScenarioConfig]:
    """Load the catalogue once and validate it into ScenarioConfig models."""
    with open(DATA_PATH, encoding="utf-8") as f:
        raw = json.load(f)
    return {
        ScenarioId(scenario_id): ScenarioConfig(id=scenario_id, **config)
        for scenario_id, config in raw.items()
    }


def get_scenario(scenario_id: ScenarioId) -> Optional[ScenarioConfig]:
    return load_scenarios().get(ScenarioId(scenario_id))


def get_scenario_rounds(scenario_id: ScenarioId, level_id: LevelId) -> List[RoundConfig]:
    """Return the rounds for a scenario at a level, or an empty list."""
    scenario = get_scenario(scenario_id)
    if scenario is None:
        return []
    return scenario.rounds_for(LevelId(level_id))


def get_predefined_questions(
    scenario_id: ScenarioId,
    level_id: LevelId,
    round_id: int,
    student_name: str = "",
) -> List[str]:
    """Return the question texts of one round, in order, ready to send as ``predefinedQuestions``."""
    for round_config in get_scenario_rounds(scenario_id, level_id):
        if round_config.id == round_id:
            return [q.render(student_name) for q in round_config.questions]
    return []
