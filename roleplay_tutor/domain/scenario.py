"""Domain models for role-play scenarios and their rounds of predefined questions."""
from typing import Dict, List, Literal, Optional
from pydantic import Field

from roleplay_tutor.domain.conversation import CamelModel, LevelId, ScenarioId


class RoundQuestion(CamelModel):
    """A predefined question, including the example answer shown to the learner.

    ``question`` is the full prompt text (question, example answer and the
    "Now please tell me..." nudge). Use ``sanitize_question`` before showing it
    as a bare question.
    """
    letter: str
    question: str
    example_answer: str
    difficulty: Optional[Literal["easy", "medium", "hard"]] = None
    expected_topics: List[str] = Field(default_factory=list)

    def render(self, student_name: str) -> str:
        return self.question.replace("{studentName}", student_name)


class RoundConfig(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    questions: List[RoundQuestion]


class ScenarioConfig(CamelModel):
    id: ScenarioId
    title: str
    rounds: Dict[LevelId, List[RoundConfig]] = Field(default_factory=dict)

    def rounds_for(self, level_id: LevelId) -> List[RoundConfig]:
        return self.rounds.get(level_id, [])
