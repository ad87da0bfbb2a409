"""Domain models for role-play conversations and turn generation."""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class TurnRole(str, Enum):
    """Who produced a line of the conversation log."""
    TUTOR = "tutor"
    USER = "user"
    FEEDBACK = "feedback"


class RolePlayMode(str, Enum):
    """Session flow: predefined question queue or free interview."""
    GUIDED = "guided"
    FREE = "free"


class ScenarioId(str, Enum):
    JOB_INTERVIEW = "jobInterview"
    AT_THE_CAFE = "atTheCafe"
    DAILY_SMALL_TALK = "dailySmallTalk"
    MEETING_SOMEONE_NEW = "meetingSomeoneNew"


class LevelId(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CamelModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ConversationTurn(CamelModel):
    """One line of the session log. Never mutated once created."""
    role: TurnRole
    text: str

    class Config:
        frozen = True


class TurnGenerationRequest(CamelModel):
    """Input to the guided turn generator.

    The generators are stateless: everything they do is derived from
    ``turn_number`` and ``conversation_history``, which the client resends
    on every call. When ``predefined_questions`` is omitted, ``round_id``
    selects a round of the scenario catalogue instead.
    """
    scenario_id: ScenarioId
    level_id: LevelId
    conversation_history: List[ConversationTurn]
    student_name: str = Field(min_length=1)
    turn_number: int = Field(default=1, ge=1)
    predefined_questions: Optional[List[str]] = None
    round_id: Optional[int] = Field(default=None, ge=1)
    company_name: Optional[str] = None
    position_name: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "scenarioId": "jobInterview",
                "levelId": "beginner",
                "conversationHistory": [
                    {"role": "tutor", "text": "Hello, Giulia. Tell me about yourself."},
                    {"role": "user", "text": "I am a hard-working person."}
                ],
                "studentName": "Giulia",
                "turnNumber": 2,
                "predefinedQuestions": ["Why do you want this job?"]
            }
        }


class FreeInterviewTurnRequest(TurnGenerationRequest):
    """Input to the free-interview generator; scenario and level are optional here."""
    scenario_id: ScenarioId = ScenarioId.JOB_INTERVIEW
    level_id: LevelId = LevelId.BEGINNER
    turn_number: int = Field(ge=1)


class TurnGenerationResult(CamelModel):
    """Normalized tutor turn returned to the client.

    ``tutor_message`` is never empty. ``closing_message`` is only set when
    ``should_end`` is true, and a client must not request another turn after
    ``should_end``.
    """
    feedback: Optional[str] = None
    question: str
    tutor_message: str
    should_end: bool = False
    closing_message: Optional[str] = None


class TutorChatRequest(CamelModel):
    """Free chat with the tutor about anything English-learning related."""
    conversation_history: List[ConversationTurn] = Field(default_factory=list)
    student_name: str = Field(min_length=1)
    student_level: LevelId = LevelId.BEGINNER
    message: str = Field(min_length=1)


class TutorChatResponse(CamelModel):
    tutor_message: str


def format_history(history: List[ConversationTurn]) -> str:
    """Render the conversation log as ``Speaker: text`` lines for prompts."""
    labels = {
        TurnRole.TUTOR: "Tutor",
        TurnRole.USER: "Student",
        TurnRole.FEEDBACK: "Feedback",
    }
    return "\n".join(f"{labels[turn.role]}: {turn.text}" for turn in history)


def last_user_message(history: List[ConversationTurn], skip: int = 0) -> Optional[str]:
    """Return the text of the most recent learner line, optionally skipping some."""
    user_lines = [turn.text for turn in reversed(history) if turn.role == TurnRole.USER]
    if len(user_lines) <= skip:
        return None
    return user_lines[skip]
