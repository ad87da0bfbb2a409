"""Tests for the scenario catalogue, prompt composition and prompt resolver."""
import pytest

from roleplay_tutor.core.errors import PromptNotFoundError
from roleplay_tutor.domain.conversation import (
    ConversationTurn,
    LevelId,
    RolePlayMode,
    ScenarioId,
    TurnRole,
)
from roleplay_tutor.domain.interview import COMPANY_QUESTION, POSITION_QUESTION
from roleplay_tutor.prompts.catalog import get_predefined_questions, get_scenario, get_scenario_rounds
from roleplay_tutor.prompts.composer import compose_prompt, compose_user_prompt
from roleplay_tutor.prompts.instructions import LEVEL_GUIDELINES, ROUNDS_INSTRUCTIONS
from roleplay_tutor.prompts.resolver import PromptContext, get_prompt


@pytest.fixture
def context():
    return PromptContext(
        student_name="Giulia",
        conversation_history=[
            ConversationTurn(role=TurnRole.TUTOR, text="Tell me about yourself."),
            ConversationTurn(role=TurnRole.USER, text="I am a hard-working person."),
        ],
        turn_number=2,
    )


class TestCatalog:
    """Test the scenario catalogue."""

    @pytest.mark.parametrize("scenario_id", list(ScenarioId))
    def test_every_scenario_has_rounds_per_level(self, scenario_id):
        """Each scenario ships rounds for all three levels."""
        scenario = get_scenario(scenario_id)

        assert scenario is not None
        for level in LevelId:
            rounds = get_scenario_rounds(scenario_id, level)
            assert rounds, f"{scenario_id.value}/{level.value} has no rounds"
            assert all(r.questions for r in rounds)

    def test_job_interview_first_round(self):
        """The beginner job interview starts with general questions."""
        questions = get_predefined_questions(ScenarioId.JOB_INTERVIEW, LevelId.BEGINNER, 1)

        assert len(questions) == 5
        assert questions[0].startswith("Tell me about yourself?")

    def test_unknown_round_is_empty(self):
        """Rounds that do not exist yield no questions."""
        assert get_predefined_questions(ScenarioId.AT_THE_CAFE, LevelId.BEGINNER, 99) == []

    def test_questions_carry_example_answers(self):
        """Round questions keep their example answer and topics."""
        question = get_scenario_rounds(ScenarioId.JOB_INTERVIEW, LevelId.BEGINNER)[0].questions[0]

        assert question.letter == "A"
        assert question.example_answer
        assert question.expected_topics


class TestComposer:
    """Test prompt composition helpers."""

    def test_skips_empty_parts(self):
        """Empty and blank blocks are dropped."""
        assert compose_prompt(role="Role", instructions="  ", guidelines="Rules") == "Role\n\nRules"

    def test_user_prompt_without_context(self):
        """A missing context leaves only the user content."""
        assert compose_user_prompt(None, "Ask a question") == "Ask a question"


class TestResolver:
    """Test get_prompt."""

    def test_guided_round_prompt(self, context):
        """A predefined question selects the feedback-only round prompt."""
        prompt = get_prompt(
            ScenarioId.AT_THE_CAFE,
            LevelId.INTERMEDIATE,
            RolePlayMode.GUIDED,
            context,
            predefined_question="What would you like to order?",
        )

        assert ROUNDS_INSTRUCTIONS in prompt.system_prompt
        assert LEVEL_GUIDELINES[LevelId.INTERMEDIATE] in prompt.system_prompt
        assert "What would you like to order?" in prompt.user_prompt
        assert "Student: I am a hard-working person." in prompt.user_prompt
        assert prompt.response_format == "json_object"

    def test_predefined_question_from_context(self, context):
        """The context's predefined question is used when none is passed."""
        context.predefined_question = "Why this job?"

        prompt = get_prompt(ScenarioId.JOB_INTERVIEW, LevelId.BEGINNER, RolePlayMode.GUIDED, context)

        assert ROUNDS_INSTRUCTIONS in prompt.system_prompt
        assert "Why this job?" in prompt.user_prompt

    def test_guided_job_interview_prompt(self, context):
        """Guided mode without a predefined question asks for a full turn."""
        prompt = get_prompt(ScenarioId.JOB_INTERVIEW, LevelId.ADVANCED, RolePlayMode.GUIDED, context)

        assert "Current turn number: 2" in prompt.user_prompt
        assert '"feedback"' in prompt.user_prompt
        assert '"question"' in prompt.user_prompt

    def test_free_prompt_follows_phase(self, context):
        """Free prompts are keyed by the interview phase."""
        context.turn_number = 2
        ask_company = get_prompt(ScenarioId.JOB_INTERVIEW, LevelId.BEGINNER, RolePlayMode.FREE, context)
        context.turn_number = 3
        ask_position = get_prompt(ScenarioId.JOB_INTERVIEW, LevelId.BEGINNER, RolePlayMode.FREE, context)

        assert COMPANY_QUESTION in ask_company.user_prompt
        assert POSITION_QUESTION in ask_position.user_prompt

    def test_free_closing_prompt(self, context):
        """Turn 10 asks the model to end the interview."""
        context.turn_number = 10

        prompt = get_prompt(ScenarioId.JOB_INTERVIEW, LevelId.BEGINNER, RolePlayMode.FREE, context)

        assert '"shouldEnd" to true' in prompt.user_prompt

    def test_accepts_plain_strings(self, context):
        """Scenario, level and mode may be passed as their wire values."""
        prompt = get_prompt("jobInterview", "beginner", "free", context)
        assert prompt.system_prompt

    @pytest.mark.parametrize("scenario_id, mode", [
        (ScenarioId.AT_THE_CAFE, RolePlayMode.FREE),
        (ScenarioId.DAILY_SMALL_TALK, RolePlayMode.GUIDED),
        (ScenarioId.MEETING_SOMEONE_NEW, RolePlayMode.FREE),
    ])
    def test_unsupported_combinations(self, context, scenario_id, mode):
        """Only job interviews have open guided and free prompts."""
        with pytest.raises(PromptNotFoundError):
            get_prompt(scenario_id, LevelId.BEGINNER, mode, context)

    def test_unknown_scenario(self, context):
        """Unknown scenario ids are rejected."""
        with pytest.raises(PromptNotFoundError):
            get_prompt("spaceStation", LevelId.BEGINNER, RolePlayMode.FREE, context)
