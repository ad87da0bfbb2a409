"""Prompt configuration resolver.

Single entry point for every turn prompt: given scenario, level, mode and the
conversation context, return the system/user prompt pair and the expected
response format.

- guided + predefined question (scenario has rounds at that level): feedback-only round prompt
- guided without a predefined question: open guided prompt (job interview only)
- free: interview prompt keyed by the interview phase (job interview only)

Every JSON reply shape asks for ``feedback`` and ``question`` as separate
fields so callers rarely need to split them out of free text.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from roleplay_tutor.core.errors import PromptNotFoundError
from roleplay_tutor.domain.conversation import (
    ConversationTurn,
    LevelId,
    RolePlayMode,
    ScenarioId,
    format_history,
    last_user_message,
)
from roleplay_tutor.domain.interview import (
    COMPANY_QUESTION,
    INTERVIEW_TURNS,
    POSITION_QUESTION,
    InterviewPhase,
    interview_questions_asked,
)
from roleplay_tutor.prompts.catalog import get_scenario
from roleplay_tutor.prompts.composer import compose_system_prompt, compose_user_prompt
from roleplay_tutor.prompts.instructions import (
    FREE_FEEDBACK_STRUCTURE,
    FREE_MODE_INSTRUCTIONS,
    GUIDED_FEEDBACK_STRUCTURE,
    GUIDED_MODE_INSTRUCTIONS,
    JSON_ONLY,
    LEVEL_GUIDELINES,
    LEVEL_QUESTION_STYLE,
    ROUNDS_INSTRUCTIONS,
)


class PromptContext(BaseModel):
    """Everything a prompt template may interpolate."""
    student_name: str
    conversation_history: List[ConversationTurn] = Field(default_factory=list)
    turn_number: int = 1
    predefined_question: Optional[str] = None
    company_name: Optional[str] = None
    position_name: Optional[str] = None


class PromptConfig(BaseModel):
    system_prompt: str
    user_prompt: str
    response_format: Literal["json_object", "text"] = "json_object"


# (what the tutor is doing, what the student is practicing)
SCENARIO_ROLES = {
    ScenarioId.JOB_INTERVIEW: ("conducting a job interview simulation", "practice job interviews"),
    ScenarioId.AT_THE_CAFE: ("playing a friendly barista at a café", "order and chat at a café"),
    ScenarioId.DAILY_SMALL_TALK: ("making everyday small talk", "practice casual small talk"),
    ScenarioId.MEETING_SOMEONE_NEW: ("meeting the student for the first time at a social event", "introduce themselves and meet new people"),
}


def _role(scenario_id: ScenarioId, level_id: LevelId, extra: str = "") -> str:
    doing, practicing = SCENARIO_ROLES[scenario_id]
    return f"""You are an expert English virtual teacher {doing}. You must respond in JSON format only.

YOUR ROLE:
You are a patient, encouraging English teacher helping Italian learners {practicing} at a {level_id.value} level. {extra}""".strip()


def get_prompt(
    scenario_id: ScenarioId,
    level_id: LevelId,
    mode: RolePlayMode,
    context: PromptContext,
    predefined_question: Optional[str] = None,
) -> PromptConfig:
    """Return the prompt for a scenario, level and mode.

    Raises:
        PromptNotFoundError: unknown scenario, or no prompt for this combination
    """
    try:
        scenario_id = ScenarioId(scenario_id)
        level_id = LevelId(level_id)
        mode = RolePlayMode(mode)
    except ValueError as e:
        raise PromptNotFoundError(str(e)) from e

    scenario = get_scenario(scenario_id)
    if scenario is None:
        raise PromptNotFoundError(f"Scenario {scenario_id.value} not found")

    predefined_question = predefined_question or context.predefined_question
    has_rounds = bool(scenario.rounds_for(level_id))

    if mode == RolePlayMode.GUIDED and predefined_question and has_rounds:
        return _guided_round_prompt(scenario_id, level_id, context, predefined_question)

    if scenario_id == ScenarioId.JOB_INTERVIEW:
        if mode == RolePlayMode.GUIDED:
            return _guided_prompt(level_id, context)
        return _free_interview_prompt(level_id, context)

    raise PromptNotFoundError(
        f"Prompt not implemented for scenario: {scenario_id.value}, "
        f"level: {level_id.value}, mode: {mode.value}"
    )


def _guided_round_prompt(
    scenario_id: ScenarioId,
    level_id: LevelId,
    context: PromptContext,
    predefined_question: str,
) -> PromptConfig:
    system_prompt = compose_system_prompt(
        _role(scenario_id, level_id, "You give constructive feedback that helps students improve their speaking."),
        ROUNDS_INSTRUCTIONS,
        GUIDED_FEEDBACK_STRUCTURE,
        LEVEL_GUIDELINES[level_id],
    )

    context_block = f"""The student {context.student_name} just answered your previous question.

Conversation history so far:
{format_history(context.conversation_history)}"""

    instructions = f"""Now you need to:
1. Analyze the student's last answer: what was correct, what needs improvement?
2. Write helpful feedback in ENGLISH (3-4 sentences) following the feedback structure.
3. The next question is already defined and will be asked separately: "{predefined_question}"

Do NOT include the question in your feedback.

Return a JSON object with this structure:
{{
  "feedback": "string - your feedback in ENGLISH (3-4 sentences, no question)",
  "question": "string - the predefined question exactly as provided",
  "shouldEnd": false
}}"""

    return PromptConfig(
        system_prompt=system_prompt,
        user_prompt=compose_user_prompt(context_block, instructions),
    )


def _guided_prompt(level_id: LevelId, context: PromptContext) -> PromptConfig:
    system_prompt = compose_system_prompt(
        _role(ScenarioId.JOB_INTERVIEW, level_id, "You hold a natural conversation while giving constructive feedback."),
        GUIDED_MODE_INSTRUCTIONS,
        GUIDED_FEEDBACK_STRUCTURE,
        LEVEL_GUIDELINES[level_id],
    )

    name = context.student_name
    context_block = f"""You are conducting a job interview in English with a {level_id.value}-level student named {name}.

Current turn number: {context.turn_number}

Conversation history so far:
{format_history(context.conversation_history) or '(no messages yet)'}"""

    instructions = f"""Generate the NEXT tutor turn.

- If this is turn 1 and there is no greeting yet, greet {name} and ask them to tell you about themselves.
- If the student just answered: give feedback (recognition, one suggestion, one example, encouragement), then ask the next natural follow-up question.
- {LEVEL_QUESTION_STYLE[level_id]}
- After 4-5 questions, wrap up with a closing message like: "Thank you for the interview, {name}. You did great! Keep practicing."

{JSON_ONLY}

Return a JSON object with this structure:
{{
  "feedback": "string - feedback on the last answer, empty on the first turn",
  "question": "string - the next question only",
  "tutorMessage": "string - feedback followed by the question",
  "shouldEnd": boolean,
  "closingMessage": "string - only when shouldEnd is true"
}}"""

    return PromptConfig(
        system_prompt=system_prompt,
        user_prompt=compose_user_prompt(context_block, instructions),
    )


def _free_interview_prompt(level_id: LevelId, context: PromptContext) -> PromptConfig:
    system_prompt = compose_system_prompt(
        _role(
            ScenarioId.JOB_INTERVIEW,
            level_id,
            "You hold a personalized interview based on the company and position the student mentions.",
        ),
        FREE_MODE_INSTRUCTIONS,
        FREE_FEEDBACK_STRUCTURE,
        f"""QUESTION GUIDELINES:
- Make questions relevant to the specific company and position.
- Cover typical interview topics: experience, skills, motivation, teamwork, problem-solving.
- {LEVEL_QUESTION_STYLE[level_id]}
- After 8-10 questions, provide a closing message.""",
    )

    name = context.student_name
    history = context.conversation_history
    phase = InterviewPhase.for_turn(context.turn_number)

    if phase == InterviewPhase.GREETING:
        user_content = f"This is the first turn. Greet the student {name} warmly and welcome them to the interview practice session."
    elif phase == InterviewPhase.ASK_COMPANY:
        user_content = f'Ask the student: "{COMPANY_QUESTION}"'
    elif phase == InterviewPhase.ASK_POSITION:
        company = last_user_message(history) or context.company_name or "the company"
        user_content = f'The student just answered about the company: "{company}". Ask: "{POSITION_QUESTION}"'
    elif phase == InterviewPhase.OPENING_QUESTION:
        position = last_user_message(history) or context.position_name or "the position"
        company = last_user_message(history, skip=1) or context.company_name or "the company"
        user_content = f"""The student just answered about the position: "{position}".

Now you need to:
1. Say something like: "Great, I will help you practice an interview for {company}. Let's begin!"
2. Ask the FIRST interview question relevant to the position "{position}" at {company}.

Do not give feedback on this turn: put the transition and the question in "tutorMessage", the question alone in "question"."""
    elif phase == InterviewPhase.INTERVIEW:
        answer = last_user_message(history) or "their answer"
        user_content = f"""The student just answered your previous interview question: "{answer}"

Conversation history:
{format_history(history)}

Now you need to:
1. Give brief, positive feedback (1-2 sentences max) like "Great!", "Perfect!", "Well said!".
2. Ask the NEXT interview question relevant to the company and position mentioned earlier.

You have asked {interview_questions_asked(context.turn_number)} interview question(s) so far."""
    else:
        answer = last_user_message(history) or "their answer"
        user_content = f"""The student just answered your last interview question: "{answer}"

This is turn {INTERVIEW_TURNS}, the end of the interview. Give brief, positive feedback, then close with a message like: "Thank you for the interview practice, {name}. You did great! Keep practicing." Set "shouldEnd" to true."""

    user_content += f"""

{JSON_ONLY}

Return a JSON object with this structure:
{{
  "feedback": "string - brief acknowledgment of the last answer, or empty",
  "question": "string - the next question only",
  "tutorMessage": "string - everything the tutor says this turn",
  "shouldEnd": boolean,
  "closingMessage": "string - only when shouldEnd is true"
}}"""

    return PromptConfig(
        system_prompt=system_prompt,
        user_prompt=compose_user_prompt(None, user_content),
    )
