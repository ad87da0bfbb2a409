"""Guided-mode turn generator.

Guided sessions walk a queue of predefined questions. The state is derived
from the turn number on every call (``question_index = turn_number - 2``):

- PREDEFINED: a predefined question is due. It is served verbatim (after
  sanitizing) and the model only supplies feedback on the previous answer.
- EXHAUSTED: the queue is used up. A fixed continuation is returned and the
  caller decides whether to move to the next round.
- DYNAMIC: no queue (or the opening turn). The model writes the whole turn.

Unparsable model replies never fail the request: PREDEFINED falls back to a
canned "Good!" and DYNAMIC speaks the raw reply text. A failed model call in
DYNAMIC has nothing to fall back on and propagates as LLMServiceError.
"""
import re
from enum import Enum
from typing import List, Optional

from roleplay_tutor.core.errors import LLMServiceError
from roleplay_tutor.core.logging import get_logger
from roleplay_tutor.domain.conversation import RolePlayMode, TurnGenerationRequest, TurnGenerationResult
from roleplay_tutor.infrastructure.vertex import complete_chat
from roleplay_tutor.prompts.catalog import get_predefined_questions
from roleplay_tutor.prompts.resolver import PromptContext, get_prompt
from roleplay_tutor.utils.text import extract_json_object, sanitize_text, string_field

logger = get_logger(__name__)

DEFAULT_FEEDBACK = "Good!"
EXHAUSTED_MESSAGE = "Good! That's great! Can you tell me more?"
DEFAULT_TUTOR_MESSAGE = "That's great! Can you tell me more?"

# "Here is a possible answer: '...'", "Here is a simple example answer: ...",
# "Here is an answer you can use as a guide. ..." through the end of the text
_EXAMPLE_CLAUSE = re.compile(
    r"\s*Here is (?:an? )?(?:simple |possible )?(?:example )?(?:answer|example)\b.*$",
    re.IGNORECASE | re.DOTALL,
)
_NUDGE_CLAUSE = re.compile(r"\s*Now please tell me\b.*$", re.IGNORECASE | re.DOTALL)


class GuidedState(str, Enum):
    PREDEFINED = "predefined"
    EXHAUSTED = "exhausted"
    DYNAMIC = "dynamic"


def sanitize_question(text: str) -> str:
    """Strip the example-answer clause and the closing nudge from a predefined question.

    >>> sanitize_question("What's your goal? Here is a possible answer: 'I want to grow.' Now please tell me more.")
    "What's your goal?"
    """
    question = _EXAMPLE_CLAUSE.sub("", text)
    question = _NUDGE_CLAUSE.sub("", question)
    return question.strip()


def resolve_state(turn_number: int, predefined_questions: Optional[List[str]]) -> GuidedState:
    question_index = turn_number - 2
    if not predefined_questions or question_index < 0:
        return GuidedState.DYNAMIC
    if question_index < len(predefined_questions):
        return GuidedState.PREDEFINED
    return GuidedState.EXHAUSTED


def split_feedback(tutor_message: Optional[str], question: str) -> str:
    """Take the part of a combined message that precedes the question as feedback."""
    if not tutor_message:
        return DEFAULT_FEEDBACK

    position = tutor_message.lower().find(question.lower()) if question else -1
    if position >= 0:
        feedback = tutor_message[:position].strip()
    else:
        feedback = tutor_message.strip()
    return feedback or DEFAULT_FEEDBACK


def _join(*parts: Optional[str]) -> str:
    return " ".join(part for part in parts if part)


async def generate_next_conversation_turn(request: TurnGenerationRequest) -> TurnGenerationResult:
    """Generate the next tutor turn of a guided session."""
    if not request.predefined_questions and request.round_id is not None:
        questions = get_predefined_questions(
            request.scenario_id, request.level_id, request.round_id, request.student_name
        )
        request = request.model_copy(update={"predefined_questions": questions or None})
    state = resolve_state(request.turn_number, request.predefined_questions)
    log_extra = {
        "scenario_id": request.scenario_id.value,
        "level_id": request.level_id.value,
        "turn_number": request.turn_number,
        "phase": state.value,
    }
    logger.info(f"Generating guided turn {request.turn_number} ({state.value})", extra=log_extra)

    if state == GuidedState.PREDEFINED:
        return await _predefined_turn(request)
    if state == GuidedState.EXHAUSTED:
        return TurnGenerationResult(
            question=EXHAUSTED_MESSAGE,
            tutor_message=EXHAUSTED_MESSAGE,
            should_end=False,
        )
    return await _dynamic_turn(request)


async def _predefined_turn(request: TurnGenerationRequest) -> TurnGenerationResult:
    question_index = request.turn_number - 2
    predefined = request.predefined_questions
    raw_question = predefined[question_index]
    question = sanitize_question(raw_question) or raw_question.strip()

    context = PromptContext(
        student_name=request.student_name,
        conversation_history=request.conversation_history,
        turn_number=request.turn_number,
        predefined_question=question,
        company_name=request.company_name,
        position_name=request.position_name,
    )
    prompt = get_prompt(
        request.scenario_id,
        request.level_id,
        RolePlayMode.GUIDED,
        context,
        predefined_question=question,
    )

    try:
        reply = await complete_chat(
            prompt.system_prompt,
            prompt.user_prompt,
            response_format=prompt.response_format,
        )
        parsed = extract_json_object(reply)
    except (LLMServiceError, ValueError) as e:
        is_last = question_index == len(predefined) - 1
        logger.warning(
            f"Guided feedback unavailable, serving predefined question: {e}",
            extra={"turn_number": request.turn_number, "error": str(e)}
        )
        return TurnGenerationResult(
            feedback=DEFAULT_FEEDBACK,
            question=question,
            tutor_message=_join(DEFAULT_FEEDBACK, question),
            should_end=is_last,
        )

    feedback = string_field(parsed, "feedback")
    if feedback is None:
        raw_message = string_field(parsed, "tutorMessage") or string_field(parsed, "question")
        feedback = split_feedback(raw_message, question)

    return TurnGenerationResult(
        feedback=feedback,
        question=question,
        tutor_message=_join(feedback, question),
        should_end=False,
    )


async def _dynamic_turn(request: TurnGenerationRequest) -> TurnGenerationResult:
    context = PromptContext(
        student_name=request.student_name,
        conversation_history=request.conversation_history,
        turn_number=request.turn_number,
        company_name=request.company_name,
        position_name=request.position_name,
    )
    prompt = get_prompt(request.scenario_id, request.level_id, RolePlayMode.GUIDED, context)

    reply = await complete_chat(
        prompt.system_prompt,
        prompt.user_prompt,
        response_format=prompt.response_format,
    )

    try:
        parsed = extract_json_object(reply)
    except ValueError as e:
        raw_text = sanitize_text(reply) or DEFAULT_TUTOR_MESSAGE
        logger.warning(
            f"Unparsable guided reply, speaking raw text: {e}",
            extra={"turn_number": request.turn_number, "error": str(e)}
        )
        return TurnGenerationResult(question=raw_text, tutor_message=raw_text, should_end=False)

    feedback = string_field(parsed, "feedback")
    question = string_field(parsed, "question")
    tutor_message = string_field(parsed, "tutorMessage") or _join(feedback, question) or DEFAULT_TUTOR_MESSAGE
    closing_message = string_field(parsed, "closingMessage")
    should_end = parsed.get("shouldEnd") is True

    return TurnGenerationResult(
        feedback=feedback,
        question=question or tutor_message,
        tutor_message=tutor_message,
        should_end=should_end,
        closing_message=closing_message if should_end else None,
    )
