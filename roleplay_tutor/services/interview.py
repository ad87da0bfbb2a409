"""Free-interview turn generator.

Drives the ten-turn interview arc resolved by ``InterviewPhase``. Scripted
phases never reach the model. Model phases always produce a non-empty turn:
unparsable replies are spoken as raw text and failed calls fall back to a
canned phrase for the phase.
"""
import re
from typing import Optional, Tuple

from roleplay_tutor.core.errors import LLMServiceError
from roleplay_tutor.core.logging import get_logger
from roleplay_tutor.domain.conversation import (
    FreeInterviewTurnRequest,
    RolePlayMode,
    TurnGenerationResult,
)
from roleplay_tutor.domain.interview import COMPANY_QUESTION, POSITION_QUESTION, InterviewPhase
from roleplay_tutor.infrastructure.vertex import complete_chat
from roleplay_tutor.prompts.resolver import PromptContext, get_prompt
from roleplay_tutor.utils.text import extract_json_object, sanitize_text, string_field

logger = get_logger(__name__)

GREETING_TEMPLATE = "Hello, {name}! Welcome to your interview practice session. Let's get started!"
CLOSING_TEMPLATE = "Thank you for the interview practice, {name}. You did great! Keep practicing."
CONTINUATION_MESSAGE = "That's great! Can you tell me more?"

_ACKNOWLEDGMENTS = (
    "That's excellent",
    "That's great",
    "Good answer",
    "Well said",
    "Excellent",
    "Perfect",
    "Great",
    "Good",
)

# Longer tokens first so "Good answer!" is not cut at "Good"
FEEDBACK_PATTERNS = (
    re.compile(r"^(" + "|".join(re.escape(f"{word}!") for word in _ACKNOWLEDGMENTS) + r")[\s,.\-]+", re.IGNORECASE),
    re.compile(r"^(" + "|".join(re.escape(word) for word in _ACKNOWLEDGMENTS) + r")[\s,.\-]+", re.IGNORECASE),
)


def extract_feedback(tutor_message: str) -> Tuple[Optional[str], str]:
    """Split a leading acknowledgment token off a tutor message.

    Returns ``(feedback, remainder)``; feedback is None when no token matches.

    Example:
        >>> extract_feedback("Perfect! Why do you want this job?")
        ('Perfect!', 'Why do you want this job?')
    """
    for pattern in FEEDBACK_PATTERNS:
        match = pattern.match(tutor_message)
        if match:
            remainder = tutor_message[match.end():].strip()
            if remainder:
                return match.group(1), remainder
    return None, tutor_message


def canned_message(phase: InterviewPhase, student_name: str) -> str:
    """Deterministic tutor line for a phase, used when the model is not consulted or fails."""
    if phase == InterviewPhase.GREETING:
        return GREETING_TEMPLATE.format(name=student_name)
    if phase == InterviewPhase.ASK_COMPANY:
        return COMPANY_QUESTION
    if phase == InterviewPhase.ASK_POSITION:
        return POSITION_QUESTION
    if phase == InterviewPhase.CLOSING:
        return CLOSING_TEMPLATE.format(name=student_name)
    return CONTINUATION_MESSAGE


def _scripted_turn(phase: InterviewPhase, student_name: str) -> TurnGenerationResult:
    message = canned_message(phase, student_name)
    return TurnGenerationResult(question=message, tutor_message=message, should_end=False)


def _fallback_turn(phase: InterviewPhase, student_name: str) -> TurnGenerationResult:
    message = canned_message(phase, student_name)
    if phase == InterviewPhase.CLOSING:
        return TurnGenerationResult(
            question=message,
            tutor_message=message,
            should_end=True,
            closing_message=message,
        )
    return TurnGenerationResult(question=message, tutor_message=message, should_end=False)


async def generate_free_interview_turn(request: FreeInterviewTurnRequest) -> TurnGenerationResult:
    """Generate the next tutor turn of a free interview."""
    phase = InterviewPhase.for_turn(request.turn_number)
    name = request.student_name
    logger.info(
        f"Generating free interview turn {request.turn_number} ({phase.value})",
        extra={"turn_number": request.turn_number, "phase": phase.value},
    )

    if phase.is_scripted:
        return _scripted_turn(phase, name)

    context = PromptContext(
        student_name=name,
        conversation_history=request.conversation_history,
        turn_number=request.turn_number,
        company_name=request.company_name,
        position_name=request.position_name,
    )
    prompt = get_prompt(request.scenario_id, request.level_id, RolePlayMode.FREE, context)

    try:
        reply = await complete_chat(
            prompt.system_prompt,
            prompt.user_prompt,
            response_format=prompt.response_format,
        )
    except LLMServiceError as e:
        logger.warning(
            f"Free interview model call failed, using canned turn: {e}",
            extra={"turn_number": request.turn_number, "error": str(e)}
        )
        return _fallback_turn(phase, name)

    try:
        parsed = extract_json_object(reply)
    except ValueError as e:
        logger.warning(
            f"Unparsable free interview reply, speaking raw text: {e}",
            extra={"turn_number": request.turn_number, "error": str(e)}
        )
        raw_text = sanitize_text(reply) or canned_message(phase, name)
        if phase == InterviewPhase.CLOSING:
            return TurnGenerationResult(
                question=raw_text,
                tutor_message=raw_text,
                should_end=True,
                closing_message=canned_message(phase, name),
            )
        return TurnGenerationResult(question=raw_text, tutor_message=raw_text, should_end=False)

    feedback = string_field(parsed, "feedback")
    question = string_field(parsed, "question")
    tutor_message = string_field(parsed, "tutorMessage")
    closing_message = string_field(parsed, "closingMessage")

    if feedback is None and tutor_message and phase.extracts_feedback:
        feedback, remainder = extract_feedback(tutor_message)
        if feedback is not None and question is None:
            question = remainder

    if phase.clears_feedback:
        feedback = None

    tutor_message = tutor_message or " ".join(part for part in (feedback, question) if part)
    tutor_message = tutor_message or canned_message(phase, name)

    should_end = phase == InterviewPhase.CLOSING or parsed.get("shouldEnd") is True or closing_message is not None
    if should_end:
        closing_message = closing_message or CLOSING_TEMPLATE.format(name=name)

    return TurnGenerationResult(
        feedback=feedback,
        question=question or tutor_message,
        tutor_message=tutor_message,
        should_end=should_end,
        closing_message=closing_message if should_end else None,
    )
