"""Pronunciation feedback on a single spoken attempt."""
import json
from typing import List, Optional

from roleplay_tutor.core.logging import get_logger
from roleplay_tutor.domain.practice import (
    ConversationContext,
    LearnerProfile,
    PracticeFeedback,
    TranscriptSegment,
)
from roleplay_tutor.infrastructure.vertex import complete_chat
from roleplay_tutor.services.scoring import clamp_score, coerce_verdict, compute_confidence_metrics
from roleplay_tutor.utils.text import extract_json_object, string_field

logger = get_logger(__name__)

DEFAULT_SUMMARY = "Analisi completata. Continua a esercitarti per migliorare la pronuncia."

PRONUNCIATION_COACH_PROMPT = """Act as an English pronunciation coach for Italian learners.
- Evaluate the student's attempt strictly against the target sentence.
- Use the transcription confidence metrics to infer pronunciation quality. Low confidence usually signals mispronunciations.
- Address the learner by name when it is given in the learner info.
- Only return "verdict": "correct" if pronunciation is virtually native-like (no notable issues, high confidence). When in doubt, choose "needs_improvement".
- Write a concise summary in Italian (max two sentences) with the key pronunciation observations.
- No bullet lists or phoneme tables.

Respond strictly in JSON with the following structure:
{
  "summary": string,
  "score": number (0-100),
  "verdict": "correct" | "needs_improvement"
}"""


async def generate_practice_feedback(
    transcript: str,
    target_sentence: Optional[str] = None,
    learner_profile: Optional[LearnerProfile] = None,
    transcription_segments: Optional[List[TranscriptSegment]] = None,
    conversation_context: Optional[ConversationContext] = None,
) -> PracticeFeedback:
    """Evaluate a transcript against its target sentence.

    The model proposes a summary, score and verdict; the verdict is then
    coerced from the score and the transcription confidence metrics.

    Raises:
        LLMServiceError: If the model call fails
        ValueError: If the reply is not valid JSON
    """
    metrics = compute_confidence_metrics(transcription_segments)

    user_lines = [
        f'Target sentence: "{target_sentence or ""}"',
        f'Learner transcript: "{transcript}"',
    ]
    if learner_profile is not None:
        user_lines.append(f"Learner info: {learner_profile.model_dump_json(by_alias=True, exclude_none=True)}")
    if conversation_context is not None:
        user_lines.append(
            f"Conversation context: {conversation_context.model_dump_json(by_alias=True, exclude_none=True)}"
        )
    if metrics is not None:
        user_lines.append(
            f"Transcription confidence metrics: {json.dumps(metrics.model_dump(by_alias=True, exclude_none=True))}"
        )
    else:
        user_lines.append("Transcription confidence metrics unavailable.")

    reply = await complete_chat(PRONUNCIATION_COACH_PROMPT, "\n".join(user_lines))
    parsed = extract_json_object(reply)

    verdict = coerce_verdict(parsed.get("verdict"), parsed.get("score"), metrics)

    logger.info(
        f"Practice feedback verdict: {verdict.value}",
        extra={"operation": "practice_feedback"}
    )

    return PracticeFeedback(
        summary=string_field(parsed, "summary") or DEFAULT_SUMMARY,
        score=clamp_score(parsed.get("score")),
        verdict=verdict,
    )
