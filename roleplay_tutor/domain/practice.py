"""Domain models for pronunciation practice, transcription and speech."""
from enum import Enum
from typing import List, Optional
from pydantic import Field

from roleplay_tutor.domain.conversation import CamelModel


class Verdict(str, Enum):
    """Binary pass/fail judgment on a spoken response."""
    CORRECT = "correct"
    NEEDS_IMPROVEMENT = "needs_improvement"


class TranscriptSegment(CamelModel):
    """One span produced by speech-to-text.

    Attributes:
        text: Recognized text
        confidence: Recognizer certainty in [0, 1], when the provider reports one
        start: Segment start offset in seconds
        end: Segment end offset in seconds
    """
    text: str = ""
    confidence: Optional[float] = None
    start: Optional[float] = None
    end: Optional[float] = None


class ConfidenceMetrics(CamelModel):
    """Summary of per-segment transcription confidence.

    ``average_confidence`` and ``lowest_confidence`` are only present when at
    least one segment carried a numeric confidence.
    """
    segment_count: int
    average_confidence: Optional[float] = None
    lowest_confidence: Optional[float] = None
    below_threshold_count: int = 0


class LearnerProfile(CamelModel):
    native_language: Optional[str] = None
    proficiency_level: Optional[str] = None
    learner_name: Optional[str] = None


class ConversationContext(CamelModel):
    """Where a spoken answer came from, for attempts without a target sentence."""
    scenario_id: Optional[str] = None
    level_id: Optional[str] = None
    current_topic: Optional[str] = None


class PracticeFeedbackRequest(CamelModel):
    """Body of ``POST /practice/feedback``."""
    transcript: str = Field(min_length=1)
    target_sentence: Optional[str] = None
    learner_profile: Optional[LearnerProfile] = None
    transcription_segments: Optional[List[TranscriptSegment]] = None
    conversation_context: Optional[ConversationContext] = None

    class Config:
        json_schema_extra = {
            "example": {
                "transcript": "I am a hard working person",
                "targetSentence": "I am a hard-working person.",
                "learnerProfile": {"learnerName": "Giulia", "nativeLanguage": "italian"},
                "transcriptionSegments": [{"text": "I am a hard working person", "confidence": 0.93}]
            }
        }


class PracticeFeedback(CamelModel):
    """Evaluation of one spoken attempt. The verdict is always coerced, never the model's raw claim."""
    summary: str
    score: Optional[float] = Field(default=None, ge=0, le=100)
    verdict: Verdict


class TranscriptionResult(CamelModel):
    text: str
    segments: List[TranscriptSegment] = Field(default_factory=list)
    language: Optional[str] = None
    duration: Optional[float] = None


class TranslateRequest(CamelModel):
    text: str = Field(min_length=1)
    target_language: str = "italian"


class TranslateResponse(CamelModel):
    translation: str


class VoiceRequest(CamelModel):
    """Body of ``POST /practice/voice``; ``tutor_id`` maps to a configured voice."""
    text: str = Field(min_length=1)
    voice_id: Optional[str] = None
    tutor_id: Optional[str] = None
