"""Google Cloud Speech-to-Text for learner recordings.

Each recognition result becomes one ``TranscriptSegment`` carrying the top
alternative's confidence, which the scorer uses as a pronunciation proxy.
"""
import asyncio
import mimetypes
from functools import lru_cache
from typing import List, Optional

from google.cloud import speech_v1p1beta1 as speech

from roleplay_tutor.core.config import settings, get_vertex_credentials
from roleplay_tutor.core.errors import TranscriptionError
from roleplay_tutor.core.logging import get_logger, LogTimer
from roleplay_tutor.domain.practice import TranscriptionResult, TranscriptSegment
from roleplay_tutor.infrastructure.vertex import get_executor

logger = get_logger(__name__)

Encoding = speech.RecognitionConfig.AudioEncoding

# WAV and FLAC carry their own headers; Google reads the encoding from them
_ENCODINGS = {
    "audio/webm": Encoding.WEBM_OPUS,
    "audio/ogg": Encoding.OGG_OPUS,
    "audio/mpeg": Encoding.MP3,
    "audio/mp3": Encoding.MP3,
    "audio/amr": Encoding.AMR,
    "audio/amr-wb": Encoding.AMR_WB,
}


@lru_cache(maxsize=1)
def get_speech_client() -> speech.SpeechClient:
    return speech.SpeechClient(credentials=get_vertex_credentials())


def _audio_encoding(filename: Optional[str], mime_type: Optional[str]):
    if not mime_type and filename:
        mime_type, _ = mimetypes.guess_type(filename)
    base_type = (mime_type or "").split(";")[0].strip().lower()
    return _ENCODINGS.get(base_type, Encoding.ENCODING_UNSPECIFIED)


def _seconds(offset) -> Optional[float]:
    """Convert a proto duration (timedelta) to seconds."""
    if offset is None:
        return None
    return offset.total_seconds()


def _to_result(response) -> TranscriptionResult:
    segments: List[TranscriptSegment] = []
    language = None

    for result in response.results:
        if not result.alternatives:
            continue
        best = result.alternatives[0]
        words = list(best.words)
        segments.append(TranscriptSegment(
            text=best.transcript.strip(),
            confidence=best.confidence,
            start=_seconds(words[0].start_time) if words else None,
            end=_seconds(words[-1].end_time) if words else _seconds(result.result_end_time),
        ))
        language = language or result.language_code or None

    duration = next((s.end for s in reversed(segments) if s.end is not None), None)
    return TranscriptionResult(
        text=" ".join(s.text for s in segments if s.text),
        segments=segments,
        language=language or settings.speech_language_code,
        duration=duration,
    )


async def transcribe_audio(
    content: bytes,
    filename: Optional[str] = None,
    mime_type: Optional[str] = None,
) -> TranscriptionResult:
    """Transcribe a short recording.

    Args:
        content: Raw audio bytes
        filename: Original upload name, used to guess the format
        mime_type: Upload content type

    Returns:
        Transcript with one segment per recognition result

    Raises:
        TranscriptionError: If the audio is empty or recognition fails
    """
    if not content:
        raise TranscriptionError("Audio file is empty")

    config = speech.RecognitionConfig(
        encoding=_audio_encoding(filename, mime_type),
        language_code=settings.speech_language_code,
        enable_word_time_offsets=True,
        enable_word_confidence=True,
        enable_automatic_punctuation=True,
        model="default",
    )
    audio = speech.RecognitionAudio(content=content)

    def _recognize():
        return get_speech_client().recognize(config=config, audio=audio)

    try:
        loop = asyncio.get_running_loop()
        with LogTimer(logger, "speech_to_text"):
            response = await loop.run_in_executor(get_executor(), _recognize)
    except Exception as e:
        raise TranscriptionError(f"Speech recognition failed: {e}") from e

    result = _to_result(response)
    logger.info(
        f"Transcribed {len(result.segments)} segment(s)",
        extra={"operation": "transcribe"}
    )
    return result
