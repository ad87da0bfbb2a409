"""ElevenLabs text-to-speech over httpx."""
from typing import Optional

import httpx

from roleplay_tutor.core.config import settings
from roleplay_tutor.core.errors import SpeechSynthesisError
from roleplay_tutor.core.logging import get_logger, LogTimer

logger = get_logger(__name__)

VOICE_SETTINGS = {
    "stability": 0.3,
    "similarity_boost": 0.8,
    "style": 0.2,
    "use_speaker_boost": True,
}


def resolve_voice_id(voice_id: Optional[str] = None, tutor_id: Optional[str] = None) -> Optional[str]:
    """Pick the voice: the explicit id, else a known tutor's voice, else the default."""
    if voice_id:
        return voice_id
    tutor_voices = {
        "davide": settings.elevenlabs_voice_id_davide,
        "phoebe": settings.elevenlabs_voice_id_phoebe,
    }
    if tutor_id and tutor_voices.get(tutor_id.lower()):
        return tutor_voices[tutor_id.lower()]
    return settings.elevenlabs_voice_id


async def synthesize_speech(text: str, voice_id: Optional[str] = None) -> bytes:
    """Render ``text`` as MP3 audio.

    Raises:
        SpeechSynthesisError: If ElevenLabs is not configured or the request fails
    """
    if not settings.elevenlabs_api_key:
        raise SpeechSynthesisError("ELEVENLABS_API_KEY is not set")

    voice_id = voice_id or settings.elevenlabs_voice_id
    if not voice_id:
        raise SpeechSynthesisError("ELEVENLABS_VOICE_ID is not set")

    payload = {
        "text": text,
        "model_id": settings.elevenlabs_model_id,
        "voice_settings": VOICE_SETTINGS,
    }
    headers = {
        "xi-api-key": settings.elevenlabs_api_key,
        "Content-Type": "application/json",
        "Accept": "audio/mpeg",
    }

    try:
        async with httpx.AsyncClient(
            base_url=settings.elevenlabs_base_url,
            timeout=settings.elevenlabs_timeout_seconds,
        ) as client:
            with LogTimer(logger, "text_to_speech"):
                response = await client.post(f"/text-to-speech/{voice_id}", json=payload, headers=headers)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise SpeechSynthesisError(
            f"ElevenLabs returned {e.response.status_code}"
        ) from e
    except httpx.HTTPError as e:
        raise SpeechSynthesisError(f"ElevenLabs request failed: {e}") from e

    return response.content
