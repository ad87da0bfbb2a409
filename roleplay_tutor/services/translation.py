"""Translate tutor lines for learners who need a hint in their own language."""
from roleplay_tutor.core.errors import LLMServiceError
from roleplay_tutor.core.logging import get_logger
from roleplay_tutor.infrastructure.vertex import complete_chat
from roleplay_tutor.utils.text import sanitize_text

logger = get_logger(__name__)

TRANSLATOR_PROMPT = """You are a professional translator for an English-learning app.
Translate the user's text into {language}.
- Keep the meaning, tone and register of the original.
- Return only the translation as plain text: no quotes, notes or explanations."""


async def translate_text(text: str, target_language: str = "italian") -> str:
    """Translate ``text`` into ``target_language``.

    Raises:
        LLMServiceError: If the model call fails or returns nothing
    """
    reply = await complete_chat(
        TRANSLATOR_PROMPT.format(language=target_language),
        text,
        response_format="text",
        temperature=0.2,
    )
    translation = sanitize_text(reply)
    if not translation:
        raise LLMServiceError("Empty translation from model")
    logger.debug(f"Translated {len(text)} chars into {target_language}")
    return translation
