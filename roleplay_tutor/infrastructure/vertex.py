"""Async Vertex AI Gemini client for turn generation, feedback and chat.

The Vertex SDK is synchronous, so calls run in a thread pool to keep the
FastAPI event loop free. One completion per call, no retries.
"""
import asyncio
import concurrent.futures
from functools import lru_cache
from typing import Literal, Optional

from vertexai import init, generative_models

from roleplay_tutor.core.config import settings, get_vertex_credentials
from roleplay_tutor.core.errors import LLMServiceError
from roleplay_tutor.core.logging import get_logger, LogTimer

logger = get_logger(__name__)

# Thread pool for blocking Vertex AI calls
_executor: Optional[concurrent.futures.ThreadPoolExecutor] = None


def get_executor() -> concurrent.futures.ThreadPoolExecutor:
    """Get or create the thread pool used for blocking SDK calls."""
    global _executor
    if _executor is None:
        _executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=10,
            thread_name_prefix="vertex_ai"
        )
    return _executor


@lru_cache(maxsize=1)
def _init_vertex() -> None:
    creds = get_vertex_credentials()
    init(project=settings.project_id, location=settings.region, credentials=creds)
    logger.info(f"Vertex AI initialized for project {settings.project_id} in {settings.region}")


@lru_cache(maxsize=32)
def get_model(model_name: str, system_instruction: str) -> generative_models.GenerativeModel:
    """Return a Gemini model handle bound to a system prompt.

    System prompts depend only on scenario, level and mode, so the cache stays small.
    """
    _init_vertex()
    logger.info(f"[Model Cache] Initializing {model_name}")
    return generative_models.GenerativeModel(model_name, system_instruction=system_instruction)


async def complete_chat(
    system_prompt: str,
    user_prompt: str,
    *,
    response_format: Literal["json_object", "text"] = "json_object",
    model_name: Optional[str] = None,
    temperature: Optional[float] = None,
    max_output_tokens: int = 1024,
) -> str:
    """Run one system+user completion and return the raw reply text.

    Args:
        system_prompt: Instructions for the model
        user_prompt: The turn-specific request
        response_format: "json_object" constrains the reply to JSON
        model_name: Override the configured feedback model
        temperature: Sampling temperature (provider default when None)
        max_output_tokens: Reply length cap

    Returns:
        Reply text, unparsed

    Raises:
        LLMServiceError: If the provider call fails or returns no text
    """
    model_name = model_name or settings.feedback_model
    mime_type = "application/json" if response_format == "json_object" else "text/plain"

    def _generate() -> str:
        model = get_model(model_name, system_prompt)
        generation_config = generative_models.GenerationConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            response_mime_type=mime_type,
        )
        response = model.generate_content(user_prompt, generation_config=generation_config)
        return response.text

    logger.debug("Sending prompt to Gemini", extra={"model": model_name})

    try:
        loop = asyncio.get_running_loop()
        with LogTimer(logger, "llm_completion"):
            return await loop.run_in_executor(get_executor(), _generate)
    except Exception as e:
        raise LLMServiceError(f"Gemini completion failed: {e}") from e
