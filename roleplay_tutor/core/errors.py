"""Exceptions raised by the tutor services.

Routes translate these into HTTP status codes; see ``roleplay_tutor.api.routes``.
"""


class TutorError(Exception):
    """Base class for all service-level errors."""


class LLMServiceError(TutorError):
    """The LLM provider could not be reached or returned no usable reply."""


class TranscriptionError(TutorError):
    """Speech-to-text failed."""


class SpeechSynthesisError(TutorError):
    """Text-to-speech failed or is not configured."""


class PromptNotFoundError(TutorError):
    """No prompt exists for the requested scenario, level and mode."""


class EmailDeliveryError(TutorError):
    """A one-time code email could not be sent."""
