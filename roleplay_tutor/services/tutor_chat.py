"""Open chat with the tutor about anything English-learning related."""
from roleplay_tutor.core.config import settings
from roleplay_tutor.core.logging import get_logger
from roleplay_tutor.domain.conversation import TutorChatRequest, TutorChatResponse, format_history
from roleplay_tutor.infrastructure.vertex import complete_chat
from roleplay_tutor.utils.text import sanitize_text

logger = get_logger(__name__)

DEFAULT_TUTOR_MESSAGE = "I'm here to help you with your English! What would you like to know?"

TUTOR_CHAT_PROMPT = """You are an expert, friendly, and patient English teacher helping Italian learners improve their English. You can discuss any topic related to English learning, including:

- Grammar explanations
- Vocabulary help
- Pronunciation tips
- Writing assistance
- Conversation practice
- Learning strategies
- Cultural aspects of English
- Common mistakes and how to fix them

YOUR STYLE:
- Be warm, encouraging, and supportive
- Adapt your language to the student's level ({level})
- Give clear, practical explanations with examples when helpful
- If the student asks something unrelated to English learning, gently redirect to English topics
- Always respond in English (unless the student specifically asks for Italian)

RESPONSE FORMAT:
Respond naturally in a conversational way, as plain text. Do not use JSON."""


async def generate_tutor_chat_response(request: TutorChatRequest) -> TutorChatResponse:
    """Answer the learner's message in the context of the chat so far.

    Raises:
        LLMServiceError: If the model call fails
    """
    level = request.student_level.value
    user_prompt = f"""Student: {request.student_name}
Level: {level}

Conversation history:
{format_history(request.conversation_history) or '(This is the start of the conversation)'}

Student's current message: "{request.message}"

Please respond naturally and helpfully as the tutor."""

    reply = await complete_chat(
        TUTOR_CHAT_PROMPT.format(level=level),
        user_prompt,
        response_format="text",
        model_name=settings.tutor_chat_model,
        temperature=0.7,
    )

    tutor_message = sanitize_text(reply)
    if not tutor_message:
        logger.warning("Empty tutor chat reply, using default message")
    return TutorChatResponse(tutor_message=tutor_message or DEFAULT_TUTOR_MESSAGE)
