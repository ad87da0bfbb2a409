"""Async FastAPI routes for the role-play tutor.

- Practice: transcription, pronunciation feedback, turn generation, voice,
  translation and tutor chat
- Auth: password-reset verification codes

Service errors are mapped here: upstream failures to 502, unsupported
scenario combinations to 400.
"""
from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import Response

from roleplay_tutor.core.errors import (
    EmailDeliveryError,
    LLMServiceError,
    PromptNotFoundError,
    SpeechSynthesisError,
    TranscriptionError,
)
from roleplay_tutor.core.logging import get_logger, LogTimer
from roleplay_tutor.domain.auth import ForgotPasswordRequest, OtpResponse, VerifyOtpRequest
from roleplay_tutor.domain.conversation import (
    FreeInterviewTurnRequest,
    TurnGenerationRequest,
    TurnGenerationResult,
    TutorChatRequest,
    TutorChatResponse,
)
from roleplay_tutor.domain.practice import (
    PracticeFeedback,
    PracticeFeedbackRequest,
    TranscriptionResult,
    TranslateRequest,
    TranslateResponse,
    VoiceRequest,
)
from roleplay_tutor.infrastructure.elevenlabs import resolve_voice_id, synthesize_speech
from roleplay_tutor.infrastructure.speech import transcribe_audio
from roleplay_tutor.services.feedback import generate_practice_feedback
from roleplay_tutor.services.guided import generate_next_conversation_turn
from roleplay_tutor.services.interview import generate_free_interview_turn
from roleplay_tutor.services.otp import issue_password_reset_code, verify_password_reset_code
from roleplay_tutor.services.translation import translate_text
from roleplay_tutor.services.tutor_chat import generate_tutor_chat_response

logger = get_logger(__name__)
router = APIRouter()


# -----------------
# PRACTICE: SPEECH
# -----------------

@router.post("/practice/transcribe", response_model=TranscriptionResult, response_model_exclude_none=True)
async def transcribe(audio: UploadFile = File(...)):
    """Transcribe a learner recording (multipart field ``audio``)."""
    with LogTimer(logger, "practice_transcribe"):
        content = await audio.read()
        try:
            return await transcribe_audio(content, audio.filename, audio.content_type)
        except TranscriptionError as exc:
            logger.error(f"Transcription failed: {exc}", exc_info=True)
            raise HTTPException(status_code=502, detail=str(exc))


@router.post("/practice/voice")
async def voice(req: VoiceRequest):
    """Synthesize tutor speech; returns ``audio/mpeg``."""
    voice_id = resolve_voice_id(req.voice_id, req.tutor_id)
    try:
        audio = await synthesize_speech(req.text, voice_id)
    except SpeechSynthesisError as exc:
        logger.error(f"Speech synthesis failed: {exc}")
        raise HTTPException(status_code=502, detail=str(exc))

    return Response(content=audio, media_type="audio/mpeg")


# -----------------
# PRACTICE: FEEDBACK
# -----------------

@router.post("/practice/feedback", response_model=PracticeFeedback, response_model_exclude_none=True)
async def practice_feedback(req: PracticeFeedbackRequest):
    """Score a spoken attempt against its target sentence.

    Example:
        POST /practice/feedback
        {"transcript": "I am a hard working person", "targetSentence": "I am a hard-working person."}
    """
    with LogTimer(logger, "practice_feedback"):
        try:
            return await generate_practice_feedback(
                req.transcript,
                target_sentence=req.target_sentence,
                learner_profile=req.learner_profile,
                transcription_segments=req.transcription_segments,
                conversation_context=req.conversation_context,
            )
        except (LLMServiceError, ValueError) as exc:
            logger.error(f"Failed to generate feedback: {exc}", exc_info=True)
            raise HTTPException(status_code=502, detail=f"Failed to generate feedback: {exc}")


# -----------------
# PRACTICE: ROLE-PLAY TURNS
# -----------------

@router.post(
    "/practice/generate-next-turn",
    response_model=TurnGenerationResult,
    response_model_exclude_none=True,
)
async def generate_next_turn(req: TurnGenerationRequest):
    """Next tutor turn of a guided session."""
    with LogTimer(logger, f"generate_next_turn:{req.turn_number}"):
        try:
            return await generate_next_conversation_turn(req)
        except PromptNotFoundError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except LLMServiceError as exc:
            logger.error(f"Failed to generate guided turn: {exc}", exc_info=True)
            raise HTTPException(status_code=502, detail=f"Failed to generate turn: {exc}")


@router.post(
    "/practice/generate-free-interview-turn",
    response_model=TurnGenerationResult,
    response_model_exclude_none=True,
)
async def generate_free_interview(req: FreeInterviewTurnRequest):
    """Next tutor turn of a free interview."""
    with LogTimer(logger, f"generate_free_interview_turn:{req.turn_number}"):
        try:
            return await generate_free_interview_turn(req)
        except PromptNotFoundError as exc:
            raise HTTPException(status_code=400, detail=str(exc))


# -----------------
# PRACTICE: HELPERS
# -----------------

@router.post("/practice/translate", response_model=TranslateResponse)
async def translate(req: TranslateRequest):
    try:
        translation = await translate_text(req.text, req.target_language)
    except LLMServiceError as exc:
        logger.error(f"Translation failed: {exc}")
        raise HTTPException(status_code=502, detail=f"Failed to translate: {exc}")
    return TranslateResponse(translation=translation)


@router.post("/practice/tutor-chat", response_model=TutorChatResponse)
async def tutor_chat(req: TutorChatRequest):
    """Free chat with the tutor about English learning."""
    with LogTimer(logger, "tutor_chat"):
        try:
            return await generate_tutor_chat_response(req)
        except LLMServiceError as exc:
            logger.error(f"Tutor chat failed: {exc}", exc_info=True)
            raise HTTPException(status_code=502, detail=f"Failed to generate reply: {exc}")


# -----------------
# AUTH: PASSWORD RESET CODES
# -----------------

@router.post("/auth/forgot-password", response_model=OtpResponse, response_model_exclude_none=True)
def forgot_password(req: ForgotPasswordRequest):
    """Email a six-digit reset code.

    Always answers the same way for a well-formed address, whether or not an
    account exists for it.
    """
    try:
        issue_password_reset_code(req.email)
    except EmailDeliveryError as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    logger.info("Password reset code issued")
    return OtpResponse(success=True, message="Codice di verifica inviato")


@router.post("/auth/verify-otp", response_model=OtpResponse, response_model_exclude_none=True)
def verify_otp(req: VerifyOtpRequest):
    if not verify_password_reset_code(req.email, req.code):
        raise HTTPException(status_code=400, detail="Codice non valido o scaduto")

    return OtpResponse(
        success=True,
        message="Codice verificato con successo",
        verified_email=req.email.lower(),
    )
