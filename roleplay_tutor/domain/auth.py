"""Request/response models for the password-reset code flow."""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from roleplay_tutor.domain.conversation import CamelModel


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    code: str = Field(min_length=6, max_length=6)

    class Config:
        json_schema_extra = {
            "example": {"email": "giulia@example.com", "code": "482913"}
        }


class OtpResponse(CamelModel):
    success: bool
    message: str
    verified_email: Optional[str] = None
