# app/schemas/letter_schemas.py

from typing import Any, List, Optional, Union
from pydantic import BaseModel
from .commons_schemas import BaseResponse, FlexiblePayload


# letter create / update body
class LetterPayload(FlexiblePayload):
    content: Optional[str] = None
    introductory: Optional[str] = None
    mainBody: Optional[str] = None
    closing: Optional[str] = None
    receiverEmail: Optional[str] = None
    receiverName: Optional[str] = None
    securityType: Optional[str] = None
    securityConfig: Optional[Union[dict, str]] = None


class SecurityAnswerRequest(BaseModel):
    answer: Optional[Any] = None


class SecurityValidationResponse(BaseResponse):
    isCorrect: bool


class RegenerateTokenResponse(BaseModel):
    message: str = "Token regenerated successfully"
    token: str
    shareableLink: str
    expiresAt: Optional[str] = None


class LetterResponseRequest(BaseModel):
    content: Optional[str] = None
    receiverName: Optional[str] = None


class LetterEmailRequest(BaseModel):
    recipientEmail: Optional[str] = None
    recipientName: Optional[str] = None
    senderName: Optional[str] = None
    shareableLink: Optional[str] = None
    letterTitle: Optional[str] = None
    scheduledDateTime: Optional[str] = None


class SendEmailRequest(BaseModel):
    recipientEmail: Optional[Union[str, List[str]]] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    senderName: Optional[str] = None
