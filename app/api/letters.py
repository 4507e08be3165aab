# app/api/letters.py

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import get_async_session
from app.schemas.letter_schemas import (
    LetterPayload,
    LetterResponseRequest,
    RegenerateTokenResponse,
    SecurityAnswerRequest,
    SecurityValidationResponse,
)
from app.services.audit_service import audit_service
from app.services.letter_service import letter_service
from app.services.storage_service import VOICE_FOLDER, storage_service
from app.services.token_service import token_service
from app.utils.auth import verify_ownership
from app.utils.errors import DearlyError, StorageError, to_http
from app.utils.logger import logger, mask_token
from app.utils.rate_limit import client_ip, token_access_limit, token_regenerate_limit
from app.utils.security import is_valid_token

router = APIRouter(prefix="/letters", tags=["letters"])


# Routes with literal segments are registered before the /{userId}/{letterId} family


@router.get("/responses/all/{userId}")
async def get_all_responses(userId: str, session: AsyncSession = Depends(get_async_session)):
    """Every response written to any of the user's letters, newest first."""
    try:
        return await letter_service.all_responses(session, userId)
    except Exception as e:
        logger.error(f"❌ Error fetching all responses: {e}")
        raise HTTPException(status_code=500, detail="Error fetching responses")


@router.get("/token/{token}", dependencies=[Depends(token_access_limit)])
async def get_letter_by_token(token: str, request: Request, session: AsyncSession = Depends(get_async_session)):
    ip = client_ip(request)
    user_agent = request.headers.get("user-agent")

    if not is_valid_token(token):
        await audit_service.log_token_access(ip, token, False, "invalid_format", user_agent)
        raise HTTPException(status_code=400, detail="Invalid token format")

    try:
        letter = await token_service.resolve(session, token, ip=ip, user_agent=user_agent)
    except DearlyError as e:
        await audit_service.log_token_access(ip, token, False, e.message, user_agent)
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error fetching letter by token {mask_token(token)}: {e}")
        raise HTTPException(status_code=500, detail="Error fetching letter")

    await audit_service.log_token_access(ip, token, True, user_agent=user_agent)
    return letter


@router.get("/{userId}")
async def list_letters(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        return await letter_service.list_letters(session, userId)
    except Exception as e:
        logger.error(f"❌ Error fetching letters: {e}")
        raise HTTPException(status_code=500, detail="Error fetching letters")


@router.post("/{userId}", status_code=201)
async def create_letter(userId: str, payload: LetterPayload, session: AsyncSession = Depends(get_async_session)):
    try:
        letter, token = await letter_service.create_letter(session, userId, payload.to_payload())
        return {
            "message": "Letter created successfully",
            "letter": letter.to_dict(),
            "token": token,
        }
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error creating letter: {e}")
        raise HTTPException(status_code=500, detail="Error creating letter")


@router.get("/{userId}/{letterId}")
async def get_letter_legacy(userId: str, letterId: str):
    """Letters are only reachable through their token URL."""
    logger.info(f"❌ Deprecated letter URL requested: user={userId} letter={letterId}")
    raise HTTPException(
        status_code=410,
        detail={
            "message": "Legacy URL format is no longer supported. Please use token-based URLs for security.",
            "error": "DEPRECATED_ENDPOINT",
            "info": "All letters must be accessed via /api/letters/token/:token endpoint",
        },
    )


@router.post("/{userId}/{letterId}/validate-security", response_model=SecurityValidationResponse)
async def validate_security(userId: str, letterId: str, body: SecurityAnswerRequest, request: Request,
                            session: AsyncSession = Depends(get_async_session)):
    ip = client_ip(request)
    try:
        is_correct = await letter_service.validate_security(session, userId, letterId, body.answer)
    except DearlyError as e:
        await audit_service.log_security_validation(ip, letterId, False, e.message)
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error validating security answer: {e}")
        raise HTTPException(status_code=500, detail="Error validating answer")

    await audit_service.log_security_validation(ip, letterId, is_correct, None if is_correct else "incorrect_answer")
    return SecurityValidationResponse(
        success=True,
        isCorrect=is_correct,
        message="Answer is correct" if is_correct else "Answer is incorrect",
    )


@router.post(
    "/{userId}/{letterId}/regenerate-token",
    response_model=RegenerateTokenResponse,
    dependencies=[Depends(token_regenerate_limit), Depends(verify_ownership)],
)
async def regenerate_token(userId: str, letterId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        letter = await letter_service.get_letter(session, userId, letterId)
        result = await token_service.regenerate(session, letter)
        logger.info(f"✅ Token regenerated for letter {letterId}: {mask_token(result['token'])}")
        return RegenerateTokenResponse(**result)
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error regenerating token: {e}")
        raise HTTPException(status_code=500, detail="Error regenerating token")


@router.put("/{userId}/{letterId}/mark-read")
async def mark_letter_read(userId: str, letterId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        letter = await letter_service.mark_read(session, userId, letterId)
        return {"message": "Letter marked as read", "letter": letter.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error marking letter as read: {e}")
        raise HTTPException(status_code=500, detail="Error marking letter as read")


@router.put("/{userId}/{letterId}")
async def update_letter(userId: str, letterId: str, payload: LetterPayload,
                        session: AsyncSession = Depends(get_async_session)):
    try:
        letter = await letter_service.update_letter(session, userId, letterId, payload.to_payload())
        return {"message": "Letter updated successfully", "letter": letter.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error updating letter: {e}")
        raise HTTPException(status_code=500, detail="Error updating letter")


@router.delete("/{userId}/{letterId}")
async def delete_letter(userId: str, letterId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        await letter_service.delete_letter(session, userId, letterId)
        return {"message": "Letter deleted successfully", "letterId": letterId}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error deleting letter: {e}")
        raise HTTPException(status_code=500, detail="Error deleting letter")


# responses

@router.get("/{userId}/{letterId}/responses")
async def list_responses(userId: str, letterId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        return await letter_service.list_responses(session, userId, letterId)
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error fetching responses: {e}")
        raise HTTPException(status_code=500, detail="Error fetching responses")


@router.post("/{userId}/{letterId}/responses")
async def create_response(userId: str, letterId: str, body: LetterResponseRequest,
                          session: AsyncSession = Depends(get_async_session)):
    try:
        response = await letter_service.create_response(session, userId, letterId, body.content, body.receiverName)
        return {"success": True, "message": "Response saved successfully", "response": response.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error saving response: {e}")
        raise HTTPException(status_code=500, detail="Error saving response")


@router.put("/{userId}/{letterId}/responses/{responseId}")
async def update_response(userId: str, letterId: str, responseId: str, body: LetterResponseRequest,
                          session: AsyncSession = Depends(get_async_session)):
    try:
        response = await letter_service.update_response(session, userId, letterId, responseId, body.content)
        return {"success": True, "message": "Response updated successfully", "response": response.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error updating response: {e}")
        raise HTTPException(status_code=500, detail="Error updating response")


@router.delete("/{userId}/{letterId}/responses/{responseId}")
async def delete_response(userId: str, letterId: str, responseId: str,
                          session: AsyncSession = Depends(get_async_session)):
    try:
        await letter_service.delete_response(session, userId, letterId, responseId)
        return {"success": True, "message": "Response deleted successfully"}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error deleting response: {e}")
        raise HTTPException(status_code=500, detail="Error deleting response")


# voice messages

@router.get("/{userId}/{letterId}/voice-messages")
async def list_voice_messages(userId: str, letterId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        return await letter_service.list_voice_messages(session, userId, letterId)
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error fetching voice messages: {e}")
        raise HTTPException(status_code=500, detail="Error fetching voice messages")


@router.delete("/{userId}/{letterId}/voice-messages/{recordingId}")
async def delete_voice_message(userId: str, letterId: str, recordingId: str,
                               session: AsyncSession = Depends(get_async_session)):
    try:
        file_name = await letter_service.delete_voice_message(session, userId, letterId, recordingId)
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error deleting voice message: {e}")
        raise HTTPException(status_code=500, detail="Error deleting voice message")

    if file_name:
        try:
            storage_path = file_name if file_name.startswith(f"{VOICE_FOLDER}/") else f"{VOICE_FOLDER}/{file_name}"
            await storage_service.delete(storage_path)
        except StorageError as e:
            logger.warning(f"⚠️ Failed to delete voice message file {file_name}: {e}")
    return {"success": True, "message": "Voice message deleted successfully"}
