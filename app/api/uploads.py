# app/api/uploads.py
"""
Music uploads, voice message uploads and the audio proxy
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.base import get_async_session
from app.services.letter_service import letter_service
from app.services.notification_service import notification_service
from app.services.storage_service import (
    MUSIC_EXTENSIONS,
    MUSIC_FOLDER,
    MUSIC_MIME_TYPES,
    VOICE_EXTENSIONS,
    VOICE_FOLDER,
    VOICE_MIME_TYPES,
    is_allowed,
    normalize_key,
    storage_service,
)
from app.utils.errors import StorageError
from app.utils.logger import logger

router = APIRouter(tags=["uploads"])

AUDIO_PROXY_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Cache-Control": "public, max-age=31536000",
}


async def _read_upload(file: UploadFile, max_bytes: int, extensions, mime_types, label: str) -> bytes:
    if not is_allowed(file.filename, file.content_type, extensions, mime_types):
        raise HTTPException(status_code=400, detail=f"Only audio files are allowed ({', '.join(extensions)})")
    data = await file.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"{label} exceeds the {max_bytes // (1024 * 1024)}MB limit",
        )
    if not data:
        raise HTTPException(status_code=400, detail=f"No {label.lower()} uploaded")
    return data


# music

@router.post("/music-upload/{userId}")
async def upload_music(userId: str, music: Optional[UploadFile] = File(None)):
    if music is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    data = await _read_upload(music, settings.music_max_bytes, MUSIC_EXTENSIONS, MUSIC_MIME_TYPES, "File")
    try:
        stored = await storage_service.save(MUSIC_FOLDER, userId, music.filename, data, music.content_type)
    except StorageError as e:
        logger.error(f"❌ Error storing music file: {e}")
        raise HTTPException(status_code=500, detail="Failed to upload music file")

    return {
        "success": True,
        "file": {
            **stored,
            "originalName": music.filename,
            "mimetype": music.content_type or storage_service.content_type(music.filename),
        },
        "message": "Music file uploaded successfully",
    }


@router.get("/music-upload/list/{userId}")
async def list_music(userId: str):
    try:
        files = await storage_service.list_user_files(MUSIC_FOLDER, userId)
    except StorageError as e:
        logger.error(f"❌ Error listing music files: {e}")
        raise HTTPException(status_code=500, detail="Failed to list music files")

    if not files:
        return {"success": True, "files": [], "count": 0, "message": "No music files found for this user"}
    return {"success": True, "files": files, "count": len(files)}


@router.get("/music-upload/{userId}/{filename}")
async def get_music(userId: str, filename: str):
    try:
        file = await storage_service.describe(f"{MUSIC_FOLDER}/{filename}", userId)
    except StorageError as e:
        logger.error(f"❌ Error fetching music file info: {e}")
        raise HTTPException(status_code=500, detail="Failed to get file info")
    if file is None:
        raise HTTPException(status_code=404, detail="File not found")
    return {"success": True, "file": file}


@router.delete("/music-upload/{userId}/{filename}")
async def delete_music(userId: str, filename: str):
    if not filename.startswith(f"{userId}-"):
        raise HTTPException(status_code=403, detail="You can only delete your own music files")
    try:
        deleted = await storage_service.delete(f"{MUSIC_FOLDER}/{filename}")
    except StorageError as e:
        logger.error(f"❌ Error deleting music file: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete music file")

    if not deleted:
        raise HTTPException(status_code=404, detail="File not found")
    return {"success": True, "message": "Music file deleted successfully"}


# voice messages

@router.post("/voice-upload/{userId}")
async def upload_voice_message(
    userId: str,
    audio: Optional[UploadFile] = File(None),
    letterId: Optional[str] = Form(None),
    receiverName: Optional[str] = Form(None),
    duration: Optional[int] = Form(None),
    session: AsyncSession = Depends(get_async_session),
):
    if audio is None:
        raise HTTPException(status_code=400, detail="No audio file uploaded")

    data = await _read_upload(audio, settings.voice_max_bytes, VOICE_EXTENSIONS, VOICE_MIME_TYPES, "Audio file")
    try:
        stored = await storage_service.save(
            VOICE_FOLDER, userId, audio.filename or "voice-message.webm", data, audio.content_type
        )
    except StorageError as e:
        logger.error(f"❌ Error storing voice message: {e}")
        raise HTTPException(status_code=500, detail="Failed to upload voice message")

    mime_type = audio.content_type or storage_service.content_type(stored["filename"])
    name = receiverName or "Your loved one"

    if letterId:
        try:
            await letter_service.add_voice_message(
                session, userId, letterId, stored["storagePath"], stored["url"], mime_type, stored["size"],
                duration=duration, sender_name=name,
            )
        except Exception as e:
            await session.rollback()
            logger.error(f"❌ Error saving voice message metadata for letter {letterId}: {e}")

    await notification_service.push_safely(
        session,
        userId,
        "voice_message",
        f"{name} sent you a voice message! 🎤",
        letterId=letterId,
        letterTitle="Your Letter",
        receiverName=name,
    )

    return {
        "success": True,
        "message": "Voice message uploaded successfully",
        "url": stored["url"],
        "fileName": stored["storagePath"],
        "size": stored["size"],
        "mimeType": mime_type,
    }


# audio proxy

@router.get("/audio-proxy/{file_path:path}")
async def audio_proxy(file_path: str):
    if not file_path:
        raise HTTPException(status_code=400, detail="File path is required")

    key = normalize_key(file_path)
    if key is None:
        raise HTTPException(status_code=400, detail="Invalid file path")

    try:
        if not await storage_service.exists(key):
            raise HTTPException(status_code=404, detail="Audio file not found")
        local_path = storage_service.resolve(key)
        if local_path:
            return FileResponse(local_path, media_type=storage_service.content_type(key), headers=AUDIO_PROXY_HEADERS)
        data = await storage_service.read(key)
    except StorageError as e:
        logger.error(f"❌ Error proxying audio file {key}: {e}")
        raise HTTPException(status_code=500, detail="Failed to proxy audio file")

    return Response(content=data, media_type=storage_service.content_type(key), headers=AUDIO_PROXY_HEADERS)
