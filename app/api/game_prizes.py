# app/api/game_prizes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import get_async_session
from app.schemas.game_schemas import GamePrizeRequest
from app.services.game_service import game_service
from app.utils.errors import DearlyError, to_http
from app.utils.logger import logger

router = APIRouter(prefix="/game-prizes", tags=["game-prizes"])


@router.post("/{userId}", status_code=201)
async def record_game_result(userId: str, payload: GamePrizeRequest,
                             session: AsyncSession = Depends(get_async_session)):
    try:
        result = await game_service.record_result(session, userId, payload.to_payload())
        return {
            "success": True,
            "gameResultId": result.RESULT_ID,
            "gameResult": result.to_dict(),
            "notificationCreated": bool(result.PRIZE_WON),
        }
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error recording game result: {e}")
        raise HTTPException(status_code=500, detail="Failed to record game result")


@router.get("/{userId}")
async def list_game_results(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        return {"gameResults": await game_service.list_results(session, userId)}
    except Exception as e:
        logger.error(f"❌ Error fetching game results: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch game results")


@router.get("/{userId}/prizes")
async def list_prizes(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        return {"prizes": await game_service.list_results(session, userId, prizes_only=True)}
    except Exception as e:
        logger.error(f"❌ Error fetching prizes: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch prizes")
