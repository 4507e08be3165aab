# app/api/games.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import get_async_session
from app.schemas.game_schemas import (
    GameCompleteRequest,
    GameCompletionUpdateRequest,
    GamePayload,
    ViewedRewardsRequest,
)
from app.services.game_service import game_service
from app.utils.errors import DearlyError, to_http
from app.utils.logger import logger

router = APIRouter(prefix="/games", tags=["games"])


@router.post("/{userId}", status_code=201)
async def create_game(userId: str, payload: GamePayload, session: AsyncSession = Depends(get_async_session)):
    try:
        game = await game_service.create_game(session, userId, payload.to_payload())
        return {"success": True, "gameId": game.GAME_ID, "game": game.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error creating game: {e}")
        raise HTTPException(status_code=500, detail="Failed to create game")


@router.get("/{userId}")
async def list_games(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        return {"games": await game_service.list_games(session, userId)}
    except Exception as e:
        logger.error(f"❌ Error fetching games: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch games")


@router.get("/{userId}/viewed-rewards")
async def get_viewed_rewards(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        return {"success": True, "viewedRewardIds": await game_service.viewed_rewards(session, userId)}
    except Exception as e:
        logger.error(f"❌ Error fetching viewed rewards: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch viewed rewards")


@router.put("/{userId}/viewed-rewards")
async def replace_viewed_rewards(userId: str, body: ViewedRewardsRequest,
                                 session: AsyncSession = Depends(get_async_session)):
    try:
        reward_ids = await game_service.replace_viewed_rewards(session, userId, body.viewedRewardIds)
        return {"success": True, "message": "Viewed rewards updated successfully", "viewedRewardIds": reward_ids}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error updating viewed rewards: {e}")
        raise HTTPException(status_code=500, detail="Failed to update viewed rewards")


@router.get("/{userId}/{gameId}")
async def get_game(userId: str, gameId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        game = await game_service.get_game(session, userId, gameId)
        return {"game": game.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error fetching game: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch game")


@router.put("/{userId}/{gameId}")
async def update_game(userId: str, gameId: str, payload: GamePayload,
                      session: AsyncSession = Depends(get_async_session)):
    try:
        game = await game_service.update_game(session, userId, gameId, payload.to_payload())
        return {"success": True, "gameId": gameId, "game": game.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error updating game: {e}")
        raise HTTPException(status_code=500, detail="Failed to update game")


@router.delete("/{userId}/{gameId}")
async def delete_game(userId: str, gameId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        await game_service.delete_game(session, userId, gameId)
        return {"success": True, "message": "Game deleted successfully"}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error deleting game: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete game")


@router.post("/{userId}/{gameId}/complete")
async def complete_game(userId: str, gameId: str, body: GameCompleteRequest,
                        session: AsyncSession = Depends(get_async_session)):
    try:
        game = await game_service.complete_game(session, userId, gameId, body.passed, body.rewardId, body.message)
        return {"success": True, "gameId": gameId, "game": game.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error marking game as completed: {e}")
        raise HTTPException(status_code=500, detail="Failed to mark game as completed")


@router.put("/{userId}/{gameId}/complete")
async def update_completion(userId: str, gameId: str, body: GameCompletionUpdateRequest,
                            session: AsyncSession = Depends(get_async_session)):
    try:
        game = await game_service.update_completion(session, userId, gameId, body.to_payload())
        return {"success": True, "gameId": gameId, "game": game.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error updating game completion: {e}")
        raise HTTPException(status_code=500, detail="Failed to update game completion")


@router.get("/{userId}/{gameId}/completion")
async def get_completion(userId: str, gameId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        game = await game_service.get_game(session, userId, gameId)
        return game.completion_dict()
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error fetching game completion data: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch game completion data")
