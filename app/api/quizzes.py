# app/api/quizzes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import get_async_session
from app.schemas.game_schemas import QuizPayload, QuizSubmitRequest
from app.services.quiz_service import quiz_service
from app.utils.errors import DearlyError, to_http
from app.utils.logger import logger

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


@router.post("/{userId}", status_code=201)
async def create_quiz(userId: str, payload: QuizPayload, session: AsyncSession = Depends(get_async_session)):
    try:
        quiz = await quiz_service.create_quiz(session, userId, payload.to_payload())
        return {"success": True, "quizId": quiz.QUIZ_ID, "quiz": quiz.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error creating quiz: {e}")
        raise HTTPException(status_code=500, detail="Failed to create quiz")


@router.get("/{userId}")
async def list_quizzes(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        return {"quizzes": await quiz_service.list_quizzes(session, userId)}
    except Exception as e:
        logger.error(f"❌ Error fetching quizzes: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch quizzes")


@router.get("/{userId}/{quizId}")
async def get_quiz(userId: str, quizId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        quiz = await quiz_service.get_quiz(session, userId, quizId)
        return {"quiz": quiz.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error fetching quiz: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch quiz")


@router.put("/{userId}/{quizId}")
async def update_quiz(userId: str, quizId: str, payload: QuizPayload,
                      session: AsyncSession = Depends(get_async_session)):
    try:
        quiz = await quiz_service.update_quiz(session, userId, quizId, payload.to_payload())
        return {"success": True, "quizId": quizId, "quiz": quiz.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error updating quiz: {e}")
        raise HTTPException(status_code=500, detail="Failed to update quiz")


@router.delete("/{userId}/{quizId}")
async def delete_quiz(userId: str, quizId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        await quiz_service.delete_quiz(session, userId, quizId)
        return {"success": True, "message": "Quiz deleted successfully"}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error deleting quiz: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete quiz")


@router.post("/{userId}/{quizId}/submit", status_code=201)
async def submit_quiz(userId: str, quizId: str, body: QuizSubmitRequest,
                      session: AsyncSession = Depends(get_async_session)):
    try:
        result = await quiz_service.submit(session, userId, quizId, body.answers, body.timeTaken, body.letterId)
        return {"success": True, "resultId": result.RESULT_ID, "quizResult": result.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error submitting quiz result: {e}")
        raise HTTPException(status_code=500, detail="Failed to submit quiz result")
