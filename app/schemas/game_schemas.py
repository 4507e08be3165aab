# app/schemas/game_schemas.py
"""
Games, quizzes and game prize payloads
"""

from typing import Any, List, Optional
from pydantic import BaseModel
from .commons_schemas import FlexiblePayload


class GamePayload(FlexiblePayload):
    title: Optional[str] = None
    type: Optional[str] = None
    questions: Optional[List[Any]] = None
    pairs: Optional[List[Any]] = None
    settings: Optional[dict] = None
    rewards: Optional[List[Any]] = None
    hasReward: Optional[bool] = None


class ViewedRewardsRequest(BaseModel):
    viewedRewardIds: Any = None


class GameCompleteRequest(BaseModel):
    passed: Optional[bool] = None
    rewardId: Optional[str] = None
    message: Optional[str] = None


class GameCompletionUpdateRequest(FlexiblePayload):
    message: Optional[str] = None
    rewardFulfilled: Optional[bool] = None
    emailToReceiver: Optional[bool] = None
    emailMessage: Optional[str] = None
    receiverEmail: Optional[str] = None


class QuizPayload(FlexiblePayload):
    title: Optional[str] = None
    questions: Optional[List[Any]] = None
    settings: Optional[dict] = None


class QuizSubmitRequest(BaseModel):
    answers: Any = None
    timeTaken: Optional[int] = None
    letterId: Optional[str] = None


class GamePrizeRequest(FlexiblePayload):
    gameType: Optional[str] = None
    score: Optional[Any] = None
    difficulty: Optional[str] = None
    prizeWon: Optional[bool] = None
    letterId: Optional[str] = None
