# app/models/game.py
"""
Game, game result (prize) and viewed reward models
"""

from typing import Dict
from sqlalchemy import Column, String, DateTime, Boolean, Integer, JSON
from app.utils.time_utils import utcnow, to_iso
from .base import Base, new_id

class Game(Base):
    __tablename__ = "game_TB"

    GAME_ID = Column(String(36), primary_key=True, default=new_id)
    USER_ID = Column(String(128), index=True, nullable=False)
    TITLE = Column(String(500), nullable=False)
    TYPE = Column(String(50), nullable=False)
    QUESTIONS = Column(JSON)
    PAIRS = Column(JSON)
    SETTINGS = Column(JSON)
    REWARDS = Column(JSON)
    HAS_REWARD = Column(Boolean, default=False, nullable=False)
    IS_COMPLETED = Column(Boolean, default=False, nullable=False)
    PASSED = Column(Boolean)
    SCORE = Column(Integer)
    COMPLETED_AT = Column(DateTime)
    CLAIMED_REWARD_ID = Column(String(255))
    COMPLETION_MESSAGE = Column(String(5000))
    MESSAGE_SENT_AT = Column(DateTime)
    REWARD_FULFILLED = Column(Boolean, default=False, nullable=False)
    FULFILLED_AT = Column(DateTime)
    CREATED_AT = Column(DateTime, default=utcnow)
    UPDATED_AT = Column(DateTime, default=utcnow, onupdate=utcnow)

    def find_reward(self, reward_id) -> Dict:
        """Match a claimed reward by id, _id, name or positional key."""
        if reward_id is None or not isinstance(self.REWARDS, list):
            return None
        for idx, reward in enumerate(self.REWARDS):
            if not isinstance(reward, dict):
                continue
            if (
                reward.get("id") == reward_id
                or reward.get("_id") == reward_id
                or reward.get("name") == reward_id
                or f"reward_index_{idx}" == reward_id
                or str(idx) == str(reward_id)
            ):
                return reward
        return None

    def to_dict(self) -> Dict:
        return {
            "id": self.GAME_ID,
            "title": self.TITLE,
            "type": self.TYPE,
            "questions": self.QUESTIONS,
            "pairs": self.PAIRS,
            "settings": self.SETTINGS or {},
            "rewards": self.REWARDS,
            "hasReward": bool(self.HAS_REWARD),
            "isCompleted": bool(self.IS_COMPLETED),
            "passed": self.PASSED,
            "completedAt": to_iso(self.COMPLETED_AT),
            "claimedRewardId": self.CLAIMED_REWARD_ID,
            "completionMessage": self.COMPLETION_MESSAGE,
            "messageSentAt": to_iso(self.MESSAGE_SENT_AT),
            "rewardFulfilled": bool(self.REWARD_FULFILLED),
            "fulfilledAt": to_iso(self.FULFILLED_AT),
            "createdAt": to_iso(self.CREATED_AT),
            "updatedAt": to_iso(self.UPDATED_AT),
            "createdBy": self.USER_ID,
        }

    def completion_dict(self) -> Dict:
        return {
            "completed": bool(self.IS_COMPLETED),
            "passed": bool(self.PASSED),
            "score": self.SCORE,
            "message": self.COMPLETION_MESSAGE,
            "completedAt": to_iso(self.COMPLETED_AT),
            "messageSentAt": to_iso(self.MESSAGE_SENT_AT),
            "claimedRewardId": self.CLAIMED_REWARD_ID,
            "rewardFulfilled": bool(self.REWARD_FULFILLED),
            "fulfilledAt": to_iso(self.FULFILLED_AT),
        }


class GameResult(Base):
    __tablename__ = "game_result_TB"

    RESULT_ID = Column(String(36), primary_key=True, default=new_id)
    USER_ID = Column(String(128), index=True, nullable=False)
    GAME_TYPE = Column(String(50), nullable=False)
    SCORE = Column(Integer, nullable=False)
    DIFFICULTY = Column(String(50))
    PRIZE_WON = Column(Boolean, default=False, nullable=False)
    LETTER_ID = Column(String(36))
    CREATED_AT = Column(DateTime, default=utcnow)

    def to_dict(self) -> Dict:
        return {
            "id": self.RESULT_ID,
            "gameType": self.GAME_TYPE,
            "score": self.SCORE,
            "difficulty": self.DIFFICULTY,
            "prizeWon": bool(self.PRIZE_WON),
            "letterId": self.LETTER_ID,
            "timestamp": to_iso(self.CREATED_AT),
        }


class ViewedReward(Base):
    __tablename__ = "viewed_reward_TB"

    USER_ID = Column(String(128), primary_key=True)
    REWARD_ID = Column(String(255), primary_key=True)
    VIEWED_AT = Column(DateTime, default=utcnow)
