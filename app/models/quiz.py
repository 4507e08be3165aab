# app/models/quiz.py
"""
Quiz + quiz result models
"""

from typing import Dict
from sqlalchemy import Column, String, DateTime, Boolean, Integer, JSON
from app.utils.time_utils import utcnow, to_iso
from .base import Base, new_id

DEFAULT_QUIZ_SETTINGS = {
    "timeLimitPerQuestion": 60,
    "passingScore": 70,
    "numWrongAnswers": 3,
}

class Quiz(Base):
    __tablename__ = "quiz_TB"

    QUIZ_ID = Column(String(36), primary_key=True, default=new_id)
    USER_ID = Column(String(128), index=True, nullable=False)
    TITLE = Column(String(500), nullable=False)
    QUESTIONS = Column(JSON, nullable=False)
    SETTINGS = Column(JSON)
    CREATED_AT = Column(DateTime, default=utcnow)
    UPDATED_AT = Column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> Dict:
        return {
            "id": self.QUIZ_ID,
            "title": self.TITLE,
            "questions": self.QUESTIONS,
            "settings": self.SETTINGS,
            "createdAt": to_iso(self.CREATED_AT),
            "updatedAt": to_iso(self.UPDATED_AT),
            "createdBy": self.USER_ID,
        }


class QuizResult(Base):
    __tablename__ = "quiz_result_TB"

    RESULT_ID = Column(String(36), primary_key=True, default=new_id)
    USER_ID = Column(String(128), index=True, nullable=False)
    QUIZ_ID = Column(String(36), index=True, nullable=False)
    QUIZ_TITLE = Column(String(500))
    SCORE = Column(Integer, nullable=False)
    CORRECT_ANSWERS = Column(Integer, nullable=False)
    TOTAL_QUESTIONS = Column(Integer, nullable=False)
    PASSED = Column(Boolean, nullable=False)
    PRIZE_WON = Column(Boolean, nullable=False)
    TIME_TAKEN = Column(Integer, default=0)
    RESULTS = Column(JSON)
    LETTER_ID = Column(String(36))
    SUBMITTED_AT = Column(DateTime, default=utcnow)

    def to_dict(self) -> Dict:
        return {
            "id": self.RESULT_ID,
            "quizId": self.QUIZ_ID,
            "quizTitle": self.QUIZ_TITLE,
            "score": self.SCORE,
            "correctAnswers": self.CORRECT_ANSWERS,
            "totalQuestions": self.TOTAL_QUESTIONS,
            "passed": bool(self.PASSED),
            "prizeWon": bool(self.PRIZE_WON),
            "timeTaken": self.TIME_TAKEN or 0,
            "results": self.RESULTS,
            "letterId": self.LETTER_ID,
            "submittedAt": to_iso(self.SUBMITTED_AT),
        }
