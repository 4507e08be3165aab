# app/models/__init__.py
"""
Models package
SQLAlchemy models and DB connection setup
"""

from .base import Base, get_async_session, init_db
from .user import User
from .letter import Letter, LetterResponse, VoiceMessage
from .token import LetterToken, TokenAccessLog
from .scheduled_email import ScheduledEmail
from .notification import Notification
from .game import Game, GameResult, ViewedReward
from .quiz import Quiz, QuizResult
from .invitation import DateInvitation
from .receiver import Receiver, ReceivedLetter
from .verification import EmailVerificationToken
from .audit import SecurityAuditLog

__all__ = [
    "Base",
    "get_async_session",
    "init_db",
    "User",
    "Letter",
    "LetterResponse",
    "VoiceMessage",
    "LetterToken",
    "TokenAccessLog",
    "ScheduledEmail",
    "Notification",
    "Game",
    "GameResult",
    "ViewedReward",
    "Quiz",
    "QuizResult",
    "DateInvitation",
    "Receiver",
    "ReceivedLetter",
    "EmailVerificationToken",
    "SecurityAuditLog",
]
