# app/schemas/__init__.py
"""
Schema package
Only the shared schemas are exposed here, to avoid circular imports
"""

from .commons_schemas import BaseResponse, FlexiblePayload, HealthResponse

# import the rest per module when needed
# from .letter_schemas import LetterPayload, SecurityAnswerRequest
# from .game_schemas import GamePayload, QuizPayload
