# app/services/quiz_service.py
"""
Quizzes and quiz submissions
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.quiz import DEFAULT_QUIZ_SETTINGS, Quiz, QuizResult
from app.services.notification_service import notification_service
from app.utils.errors import NotFoundError, ValidationError
from app.utils.logger import logger
from app.utils.time_utils import utcnow


def _normalize(value: Any) -> str:
    return str(value).strip().lower() if value is not None else ""


def score_answers(questions: List[Dict], answers: Any) -> Tuple[int, int, List[Dict]]:
    """Returns (score percent, correct count, per-question results)."""
    correct = 0
    results = []
    for index, question in enumerate(questions):
        if isinstance(answers, dict):
            user_answer = answers.get(str(index), answers.get(index))
        elif isinstance(answers, list) and index < len(answers):
            user_answer = answers[index]
        else:
            user_answer = None

        expected = question.get("correctAnswer") if isinstance(question, dict) else None
        given = _normalize(user_answer)
        is_correct = given != "" and given == _normalize(expected)
        if is_correct:
            correct += 1
        results.append({
            "question": question.get("question") if isinstance(question, dict) else None,
            "correctAnswer": expected,
            "userAnswer": "" if user_answer is None else user_answer,
            "isCorrect": is_correct,
        })

    score = round(correct / len(questions) * 100) if questions else 0
    return score, correct, results


class QuizService:

    @staticmethod
    def _validate(title: Optional[str], questions: Any):
        if not title or not isinstance(questions, list) or not questions:
            raise ValidationError("Title and at least one question are required")

    async def get_quiz(self, session: AsyncSession, user_id: str, quiz_id: str) -> Quiz:
        quiz = await session.get(Quiz, quiz_id)
        if quiz is None or quiz.USER_ID != user_id:
            raise NotFoundError("Quiz not found")
        return quiz

    async def create_quiz(self, session: AsyncSession, user_id: str, payload: Dict) -> Quiz:
        self._validate(payload.get("title"), payload.get("questions"))
        quiz = Quiz(
            USER_ID=user_id,
            TITLE=payload["title"],
            QUESTIONS=payload["questions"],
            SETTINGS=payload.get("settings") or dict(DEFAULT_QUIZ_SETTINGS),
        )
        session.add(quiz)
        await session.commit()
        logger.info(f"📝 Quiz created: user={user_id} quiz={quiz.QUIZ_ID}")
        return quiz

    async def list_quizzes(self, session: AsyncSession, user_id: str) -> List[Dict]:
        result = await session.execute(
            select(Quiz).where(Quiz.USER_ID == user_id).order_by(Quiz.CREATED_AT.desc())
        )
        return [quiz.to_dict() for quiz in result.scalars().all()]

    async def update_quiz(self, session: AsyncSession, user_id: str, quiz_id: str, payload: Dict) -> Quiz:
        self._validate(payload.get("title"), payload.get("questions"))
        quiz = await self.get_quiz(session, user_id, quiz_id)
        quiz.TITLE = payload["title"]
        quiz.QUESTIONS = payload["questions"]
        if payload.get("settings"):
            quiz.SETTINGS = payload["settings"]
        quiz.UPDATED_AT = utcnow()
        await session.commit()
        return quiz

    async def delete_quiz(self, session: AsyncSession, user_id: str, quiz_id: str):
        quiz = await self.get_quiz(session, user_id, quiz_id)
        await session.delete(quiz)
        await session.commit()

    async def submit(self, session: AsyncSession, user_id: str, quiz_id: str, answers: Any,
                     time_taken: Optional[int] = None, letter_id: Optional[str] = None) -> QuizResult:
        quiz = await self.get_quiz(session, user_id, quiz_id)
        questions = quiz.QUESTIONS or []
        score, correct, results = score_answers(questions, answers or [])

        settings = quiz.SETTINGS or {}
        passing_score = settings.get("passingScore")
        if passing_score is None:
            passing_score = DEFAULT_QUIZ_SETTINGS["passingScore"]
        passed = score >= passing_score

        quiz_result = QuizResult(
            USER_ID=user_id,
            QUIZ_ID=quiz_id,
            QUIZ_TITLE=quiz.TITLE,
            SCORE=score,
            CORRECT_ANSWERS=correct,
            TOTAL_QUESTIONS=len(questions),
            PASSED=passed,
            PRIZE_WON=passed,
            TIME_TAKEN=int(time_taken or 0),
            RESULTS=results,
            LETTER_ID=letter_id or None,
        )
        session.add(quiz_result)
        await session.commit()
        logger.info(f"📝 Quiz submitted: quiz={quiz_id} score={score} passed={passed}")

        if passed:
            await notification_service.push_safely(
                session,
                user_id,
                "quiz_prize_won",
                f'Congratulations! You passed the "{quiz.TITLE}" quiz with a score of {score}%! 🎁',
                quizId=quiz_id,
                quizTitle=quiz.TITLE,
                resultId=quiz_result.RESULT_ID,
                score=score,
                letterId=letter_id or None,
            )
        return quiz_result


quiz_service = QuizService()
