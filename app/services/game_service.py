# app/services/game_service.py
"""
Games attached to letters, their completion/reward flow and recorded game prizes
"""

from typing import Dict, List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.game import Game, GameResult, ViewedReward
from app.models.user import User
from app.services.email_service import email_service
from app.services.email_templates import reward_fulfilled_email
from app.services.notification_service import notification_service
from app.utils.errors import NotFoundError, ValidationError
from app.utils.logger import logger
from app.utils.time_utils import utcnow

GAME_TYPE_LABELS = {
    "quiz": "Quiz Game",
    "memory-match": "Memory Match",
}

UPDATABLE_FIELDS = {
    "title": "TITLE",
    "type": "TYPE",
    "questions": "QUESTIONS",
    "pairs": "PAIRS",
    "settings": "SETTINGS",
    "rewards": "REWARDS",
    "hasReward": "HAS_REWARD",
}


class GameService:

    async def get_game(self, session: AsyncSession, user_id: str, game_id: str) -> Game:
        game = await session.get(Game, game_id)
        if game is None or game.USER_ID != user_id:
            raise NotFoundError("Game not found")
        return game

    async def create_game(self, session: AsyncSession, user_id: str, payload: Dict) -> Game:
        title = payload.get("title")
        game_type = payload.get("type")
        if not title or not game_type:
            raise ValidationError("Title and type are required")

        questions = payload.get("questions")
        if game_type == "quiz" and (not isinstance(questions, list) or not questions):
            raise ValidationError("Quiz games require at least one question")

        game = Game(
            USER_ID=user_id,
            TITLE=title,
            TYPE=game_type,
            QUESTIONS=questions if game_type == "quiz" else None,
            PAIRS=payload.get("pairs") if game_type == "memory-match" else None,
            SETTINGS=payload.get("settings") or {},
            REWARDS=payload.get("rewards") or None,
            HAS_REWARD=bool(payload.get("hasReward")),
        )
        session.add(game)
        await session.commit()
        logger.info(f"🎮 Game created: user={user_id} game={game.GAME_ID} type={game_type}")
        return game

    async def list_games(self, session: AsyncSession, user_id: str) -> List[Dict]:
        result = await session.execute(
            select(Game).where(Game.USER_ID == user_id).order_by(Game.CREATED_AT.desc())
        )
        return [game.to_dict() for game in result.scalars().all()]

    async def update_game(self, session: AsyncSession, user_id: str, game_id: str, payload: Dict) -> Game:
        game = await self.get_game(session, user_id, game_id)
        for key, column in UPDATABLE_FIELDS.items():
            if key in payload:
                value = payload[key]
                setattr(game, column, bool(value) if key == "hasReward" else value)
        game.UPDATED_AT = utcnow()
        await session.commit()
        return game

    async def delete_game(self, session: AsyncSession, user_id: str, game_id: str):
        game = await self.get_game(session, user_id, game_id)
        await session.delete(game)
        await session.commit()
        logger.info(f"🗑️ Game deleted: {game_id}")

    # viewed rewards

    async def viewed_rewards(self, session: AsyncSession, user_id: str) -> List[str]:
        result = await session.execute(
            select(ViewedReward.REWARD_ID)
            .where(ViewedReward.USER_ID == user_id)
            .order_by(ViewedReward.VIEWED_AT.asc())
        )
        return list(result.scalars().all())

    async def replace_viewed_rewards(self, session: AsyncSession, user_id: str, reward_ids) -> List[str]:
        if not isinstance(reward_ids, list):
            raise ValidationError("viewedRewardIds must be an array")

        await session.execute(delete(ViewedReward).where(ViewedReward.USER_ID == user_id))
        now = utcnow()
        unique_ids = list(dict.fromkeys(str(r) for r in reward_ids))
        for reward_id in unique_ids:
            session.add(ViewedReward(USER_ID=user_id, REWARD_ID=reward_id, VIEWED_AT=now))
        await session.commit()
        return unique_ids

    # completion

    async def complete_game(self, session: AsyncSession, user_id: str, game_id: str, passed: Optional[bool] = None,
                            reward_id: Optional[str] = None, message: Optional[str] = None) -> Game:
        game = await self.get_game(session, user_id, game_id)
        passed = True if passed is None else bool(passed)
        now = utcnow()

        game.IS_COMPLETED = True
        game.PASSED = passed
        game.COMPLETED_AT = now
        if reward_id:
            game.CLAIMED_REWARD_ID = str(reward_id)
        if message:
            game.COMPLETION_MESSAGE = message
            game.MESSAGE_SENT_AT = now
        await session.commit()

        if game.HAS_REWARD and passed:
            await self._notify_completion(session, game, reward_id)
        return game

    async def _notify_completion(self, session: AsyncSession, game: Game, reward_id: Optional[str]):
        receiver_name = await notification_service.receiver_name(session, game.USER_ID)
        reward = game.find_reward(reward_id)
        reward_name = reward.get("name") if reward else None

        game_label = GAME_TYPE_LABELS.get(game.TYPE, game.TYPE or "Game")
        message = f"{receiver_name} passed the {game_label}"
        if reward_name:
            message += f' and selected reward: "{reward_name}"'
        elif reward_id:
            message += " and selected a reward"
        message += " 🎁"

        await notification_service.push_safely(
            session,
            game.USER_ID,
            "game_completion",
            message,
            gameId=game.GAME_ID,
            gameType=game.TYPE or "game",
            gameTitle=game.TITLE or "Game",
            passed=True,
            rewardId=reward_id,
            rewardName=reward_name,
            receiverName=receiver_name,
        )

    async def update_completion(self, session: AsyncSession, user_id: str, game_id: str, payload: Dict) -> Game:
        game = await self.get_game(session, user_id, game_id)
        now = utcnow()

        if payload.get("message"):
            game.COMPLETION_MESSAGE = payload["message"]
            game.MESSAGE_SENT_AT = now
        if payload.get("rewardFulfilled") is not None:
            fulfilled = bool(payload["rewardFulfilled"])
            game.REWARD_FULFILLED = fulfilled
            game.FULFILLED_AT = now if fulfilled else None
        await session.commit()

        if payload.get("emailToReceiver") and payload.get("receiverEmail") and payload.get("emailMessage"):
            await self._send_fulfilled_email(session, game, payload["receiverEmail"], payload["emailMessage"])
        return game

    async def _send_fulfilled_email(self, session: AsyncSession, game: Game, receiver_email: str, message: str):
        """Best effort: the completion update stands even when the email fails."""
        try:
            receiver_name = await notification_service.receiver_name(session, game.USER_ID, default="there")
            sender = await session.get(User, game.USER_ID)
            sender_first_name = sender.FIRST_NAME if sender and sender.FIRST_NAME else "Your sender"
            reward = game.find_reward(game.CLAIMED_REWARD_ID)
            reward_name = reward.get("name") if reward and reward.get("name") else "your reward"

            subject, html, text = reward_fulfilled_email(receiver_name, sender_first_name, reward_name, message)
            await email_service.send_mail(email_service.build_mail_options(receiver_email, subject, html, text))
            logger.info(f"📧 Reward fulfilled email sent to {receiver_email}")
        except Exception as e:
            logger.error(f"❌ Error sending reward fulfilled email: {e}")

    # game prizes

    async def record_result(self, session: AsyncSession, user_id: str, payload: Dict) -> GameResult:
        game_type = payload.get("gameType")
        score = payload.get("score")
        if not game_type or score is None:
            raise ValidationError("Game type and score are required")
        try:
            score = int(score)
        except (TypeError, ValueError):
            raise ValidationError("Score must be a number")

        prize_won = bool(payload.get("prizeWon"))
        result = GameResult(
            USER_ID=user_id,
            GAME_TYPE=game_type,
            SCORE=score,
            DIFFICULTY=payload.get("difficulty") or None,
            PRIZE_WON=prize_won,
            LETTER_ID=payload.get("letterId") or None,
        )
        session.add(result)
        await session.commit()
        logger.info(f"🏆 Game result recorded: user={user_id} type={game_type} score={score} prize={prize_won}")

        receiver_name = await notification_service.receiver_name(session, user_id)
        await notification_service.push_safely(
            session,
            user_id,
            "game_prize" if prize_won else "game_completion",
            gameType=game_type,
            score=score,
            receiverName=receiver_name,
            gameResultId=result.RESULT_ID,
            letterId=result.LETTER_ID,
        )
        return result

    async def list_results(self, session: AsyncSession, user_id: str, prizes_only: bool = False) -> List[Dict]:
        query = select(GameResult).where(GameResult.USER_ID == user_id)
        if prizes_only:
            query = query.where(GameResult.PRIZE_WON.is_(True))
        result = await session.execute(query.order_by(GameResult.CREATED_AT.desc()))
        return [r.to_dict() for r in result.scalars().all()]


game_service = GameService()
