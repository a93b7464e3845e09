import logging
import random
import uuid
from typing import Optional
from ..errors import ConfigurationError, PredictionError, RoundInProgressError, SessionNotFoundError
from ..models import AnswerRecord, Exhausted, GetQuestionResponse, QuestionPool, SessionSummary, SubmitAnswerResponse
from ..state import SessionStore
from .adaptive_engine import DifficultyController, apply_answer
from .question_selector import select_next

logger = logging.getLogger("adaptive_quiz")

class QuizOrchestrator:
    """Runs rounds for every session in a store: select, present, score, adapt."""

    def __init__(self, store: SessionStore, pool: QuestionPool, controller: DifficultyController, seed: Optional[int] = None) -> None:
        self.store = store
        self.pool = pool
        self.controller = controller
        self.seed = seed

    def start_session(self, session_id: Optional[str] = None, rng: Optional[random.Random] = None) -> str:
        session_id = session_id or str(uuid.uuid4())
        if rng is None and self.seed is not None:
            rng = random.Random(self.seed)
        self.store.create_session(session_id, rng)
        logger.debug({"event": "session_started", "session_id": session_id})
        return session_id

    def end_session(self, session_id: str) -> SessionSummary:
        session = self.store.end_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        logger.debug({"event": "session_ended", "session_id": session_id, "evaluating": session.evaluating})
        return session.summary()

    def summary(self, session_id: str) -> SessionSummary:
        return self.store.get(session_id).summary()

    def next_question(self, session_id: str) -> GetQuestionResponse:
        session = self.store.get(session_id)
        if session.failure:
            raise ConfigurationError(session.failure)
        if session.state.game_over:
            return GetQuestionResponse(difficulty=session.state.difficulty, game_over=True, summary=session.summary())
        if session.evaluating:
            raise RoundInProgressError("previous answer is still being evaluated")
        if session.current is not None and not session.answered_current:
            current = session.current
            return GetQuestionResponse(question=current.question, mode=current.mode, difficulty=current.difficulty)

        try:
            result = select_next(session.state.difficulty, session.asked_question_ids, self.pool, session.rng)
        except ConfigurationError as e:
            session.failure = str(e)
            logger.error({"event": "configuration_error", "session_id": session_id, "detail": session.failure})
            raise
        if isinstance(result, Exhausted):
            session.set_difficulty(result.difficulty)
            session.state = session.state.model_copy(update={"game_over": True})
            session.current = None
            summary = session.summary()
            logger.info({"event": "game_over", "session_id": session_id, **summary.model_dump(mode="json")})
            return GetQuestionResponse(difficulty=session.state.difficulty, game_over=True, summary=summary)

        if session.set_difficulty(result.difficulty):
            logger.debug({"event": "difficulty_escalated", "session_id": session_id, "difficulty": result.difficulty.value})
        session.previous_questions.append(result.question.id)
        session.current = result
        session.answered_current = False
        session.round_id += 1
        logger.debug({
            "event": "serve_question",
            "session_id": session_id,
            "round_id": session.round_id,
            "question_id": result.question.id,
            "mode": result.mode.value,
            "difficulty": result.difficulty.value,
        })
        return GetQuestionResponse(question=result.question, mode=result.mode, difficulty=result.difficulty)

    async def submit_answer(self, session_id: str, question_id: str, is_correct: bool) -> SubmitAnswerResponse:
        session = self.store.get(session_id)
        if session.evaluating:
            raise RoundInProgressError("previous answer is still being evaluated")
        current = session.current
        if current is None or session.answered_current or current.question.id != question_id:
            raise RoundInProgressError(f"question {question_id} is not awaiting an answer")

        session.evaluating = True
        round_id = session.round_id
        previous = session.state.difficulty
        session.state = apply_answer(session.state, is_correct)
        session.answered_current = True
        session.answers.append(AnswerRecord(question_id=question_id, mode=current.mode, difficulty=current.difficulty, is_correct=is_correct))
        logger.debug({
            "event": "submit_answer",
            "session_id": session_id,
            "question_id": question_id,
            "is_correct": is_correct,
            "score": session.state.score,
            "streak": session.state.actual_streak,
        })

        prediction_error = None
        transition = None
        try:
            transition = await self.controller.next_difficulty(
                previous,
                is_correct,
                session.state.inner_streak,
                session.state.consecutive_wrong,
                tag={"session_id": session_id, "round_id": round_id},
            )
        except PredictionError as e:
            prediction_error = str(e)
            logger.warning({"event": "prediction_error", "session_id": session_id, "detail": prediction_error})
        finally:
            session.evaluating = False

        if not self.store.is_current_round(session_id, round_id):
            logger.debug({"event": "stale_prediction_discarded", "session_id": session_id, "round_id": round_id})
            raise SessionNotFoundError(session_id)

        changed = False
        if transition is not None:
            session.state = session.state.model_copy(update={
                "inner_streak": transition.inner_streak,
                "consecutive_wrong": transition.consecutive_wrong,
            })
            changed = session.set_difficulty(transition.difficulty)
            if changed:
                logger.debug({
                    "event": "difficulty_changed",
                    "session_id": session_id,
                    "from": previous.value,
                    "to": transition.difficulty.value,
                    "reason": transition.reason,
                })
        return SubmitAnswerResponse(
            correct=is_correct,
            score=session.state.score,
            streak=session.state.actual_streak,
            difficulty=session.state.difficulty,
            difficulty_changed=changed,
            prediction_error=prediction_error,
        )
