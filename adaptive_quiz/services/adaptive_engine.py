import asyncio
import inspect
import logging
from typing import Any, Callable, Optional
from ..errors import PredictionError
from ..models import Difficulty, PlayerStats, SessionState, Transition, harder
from .predictor import parse_difficulty

logger = logging.getLogger("adaptive_quiz")

PROMOTION_STREAK = 3
DEMOTION_WRONG_COUNT = 2
STREAK_BONUS_EVERY = 3

def score_increment(actual_streak: int) -> int:
    return 1 + actual_streak // STREAK_BONUS_EVERY

def apply_answer(state: SessionState, is_correct: bool) -> SessionState:
    """Commit the counter side of an answer and return the updated state."""
    if is_correct:
        actual = state.actual_streak + 1
        return state.model_copy(update={
            "actual_streak": actual,
            "inner_streak": state.inner_streak + 1,
            "consecutive_wrong": 0,
            "score": state.score + score_increment(actual),
        })
    return state.model_copy(update={
        "actual_streak": 0,
        "inner_streak": 0,
        "consecutive_wrong": state.consecutive_wrong + 1,
    })

def rule_transition(current: Difficulty, is_correct: bool, inner_streak: int, consecutive_wrong: int) -> Optional[Transition]:
    """Fixed promotion/demotion rules, first match wins. None means ask the predictor."""
    if inner_streak >= PROMOTION_STREAK:
        return Transition(difficulty=harder(current) or current, inner_streak=0, consecutive_wrong=consecutive_wrong, reason="promotion")
    if current == Difficulty.HARD and not is_correct:
        return Transition(difficulty=Difficulty.NORMAL, inner_streak=0, consecutive_wrong=consecutive_wrong, reason="hard_demotion")
    if current == Difficulty.NORMAL and consecutive_wrong >= DEMOTION_WRONG_COUNT:
        return Transition(difficulty=Difficulty.EASY, inner_streak=0, consecutive_wrong=0, reason="normal_demotion")
    return None

def timeout_transition(current: Difficulty, inner_streak: int, consecutive_wrong: int) -> Transition:
    # scored as a miss at the current tier; holds the tier when no demotion applies
    fallback = rule_transition(current, False, inner_streak, consecutive_wrong)
    if fallback is not None:
        return fallback.model_copy(update={"reason": "predictor_timeout"})
    return Transition(difficulty=current, inner_streak=inner_streak, consecutive_wrong=consecutive_wrong, reason="predictor_timeout")

class DifficultyController:
    def __init__(self, predictor: Any, timeout: Optional[float] = None) -> None:
        self.predictor = predictor
        self.timeout = timeout

    def _predict_callable(self) -> Callable[[PlayerStats], Any]:
        return getattr(self.predictor, "predict", self.predictor)

    async def _resolve(self, stats: PlayerStats) -> Any:
        predict = self._predict_callable()
        if inspect.iscoroutinefunction(predict):
            result = await predict(stats)
        else:
            result = await asyncio.to_thread(predict, stats)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _call_predictor(self, stats: PlayerStats) -> Any:
        # one deadline covers the blocking call and any awaitable it hands back
        return await asyncio.wait_for(self._resolve(stats), self.timeout)

    async def next_difficulty(self, current: Difficulty, is_correct: bool, inner_streak: int, consecutive_wrong: int, tag: Optional[dict] = None) -> Transition:
        transition = rule_transition(current, is_correct, inner_streak, consecutive_wrong)
        if transition is not None:
            return transition
        stats = PlayerStats(streak=inner_streak, current_difficulty=current)
        logger.debug({"event": "predictor_request", "stats": stats.model_dump(mode="json"), **(tag or {})})
        try:
            raw = await self._call_predictor(stats)
        except asyncio.TimeoutError:
            logger.warning({"event": "predictor_timeout", "timeout": self.timeout, **(tag or {})})
            return timeout_transition(current, inner_streak, consecutive_wrong)
        except PredictionError:
            raise
        except Exception as e:
            logger.exception("predictor_failed")
            raise PredictionError(f"Error predicting difficulty: {e}") from e
        difficulty = parse_difficulty(raw)
        logger.debug({"event": "predictor_response", "difficulty": difficulty.value, **(tag or {})})
        return Transition(difficulty=difficulty, inner_streak=inner_streak, consecutive_wrong=consecutive_wrong, reason="predictor")
