import logging
from typing import Any
from ..errors import PredictionError
from ..models import Difficulty, PlayerStats

logger = logging.getLogger("adaptive_quiz")

def parse_difficulty(value: Any) -> Difficulty:
    if isinstance(value, Difficulty):
        return value
    if isinstance(value, str):
        try:
            return Difficulty(value.strip().lower())
        except ValueError:
            pass
    raise PredictionError(f"Predictor returned an invalid difficulty: {value!r}")

class StaticPredictor:
    """Keeps the player on their current tier."""

    def predict(self, stats: PlayerStats) -> Difficulty:
        return stats.current_difficulty

def build_predictor(settings) -> Any:
    backend = settings.predictor_backend
    if backend == "gemini":
        if not settings.gemini_api_key:
            logger.warning({"event": "gemini_no_api_key", "message": "Using static predictor"})
            return StaticPredictor()
        from .gemini_client import GeminiDifficultyPredictor
        return GeminiDifficultyPredictor(api_key=settings.gemini_api_key, model_name=settings.gemini_model)
    if backend != "static":
        logger.warning({"event": "unknown_predictor_backend", "backend": backend})
    return StaticPredictor()
