import logging
import random
from typing import Optional, Set
from ..errors import ConfigurationError
from ..models import MODES, TIERS, Difficulty, Exhausted, QuestionPool, Selected, SelectionResult, harder

logger = logging.getLogger("adaptive_quiz")

def select_next(difficulty: Difficulty, asked: Set[str], pool: QuestionPool, rng: Optional[random.Random] = None) -> SelectionResult:
    """Draw an unseen question, moving up a tier when the drawn bucket is used up.

    The chosen question's id is added to ``asked``. ``Selected.difficulty`` is the
    tier the question came from, which is higher than ``difficulty`` after an
    escalation. Returns ``Exhausted`` once the hard tier has nothing left.
    """
    rng = rng or random
    tier = difficulty
    for _ in range(len(TIERS)):
        mode = rng.choice(MODES)
        questions = pool.get(mode, tier)
        if questions is None:
            logger.error({"event": "pool_missing_bucket", "mode": mode.value, "difficulty": tier.value})
            raise ConfigurationError(f"Questions not found for mode: {mode.value} and difficulty: {tier.value}")
        available = [q for q in questions if q.id not in asked]
        if available:
            question = rng.choice(available)
            asked.add(question.id)
            return Selected(mode=mode, question=question, difficulty=tier)
        nxt = harder(tier)
        if nxt is None:
            break
        logger.debug({"event": "selection_escalated", "mode": mode.value, "from": tier.value, "to": nxt.value})
        tier = nxt
    logger.info({"event": "pool_exhausted", "difficulty": tier.value, "asked": len(asked)})
    return Exhausted(difficulty=tier)
