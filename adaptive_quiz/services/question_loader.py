import json
import logging
import uuid
from typing import Any, Dict, List
from pydantic import ValidationError
from ..errors import ConfigurationError
from ..models import Difficulty, Mode, Question, QuestionPool

logger = logging.getLogger("adaptive_quiz")

def build_pool(raw: Any) -> QuestionPool:
    """Build a pool from ``{mode: {difficulty: [record, ...]}}``.

    Records may be dicts (``id``, ``text``, ``options``, ``answer``) or plain
    strings. Ids are generated for records that do not carry one.
    """
    if not isinstance(raw, dict):
        raise ConfigurationError("Question pool must be an object keyed by mode")
    buckets: Dict[Mode, Dict[Difficulty, List[Question]]] = {}
    seen_ids: set[str] = set()
    for mode_key, by_difficulty in raw.items():
        try:
            mode = Mode(mode_key)
        except ValueError:
            raise ConfigurationError(f"Unknown question mode: {mode_key}") from None
        if not isinstance(by_difficulty, dict):
            raise ConfigurationError(f"Questions for mode {mode_key} must be keyed by difficulty")
        buckets[mode] = {}
        for difficulty_key, records in by_difficulty.items():
            try:
                difficulty = Difficulty(difficulty_key)
            except ValueError:
                raise ConfigurationError(f"Unknown difficulty {difficulty_key} for mode {mode_key}") from None
            if not isinstance(records, list):
                raise ConfigurationError(f"Questions for {mode_key}/{difficulty_key} must be a list")
            questions: List[Question] = []
            for item in records:
                if isinstance(item, str):
                    item = {"text": item}
                if not isinstance(item, dict):
                    raise ConfigurationError(f"Question records in {mode_key}/{difficulty_key} must be objects or strings, got {item!r}")
                qid = str(item.get("id") or uuid.uuid4())
                options = item.get("options") or []
                if not isinstance(options, list):
                    raise ConfigurationError(f"Options for question {qid} must be a list")
                if qid in seen_ids:
                    raise ConfigurationError(f"Duplicate question id: {qid}")
                seen_ids.add(qid)
                try:
                    questions.append(Question(
                        id=qid,
                        mode=mode,
                        difficulty=difficulty,
                        text=item.get("text", ""),
                        options=[str(o) for o in options],
                        answer=item.get("answer"),
                    ))
                except ValidationError as e:
                    raise ConfigurationError(f"Invalid question {qid} in {mode_key}/{difficulty_key}: {e}") from e
            buckets[mode][difficulty] = questions
    return QuestionPool(buckets)

def load_question_pool(path: str) -> QuestionPool:
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Could not load question pool from {path}: {e}") from e
    pool = build_pool(raw)
    logger.debug({"event": "question_pool_loaded", "path": path, "count": len(pool)})
    return pool
