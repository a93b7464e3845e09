from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Dict, List, Literal, Optional, Tuple, Union

class Difficulty(str, Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"

class Mode(str, Enum):
    MULTIPLE_CHOICE = "multipleChoice"
    FILL_IN_THE_BLANK = "fillInTheBlank"

TIERS: List[Difficulty] = [Difficulty.EASY, Difficulty.NORMAL, Difficulty.HARD]
MODES: List[Mode] = [Mode.MULTIPLE_CHOICE, Mode.FILL_IN_THE_BLANK]

def harder(difficulty: Difficulty) -> Optional[Difficulty]:
    """Next tier up, or None at the top."""
    idx = TIERS.index(difficulty)
    if idx == len(TIERS) - 1:
        return None
    return TIERS[idx + 1]

class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    mode: Mode
    difficulty: Difficulty
    text: str
    options: List[str] = Field(default_factory=list)
    answer: Optional[str] = None

class QuestionPool:
    """Read-only catalog of questions keyed by (mode, difficulty)."""

    def __init__(self, buckets: Dict[Mode, Dict[Difficulty, List[Question]]]) -> None:
        self._buckets = {
            mode: {difficulty: tuple(questions) for difficulty, questions in by_difficulty.items()}
            for mode, by_difficulty in buckets.items()
        }

    def get(self, mode: Mode, difficulty: Difficulty) -> Optional[Tuple[Question, ...]]:
        by_difficulty = self._buckets.get(mode)
        if by_difficulty is None:
            return None
        return by_difficulty.get(difficulty)

    def __len__(self) -> int:
        return sum(len(qs) for by_difficulty in self._buckets.values() for qs in by_difficulty.values())

class SessionState(BaseModel):
    score: int = Field(default=0, ge=0)
    actual_streak: int = Field(default=0, ge=0)
    inner_streak: int = Field(default=0, ge=0)
    consecutive_wrong: int = Field(default=0, ge=0)
    difficulty: Difficulty = Difficulty.EASY
    game_over: bool = False

class Selected(BaseModel):
    kind: Literal["selected"] = "selected"
    mode: Mode
    question: Question
    difficulty: Difficulty

class Exhausted(BaseModel):
    kind: Literal["exhausted"] = "exhausted"
    difficulty: Difficulty

SelectionResult = Union[Selected, Exhausted]

class Transition(BaseModel):
    difficulty: Difficulty
    inner_streak: int
    consecutive_wrong: int
    reason: str

class PlayerStats(BaseModel):
    streak: int
    current_difficulty: Difficulty

class AnswerRecord(BaseModel):
    question_id: str
    mode: Mode
    difficulty: Difficulty
    is_correct: bool

class SessionSummary(BaseModel):
    score: int
    final_streak: int
    final_difficulty: Difficulty
    game_over: bool
    answered: int
    correct: int

class StartSessionResponse(BaseModel):
    session_id: str

class GetQuestionResponse(BaseModel):
    question: Optional[Question] = None
    mode: Optional[Mode] = None
    difficulty: Difficulty
    game_over: bool = False
    summary: Optional[SessionSummary] = None

class SubmitAnswerRequest(BaseModel):
    session_id: str
    question_id: str
    is_correct: Optional[bool] = None
    answer: Optional[str] = None

    @model_validator(mode="after")
    def _needs_outcome(self) -> "SubmitAnswerRequest":
        if self.is_correct is None and self.answer is None:
            raise ValueError("either is_correct or answer is required")
        return self

class SubmitAnswerResponse(BaseModel):
    correct: bool
    score: int
    streak: int
    difficulty: Difficulty
    difficulty_changed: bool = False
    prediction_error: Optional[str] = None

class EndSessionRequest(BaseModel):
    session_id: str
