import pytest
from adaptive_quiz.models import PlayerStats
from adaptive_quiz.services.adaptive_engine import DifficultyController
from adaptive_quiz.services.orchestrator import QuizOrchestrator
from adaptive_quiz.services.question_loader import build_pool
from adaptive_quiz.state import SessionStore


class FirstChoiceRng:
    """Always picks the first candidate, so mode is multipleChoice and draws follow pool order."""

    def choice(self, seq):
        return seq[0]


class HoldPredictor:
    def __init__(self):
        self.calls = []

    def predict(self, stats: PlayerStats):
        self.calls.append(stats)
        return stats.current_difficulty


def make_raw_pool(per_bucket=1, modes=("multipleChoice", "fillInTheBlank"), difficulties=("easy", "normal", "hard")):
    return {
        mode: {
            difficulty: [
                {"id": f"{mode}-{difficulty}-{i}", "text": f"{mode} {difficulty} #{i}", "answer": "yes"}
                for i in range(per_bucket)
            ]
            for difficulty in difficulties
        }
        for mode in modes
    }


@pytest.fixture
def pool():
    return build_pool(make_raw_pool(per_bucket=3))


@pytest.fixture
def predictor():
    return HoldPredictor()


@pytest.fixture
def orchestrator(pool, predictor):
    return QuizOrchestrator(SessionStore(), pool, DifficultyController(predictor))
