import asyncio
import random

import pytest
from adaptive_quiz.errors import ConfigurationError, RoundInProgressError, SessionNotFoundError
from adaptive_quiz.models import Difficulty, SessionState
from adaptive_quiz.services.adaptive_engine import DifficultyController
from adaptive_quiz.services.orchestrator import QuizOrchestrator
from adaptive_quiz.services.question_loader import build_pool
from adaptive_quiz.state import SessionStore
from conftest import FirstChoiceRng, HoldPredictor, make_raw_pool


def play_round(orchestrator, session_id, is_correct):
    served = orchestrator.next_question(session_id)
    if served.game_over:
        return served, None
    outcome = asyncio.run(orchestrator.submit_answer(session_id, served.question.id, is_correct))
    return served, outcome


def test_exhaustion_ends_game_with_deterministic_score():
    pool = build_pool(make_raw_pool(per_bucket=1))
    orchestrator = QuizOrchestrator(SessionStore(), pool, DifficultyController(HoldPredictor()))
    session_id = orchestrator.start_session(rng=FirstChoiceRng())

    served_tiers = []
    for _ in range(3):
        served, outcome = play_round(orchestrator, session_id, True)
        served_tiers.append(served.difficulty)
    assert served_tiers == [Difficulty.EASY, Difficulty.NORMAL, Difficulty.HARD]

    final = orchestrator.next_question(session_id)
    assert final.game_over
    assert final.question is None
    # 1 + 1 + (1 + 3 // 3)
    assert final.summary.score == 4
    assert final.summary.final_streak == 3
    assert final.summary.final_difficulty == Difficulty.HARD
    assert final.summary.answered == 3
    # stays over
    assert orchestrator.next_question(session_id).game_over


def test_no_question_repeats_across_a_whole_game(pool):
    orchestrator = QuizOrchestrator(SessionStore(), pool, DifficultyController(HoldPredictor()))
    session_id = orchestrator.start_session(rng=random.Random(42))
    served_ids = []
    outcomes = random.Random(7)
    for _ in range(100):
        served, outcome = play_round(orchestrator, session_id, outcomes.random() < 0.6)
        if served.game_over:
            break
        served_ids.append(served.question.id)
    assert orchestrator.summary(session_id).game_over
    assert len(served_ids) == len(set(served_ids))
    assert set(served_ids) == orchestrator.store.get(session_id).asked_question_ids


def test_configuration_error_leaves_state_untouched():
    pool = build_pool(make_raw_pool(modes=("fillInTheBlank",)))
    orchestrator = QuizOrchestrator(SessionStore(), pool, DifficultyController(HoldPredictor()))
    session_id = orchestrator.start_session(rng=FirstChoiceRng())
    with pytest.raises(ConfigurationError):
        orchestrator.next_question(session_id)
    session = orchestrator.store.get(session_id)
    assert session.state == SessionState()
    assert session.asked_question_ids == set()
    # no further questions once the pool is known to be broken
    with pytest.raises(ConfigurationError):
        orchestrator.next_question(session_id)


def test_unanswered_question_is_served_again(orchestrator):
    session_id = orchestrator.start_session(rng=random.Random(1))
    first = orchestrator.next_question(session_id)
    again = orchestrator.next_question(session_id)
    assert again.question == first.question
    assert orchestrator.store.get(session_id).round_id == 1


def test_answering_wrong_question_is_rejected(orchestrator):
    session_id = orchestrator.start_session(rng=random.Random(1))
    orchestrator.next_question(session_id)
    with pytest.raises(RoundInProgressError):
        asyncio.run(orchestrator.submit_answer(session_id, "not-served", True))


def test_answering_twice_is_rejected(orchestrator):
    session_id = orchestrator.start_session(rng=random.Random(1))
    served = orchestrator.next_question(session_id)
    asyncio.run(orchestrator.submit_answer(session_id, served.question.id, True))
    with pytest.raises(RoundInProgressError):
        asyncio.run(orchestrator.submit_answer(session_id, served.question.id, True))


def test_no_new_question_while_answer_is_evaluated(pool):
    blocked = []

    async def predict(stats):
        with pytest.raises(RoundInProgressError):
            orchestrator.next_question(session_id)
        blocked.append(True)
        return stats.current_difficulty

    orchestrator = QuizOrchestrator(SessionStore(), pool, DifficultyController(predict))
    session_id = orchestrator.start_session(rng=random.Random(5))
    play_round(orchestrator, session_id, True)
    assert blocked == [True]
    assert orchestrator.next_question(session_id).question is not None


def test_late_prediction_for_ended_session_is_discarded(pool):
    async def predict(stats):
        orchestrator.end_session(session_id)
        return "hard"

    orchestrator = QuizOrchestrator(SessionStore(), pool, DifficultyController(predict))
    session_id = orchestrator.start_session(rng=random.Random(5))
    served = orchestrator.next_question(session_id)
    with pytest.raises(SessionNotFoundError):
        asyncio.run(orchestrator.submit_answer(session_id, served.question.id, True))
    assert not orchestrator.store.has_session(session_id)


def test_prediction_error_keeps_previous_difficulty_and_counters(pool):
    orchestrator = QuizOrchestrator(SessionStore(), pool, DifficultyController(lambda stats: "legendary"))
    session_id = orchestrator.start_session(rng=random.Random(5))
    served, outcome = play_round(orchestrator, session_id, True)
    assert outcome.prediction_error
    assert outcome.difficulty == Difficulty.EASY
    assert not outcome.difficulty_changed
    state = orchestrator.store.get(session_id).state
    assert (state.score, state.actual_streak, state.inner_streak) == (1, 1, 1)
    # the game carries on at the previous tier
    assert orchestrator.next_question(session_id).difficulty == Difficulty.EASY


def test_difficulty_change_clears_previous_questions(pool):
    orchestrator = QuizOrchestrator(SessionStore(), pool, DifficultyController(HoldPredictor()))
    session_id = orchestrator.start_session(rng=random.Random(3))
    for _ in range(2):
        play_round(orchestrator, session_id, True)
    assert len(orchestrator.store.get_previous_questions(session_id)) == 2
    served, outcome = play_round(orchestrator, session_id, True)
    assert outcome.difficulty_changed
    assert outcome.difficulty == Difficulty.NORMAL
    session = orchestrator.store.get(session_id)
    assert session.previous_questions == []
    assert len(session.asked_question_ids) == 3


def test_seeded_orchestrator_replays_the_same_game(pool):
    def game():
        orchestrator = QuizOrchestrator(SessionStore(), pool, DifficultyController(HoldPredictor()), seed=99)
        session_id = orchestrator.start_session()
        return [play_round(orchestrator, session_id, True)[0].question.id for _ in range(4)]

    assert game() == game()


def test_unknown_session(orchestrator):
    with pytest.raises(SessionNotFoundError):
        orchestrator.next_question("nope")
    with pytest.raises(SessionNotFoundError):
        orchestrator.end_session("nope")


def test_exhaustion_reached_by_escalation_reports_hard():
    pool = build_pool(make_raw_pool(per_bucket=1))
    orchestrator = QuizOrchestrator(SessionStore(), pool, DifficultyController(HoldPredictor()))
    session_id = orchestrator.start_session(rng=FirstChoiceRng())
    session = orchestrator.store.get(session_id)
    session.asked_question_ids.update({"multipleChoice-easy-0", "multipleChoice-normal-0", "multipleChoice-hard-0"})
    session.previous_questions.append("multipleChoice-easy-0")

    final = orchestrator.next_question(session_id)
    assert final.game_over
    assert final.difficulty == Difficulty.HARD
    assert final.summary.final_difficulty == Difficulty.HARD
    assert session.previous_questions == []
