import random
from typing import Dict, List, Optional, Set
from .errors import AnswerKeyError, SessionNotFoundError
from .models import AnswerRecord, Selected, SessionState, SessionSummary

def _norm(text: str) -> str:
	return (text or '').strip().lower()

class SessionData:
	def __init__(self, rng: Optional[random.Random] = None) -> None:
		self.state = SessionState()
		self.rng = rng or random.Random()
		self.asked_question_ids: Set[str] = set()
		# ids asked since the last difficulty change; never read when selecting
		self.previous_questions: List[str] = []
		self.current: Optional[Selected] = None
		self.answered_current = False
		self.evaluating = False
		self.round_id = 0
		self.failure: Optional[str] = None
		self.answers: List[AnswerRecord] = []

	def set_difficulty(self, difficulty) -> bool:
		if difficulty == self.state.difficulty:
			return False
		self.state = self.state.model_copy(update={"difficulty": difficulty})
		self.previous_questions = []
		return True

	def summary(self) -> SessionSummary:
		return SessionSummary(
			score=self.state.score,
			final_streak=self.state.actual_streak,
			final_difficulty=self.state.difficulty,
			game_over=self.state.game_over,
			answered=len(self.answers),
			correct=sum(1 for a in self.answers if a.is_correct),
		)

class SessionStore:
	def __init__(self) -> None:
		self.sessions: Dict[str, SessionData] = {}

	def create_session(self, session_id: str, rng: Optional[random.Random] = None) -> SessionData:
		self.sessions[session_id] = SessionData(rng)
		return self.sessions[session_id]

	def has_session(self, session_id: str) -> bool:
		return session_id in self.sessions

	def get(self, session_id: str) -> SessionData:
		try:
			return self.sessions[session_id]
		except KeyError:
			raise SessionNotFoundError(session_id) from None

	def end_session(self, session_id: str) -> Optional[SessionData]:
		return self.sessions.pop(session_id, None)

	def is_current_round(self, session_id: str, round_id: int) -> bool:
		session = self.sessions.get(session_id)
		return session is not None and session.round_id == round_id and not session.state.game_over

	def evaluate_answer(self, session_id: str, question_id: str, answer: str) -> bool:
		current = self.get(session_id).current
		if current is None or current.question.id != question_id:
			return False
		if current.question.answer is None:
			raise AnswerKeyError(f"question {question_id} has no answer key; submit is_correct instead")
		return _norm(answer) == _norm(current.question.answer)

	def get_previous_questions(self, session_id: str) -> List[str]:
		return list(self.get(session_id).previous_questions)

session_store = SessionStore()
