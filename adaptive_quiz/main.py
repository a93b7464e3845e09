from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import ORJSONResponse
from fastapi.middleware.cors import CORSMiddleware
import logging
from time import perf_counter
from .state import session_store
from .errors import AnswerKeyError, ConfigurationError, QuizError, RoundInProgressError, SessionNotFoundError
from .models import EndSessionRequest, GetQuestionResponse, SessionSummary, StartSessionResponse, SubmitAnswerRequest, SubmitAnswerResponse
from .services.adaptive_engine import DifficultyController
from .services.orchestrator import QuizOrchestrator
from .services.predictor import build_predictor
from .services.question_loader import load_question_pool
from .config import settings

logging.basicConfig(level=getattr(logging, settings.log_level, logging.DEBUG), format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("adaptive_quiz")

app = FastAPI(default_response_class=ORJSONResponse)

app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

orchestrator = QuizOrchestrator(
	store=session_store,
	pool=load_question_pool(settings.question_pool_path),
	controller=DifficultyController(build_predictor(settings), timeout=settings.predictor_timeout_seconds),
	seed=settings.random_seed,
)

def _to_http(e: QuizError) -> HTTPException:
	if isinstance(e, SessionNotFoundError):
		return HTTPException(status_code=404, detail="session_not_found")
	if isinstance(e, RoundInProgressError):
		return HTTPException(status_code=409, detail=str(e))
	if isinstance(e, AnswerKeyError):
		return HTTPException(status_code=422, detail=str(e))
	if isinstance(e, ConfigurationError):
		return HTTPException(status_code=500, detail={"error": "configuration_error", "message": str(e)})
	return HTTPException(status_code=500, detail=str(e))

@app.on_event("startup")
def on_startup() -> None:
	logger.info({
		"event": "api_startup",
		"pool_path": settings.question_pool_path,
		"pool_size": len(orchestrator.pool),
		"predictor_backend": settings.predictor_backend,
		"predictor_timeout_seconds": settings.predictor_timeout_seconds,
	})

@app.middleware("http")
async def timing_middleware(request: Request, call_next):
	start = perf_counter()
	response = await call_next(request)
	duration_ms = int((perf_counter() - start) * 1000)
	logger.debug({
		"event": "request_timing",
		"method": request.method,
		"path": request.url.path,
		"status_code": response.status_code,
		"duration_ms": duration_ms,
	})
	return response

@app.post("/api/session/start", response_model=StartSessionResponse)
def start_session():
	session_id = orchestrator.start_session()
	return StartSessionResponse(session_id=session_id)

@app.get("/api/quiz/next", response_model=GetQuestionResponse)
async def get_next_question(session_id: str):
	try:
		return orchestrator.next_question(session_id)
	except QuizError as e:
		raise _to_http(e) from e

@app.post("/api/quiz/submit", response_model=SubmitAnswerResponse)
async def submit_answer(payload: SubmitAnswerRequest):
	is_correct = payload.is_correct
	try:
		if is_correct is None:
			is_correct = orchestrator.store.evaluate_answer(payload.session_id, payload.question_id, payload.answer)
		return await orchestrator.submit_answer(payload.session_id, payload.question_id, is_correct)
	except QuizError as e:
		raise _to_http(e) from e

@app.get("/api/session/summary", response_model=SessionSummary)
def get_summary(session_id: str):
	try:
		return orchestrator.summary(session_id)
	except QuizError as e:
		raise _to_http(e) from e

@app.post("/api/session/end", response_model=SessionSummary)
def end_session(payload: EndSessionRequest):
	try:
		return orchestrator.end_session(payload.session_id)
	except QuizError as e:
		raise _to_http(e) from e
