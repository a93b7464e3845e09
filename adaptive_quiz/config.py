import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()

DEFAULT_POOL_PATH = os.path.join(os.path.dirname(__file__), "data", "questions.json")

def _optional_int(value: str | None) -> int | None:
    if value is None or value.strip() == "":
        return None
    return int(value)

class Settings(BaseModel):
    question_pool_path: str = os.getenv("QUESTION_POOL_PATH", DEFAULT_POOL_PATH)
    predictor_backend: str = os.getenv("PREDICTOR_BACKEND", "static").lower()
    predictor_timeout_seconds: float = float(os.getenv("PREDICTOR_TIMEOUT_SECONDS", "5"))
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    random_seed: int | None = _optional_int(os.getenv("RANDOM_SEED"))
    log_level: str = os.getenv("LOG_LEVEL", "DEBUG").upper()

settings = Settings()
