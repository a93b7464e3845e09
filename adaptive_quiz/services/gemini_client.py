import json
import logging
from time import perf_counter
from typing import Any
import google.generativeai as genai
from ..errors import PredictionError
from ..models import Difficulty, PlayerStats
from .predictor import parse_difficulty
from .prompt_builder import PromptBuilder

logger = logging.getLogger("adaptive_quiz")

class GeminiDifficultyPredictor:
    """Asks a Gemini model for the next tier. Blocking; the controller runs it off the event loop."""

    def __init__(self, api_key: str | None, model_name: str) -> None:
        if api_key:
            genai.configure(api_key=api_key)
        self.model_name = model_name
        self.generation_config = {
            "temperature": 0.1,
            "top_p": 0.9,
            "top_k": 50,
            "response_mime_type": "application/json",
        }
        self.prompt_builder = PromptBuilder()

    def _build_prompt(self, stats: PlayerStats) -> str:
        return self.prompt_builder.build(stats=stats.model_dump(mode="json"))

    def _strip_code_fences(self, text: str) -> str:
        t = text.strip()
        if t.startswith("```"):
            parts = t.split("\n", 1)
            if len(parts) == 2:
                t = parts[1]
            if t.endswith("```"):
                t = t[:-3]
        if t.startswith("json\n"):
            t = t[5:]
        return t.strip()

    def _extract_difficulty(self, payload: Any) -> Any:
        if isinstance(payload, dict):
            return payload.get("difficulty")
        return payload

    def _response_text(self, response: Any) -> str:
        raw_text = (getattr(response, "text", "") or "").strip()
        if not raw_text and getattr(response, "candidates", None):
            parts = response.candidates[0].content.parts
            raw_text = "".join(getattr(p, "text", "") for p in parts)
        return raw_text

    def predict(self, stats: PlayerStats) -> Difficulty:
        prompt = self._build_prompt(stats)
        logger.debug({"event": "gemini_request", "model": self.model_name})
        try:
            model = genai.GenerativeModel(self.model_name, generation_config=self.generation_config)
            t0 = perf_counter()
            response = model.generate_content(prompt)
            latency_ms = int((perf_counter() - t0) * 1000)
            cleaned = self._strip_code_fences(self._response_text(response))
        except Exception as e:
            logger.exception("gemini_call_failed")
            raise PredictionError(f"Gemini request failed: {e}") from e
        logger.debug({"event": "gemini_response", "preview": cleaned[:200], "latency_ms": latency_ms})
        try:
            payload = json.loads(cleaned)
        except ValueError:
            # bare tier names are accepted as well
            payload = cleaned.strip('"')
        return parse_difficulty(self._extract_difficulty(payload))
