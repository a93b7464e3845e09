import json
from typing import Any, Dict

class PromptBuilder:
	def build(self, *, stats: Dict[str, Any]) -> str:
		context = {
			"player_stats": stats,
			"allowed_difficulties": ["easy", "normal", "hard"],
			"format": {"difficulty": "easy|normal|hard"},
		}
		instructions = (
			"Use the CONTEXT JSON below to decide the next quiz difficulty. "
			"player_stats.streak is the number of consecutive correct answers at player_stats.current_difficulty. "
			"Keep the player challenged without frustrating them; move at most one tier from current_difficulty. "
			"Output must be strict JSON only, matching the format object."
		)
		return instructions + "\n" + json.dumps(context)
