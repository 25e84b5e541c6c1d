from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional


logger = logging.getLogger(__name__)

# First "{" or "[" through the last matching closer; greedy so nested values survive
_JSON_SPAN = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")


def extract_json(text: Optional[str]) -> Optional[Any]:
	"""Best-effort JSON recovery from free-form model output.

	Tries the whole text first, then the outermost object/array span (which
	also strips markdown fences and chatter around the payload). Returns None
	when nothing parses.
	"""
	if not text:
		return None
	try:
		return json.loads(text)
	except ValueError:
		pass

	match = _JSON_SPAN.search(text)
	if not match:
		logger.warning("No JSON found in model output: %.200s", text)
		return None
	try:
		return json.loads(match.group(0))
	except ValueError as exc:
		logger.warning("Salvaged JSON span did not parse: %s", exc)
		return None
