from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from mock_interview.client.models import Candidate


logger = logging.getLogger(__name__)

Updater = Union[Callable[[Candidate], Candidate], Dict[str, Any]]


class CandidateStore:
	"""Ordered, append-only list of candidate records persisted as one JSON file.

	The file is read once when the store is created and rewritten after every
	mutation. Records are immutable, so callers never share mutable state with
	the store; ``update`` swaps in a new record.
	"""

	def __init__(self, path: Union[str, Path]) -> None:
		self._path = Path(path)
		self._candidates: List[Candidate] = []
		self.load()

	@property
	def path(self) -> Path:
		return self._path

	def load(self) -> List[Candidate]:
		self._candidates = []
		if not self._path.exists():
			return []
		try:
			with self._path.open("r", encoding="utf-8") as f:
				raw = json.load(f)
			self._candidates = [Candidate.from_dict(item) for item in raw.get("candidates", [])]
		except (ValueError, KeyError, TypeError, AttributeError) as exc:
			logger.warning("Ignoring unreadable candidate store %s: %s", self._path, exc)
			self._candidates = []
		return list(self._candidates)

	def save(self) -> None:
		self._path.parent.mkdir(parents=True, exist_ok=True)
		payload = {"candidates": [c.to_dict() for c in self._candidates]}
		fd, tmp_name = tempfile.mkstemp(prefix=".candidates-", suffix=".json", dir=self._path.parent)
		try:
			with os.fdopen(fd, "w", encoding="utf-8") as f:
				json.dump(payload, f, ensure_ascii=False, indent=2)
			os.replace(tmp_name, self._path)
		except BaseException:
			Path(tmp_name).unlink(missing_ok=True)
			raise

	def all(self) -> List[Candidate]:
		return list(self._candidates)

	def get(self, candidate_id: str) -> Optional[Candidate]:
		for c in self._candidates:
			if c.id == candidate_id:
				return c
		return None

	def get_required(self, candidate_id: str) -> Candidate:
		candidate = self.get(candidate_id)
		if candidate is None:
			raise KeyError(f"candidate not found: {candidate_id}")
		return candidate

	def add(self, candidate: Candidate) -> Candidate:
		if self.get(candidate.id) is not None:
			raise ValueError(f"duplicate candidate id: {candidate.id}")
		self._candidates = [*self._candidates, candidate]
		self.save()
		return candidate

	def update(self, candidate_id: str, changes: Updater) -> Candidate:
		"""Replace one record with ``changes(record)`` or ``record`` merged with a dict of fields."""
		current = self.get_required(candidate_id)
		updated = changes(current) if callable(changes) else current.with_changes(**changes)
		self._candidates = [updated if c.id == candidate_id else c for c in self._candidates]
		self.save()
		return updated

	def find_unfinished(self) -> Optional[Candidate]:
		for c in self._candidates:
			if c.is_unfinished:
				return c
		return None
