from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx

from mock_interview.client.models import QUESTIONS_PER_INTERVIEW, Candidate, Question
from mock_interview.config import settings


logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
	def __init__(self, status_code: int, detail: str) -> None:
		super().__init__(f"{status_code}: {detail}")
		self.status_code = status_code
		self.detail = detail


class InvalidQuestionSetError(ValueError):
	"""The backend did not return exactly six questions."""


class InterviewApiClient:
	"""Async client for the mock interview backend."""

	def __init__(
		self,
		base_url: Optional[str] = None,
		*,
		api_key: Optional[str] = None,
		timeout: Optional[float] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
		self._http = httpx.AsyncClient(
			base_url=(base_url or settings.api_base_url).rstrip("/"),
			headers=headers,
			timeout=timeout if timeout is not None else settings.client_timeout,
			transport=transport,
		)

	async def aclose(self) -> None:
		await self._http.aclose()

	async def __aenter__(self) -> "InterviewApiClient":
		return self

	async def __aexit__(self, *exc_info) -> None:
		await self.aclose()

	async def _post(self, path: str, **kwargs: Any) -> Dict[str, Any]:
		try:
			resp = await self._http.post(path, **kwargs)
		except httpx.HTTPError as exc:
			raise ApiError(0, f"Request to {path} failed: {exc}") from exc
		try:
			data = resp.json()
		except ValueError:
			data = {}
		if resp.is_error:
			detail = data.get("detail") or data.get("error") if isinstance(data, dict) else None
			logger.debug("POST %s failed with %s: %s", path, resp.status_code, detail)
			raise ApiError(resp.status_code, str(detail or resp.reason_phrase))
		if not isinstance(data, dict):
			raise ApiError(resp.status_code, f"Unexpected response body from {path}")
		return data

	async def parse_resume(self, path: Union[str, Path]) -> Dict[str, Any]:
		path = Path(path)
		with path.open("rb") as f:
			files = {"file": (path.name, f.read())}
		return await self._post("/api/parse-resume", files=files)

	async def generate_questions(self, role: Optional[str] = None, stack: Optional[List[str]] = None) -> List[Question]:
		body: Dict[str, Any] = {}
		if role:
			body["role"] = role
		if stack:
			body["stack"] = list(stack)
		data = await self._post("/api/generate-questions", json=body)
		raw = data.get("questions")
		if not isinstance(raw, list) or len(raw) != QUESTIONS_PER_INTERVIEW:
			raise InvalidQuestionSetError(f"Backend must return exactly {QUESTIONS_PER_INTERVIEW} questions.")
		return [Question.from_dict(q) for q in raw]

	async def grade_answer(self, question: str, answer: str) -> Dict[str, Any]:
		return await self._post("/api/grade-answer", json={"question": question, "answer": answer})

	async def final_summary(self, candidate: Candidate) -> Dict[str, Any]:
		return await self._post("/api/final-summary", json={"candidate": candidate.to_dict()})
