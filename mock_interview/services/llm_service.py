from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import anyio
import google.generativeai as genai
from groq import Groq
from pydantic import ValidationError

from mock_interview.config import settings
from mock_interview.schemas import CandidateIn, FinalSummaryOut, GradeAnswerOut, Question
from mock_interview.utils.json_salvage import extract_json


logger = logging.getLogger(__name__)


QUESTIONS_PROMPT = (
	"You are an AI interview assistant.\n"
	"Generate 6 technical interview questions for a {role} role\n"
	"with skills in {stack}.\n"
	"Rules:\n"
	"- First 2 questions: Easy\n"
	"- Next 2 questions: Medium\n"
	"- Last 2 questions: Hard\n"
	"- Return output strictly as JSON array of objects:\n"
	"  [{{\"id\":\"q1\",\"difficulty\":\"easy\",\"text\":\"...\"}}, ...]\n"
)

GRADING_PROMPT = (
	"You are an AI interview evaluator.\n"
	"Evaluate the candidate's answer.\n"
	"Provide:\n"
	"- A numeric score between 0 and 10\n"
	"- A short feedback sentence (max 2 lines)\n\n"
	"Question: {question}\n"
	"Candidate Answer: {answer}\n\n"
	"Return strict JSON:\n"
	"{{ \"score\": number, \"feedback\": \"...\" }}\n"
)

SUMMARY_PROMPT = (
	"You are an AI interviewer. Create a final evaluation summary.\n"
	"Candidate Name: {name}\n"
	"Email: {email}\n"
	"Phone: {phone}\n\n"
	"Answers (JSON):\n"
	"{answers}\n\n"
	"Task:\n"
	"- Calculate a final score as percentage (0-100).\n"
	"- Write a concise 3-4 sentence summary.\n\n"
	"Return strict JSON:\n"
	"{{ \"finalScorePercent\": number, \"summary\": \"...\" }}\n"
)


class LLMServiceError(RuntimeError):
	"""Model call failed or its reply could not be turned into the expected JSON."""


class LLMService:
	def __init__(self) -> None:
		self._client: Groq | None = None

	def _ensure_client(self):
		provider = (settings.llm_provider or "gemini").lower()
		if provider == "groq":
			api_key = settings.groq_api_key
			if not api_key:
				self._client = None
				return None
			if self._client is None or not isinstance(self._client, Groq):
				self._client = Groq(api_key=api_key)
			return self._client
		elif provider == "gemini":
			api_key = settings.gemini_api_key
			if not api_key:
				return None
			# For gemini we return a configured module handle to keep usage simple
			genai.configure(api_key=api_key)
			return genai
		else:
			return None

	@property
	def enabled(self) -> bool:
		provider = (settings.llm_provider or "gemini").lower()
		if provider == "groq":
			return bool(settings.groq_api_key)
		if provider == "gemini":
			return bool(settings.gemini_api_key)
		return False

	async def _complete(self, prompt: str) -> str:
		"""Send one prompt to the configured provider and return the raw reply text."""
		client = self._ensure_client()
		if client is None:
			raise LLMServiceError(f"LLM provider '{settings.llm_provider}' is not configured")

		provider = (settings.llm_provider or "gemini").lower()

		def _call() -> str:
			if provider == "groq":
				resp = client.chat.completions.create(
					model=settings.groq_model,
					messages=[{"role": "user", "content": prompt}],
					temperature=settings.llm_temperature,
					max_tokens=settings.llm_max_tokens,
				)
				return resp.choices[0].message.content or ""
			gmodel = client.GenerativeModel(settings.gemini_model)
			resp = gmodel.generate_content(
				prompt,
				generation_config={
					"temperature": settings.llm_temperature,
					"max_output_tokens": settings.llm_max_tokens,
				},
			)
			return getattr(resp, "text", None) or (resp.candidates[0].content.parts[0].text if getattr(resp, "candidates", None) else "")

		try:
			return await anyio.to_thread.run_sync(_call)
		except Exception as exc:
			logger.error("%s call failed: %s", provider, exc)
			raise LLMServiceError(f"{provider} call failed") from exc

	async def _complete_json(self, prompt: str, what: str) -> Any:
		raw = await self._complete(prompt)
		data = extract_json(raw)
		if data is None:
			raise LLMServiceError(f"Failed to parse AI {what} output")
		return data

	async def generate_questions(self, role: str, stack: List[str]) -> List[Question]:
		prompt = QUESTIONS_PROMPT.format(role=role, stack=", ".join(stack))
		data = await self._complete_json(prompt, "questions")
		# Some replies wrap the array as {"questions": [...]}
		if isinstance(data, dict) and isinstance(data.get("questions"), list):
			data = data["questions"]
		if not isinstance(data, list):
			raise LLMServiceError("AI questions output is not a list")
		try:
			return [Question.model_validate(item) for item in data]
		except ValidationError as exc:
			raise LLMServiceError("AI questions output has malformed items") from exc

	async def grade_answer(self, question: str, answer: str) -> GradeAnswerOut:
		prompt = GRADING_PROMPT.format(question=question, answer=answer)
		data = await self._complete_json(prompt, "grading")
		try:
			return GradeAnswerOut.model_validate(data)
		except ValidationError as exc:
			raise LLMServiceError("AI grading output is missing score or feedback") from exc

	async def summarize(self, candidate: CandidateIn) -> FinalSummaryOut:
		prompt = SUMMARY_PROMPT.format(
			name=candidate.name or "Unknown",
			email=candidate.email or "Unknown",
			phone=candidate.phone or "Unknown",
			answers=json.dumps(candidate.answers, indent=2, ensure_ascii=False),
		)
		data = await self._complete_json(prompt, "final summary")
		try:
			return FinalSummaryOut.model_validate(data)
		except ValidationError as exc:
			raise LLMServiceError("AI final summary output is missing finalScorePercent") from exc


llm_service = LLMService()
