from __future__ import annotations

import logging
import time
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import anyio

from mock_interview.client.api import ApiError, InterviewApiClient
from mock_interview.client.models import (
	AUTO_SUBMIT_SENTINEL,
	Answer,
	Candidate,
	Question,
	TimerState,
)
from mock_interview.client.store import CandidateStore


logger = logging.getLogger(__name__)


def _now_ms() -> int:
	return int(time.time() * 1000)


class SessionPhase(str, Enum):
	NOT_STARTED = "not_started"
	ANSWERING = "answering"
	GRADING = "grading"
	SUMMARIZING = "summarizing"
	COMPLETED = "completed"
	# every answer recorded but the final summary never arrived
	INCOMPLETE = "incomplete"


class SubmissionRejected(ValueError):
	"""A manual submit that is empty, paused, out of time or out of turn."""


class InterviewController:
	"""Drives one candidate at a time through the six timed questions.

	Remaining time is never counted down in memory. The candidate's stored
	``TimerState`` holds the seconds left as of a timestamp, and every read
	recomputes ``max(0, remaining - elapsed)`` from the clock. ``tick()``
	persists that value and auto-submits once it reaches zero; ``countdown()``
	calls ``tick()`` once per second for interactive front ends.
	"""

	def __init__(
		self,
		store: CandidateStore,
		api: InterviewApiClient,
		*,
		clock: Optional[Callable[[], int]] = None,
		role: Optional[str] = None,
		stack: Optional[List[str]] = None,
	) -> None:
		self.store = store
		self.api = api
		self.role = role
		self.stack = stack
		self._clock = clock or _now_ms
		self.active_id: Optional[str] = None
		self.current_index = 0
		self.phase = SessionPhase.NOT_STARTED
		# text typed so far for the current question; used if time runs out
		self.draft = ""
		self._closed = False
		self._generation = 0
		self._resume_offered = False
		self._countdown_scope: Optional[anyio.CancelScope] = None

	# ---- views -----------------------------------------------------------

	@property
	def active(self) -> Optional[Candidate]:
		return self.store.get(self.active_id) if self.active_id else None

	@property
	def questions(self) -> Tuple[Question, ...]:
		cand = self.active
		return cand.questions if cand else ()

	@property
	def current_question(self) -> Optional[Question]:
		qs = self.questions
		if self.phase is SessionPhase.NOT_STARTED or self.current_index >= len(qs):
			return None
		return qs[self.current_index]

	@property
	def paused(self) -> bool:
		cand = self.active
		return bool(cand and cand.paused)

	def remaining(self) -> int:
		"""Seconds left on the current question, recomputed from the stored timer."""
		cand = self.active
		question = self.current_question
		if cand is None or question is None:
			return 0
		timer = cand.timer
		if timer is None or timer.question_index != self.current_index:
			return question.budget_seconds
		return timer.remaining_at(self._clock(), cand.paused)

	def resume_offer(self) -> Optional[Candidate]:
		"""Unfinished candidate to offer on startup; answers at most once per controller."""
		if self._resume_offered or self.active_id is not None:
			return None
		self._resume_offered = True
		return self.store.find_unfinished()

	# ---- candidate lifecycle ------------------------------------------------

	def _new_candidate_id(self) -> str:
		base = f"c{self._clock()}"
		candidate_id, n = base, 1
		while self.store.get(candidate_id) is not None:
			candidate_id = f"{base}-{n}"
			n += 1
		return candidate_id

	async def upload_resume(self, path: str | Path) -> Tuple[Candidate, Tuple[str, ...]]:
		"""Parse a resume and create its candidate.

		Returns the candidate and the contact fields that could not be
		extracted. With nothing missing the interview starts right away;
		otherwise the caller collects the fields and calls ``complete_profile``.
		"""
		path = Path(path)
		data = await self.api.parse_resume(path)
		candidate = Candidate(
			id=self._new_candidate_id(),
			name=data.get("name") or "",
			email=data.get("email") or "",
			phone=data.get("phone") or "",
			resume_text=path.name,
		)
		self.store.add(candidate)
		missing = candidate.missing_fields()
		logger.info("Created candidate %s from %s (missing: %s)", candidate.id, path.name, ", ".join(missing) or "none")

		self.active_id = candidate.id
		self.phase = SessionPhase.NOT_STARTED
		if not missing:
			candidate = await self.open_candidate(candidate.id)
		return candidate, missing

	async def complete_profile(self, candidate_id: str, *, name: Optional[str] = None, email: Optional[str] = None, phone: Optional[str] = None) -> Candidate:
		changes = {k: v.strip() for k, v in (("name", name), ("email", email), ("phone", phone)) if v is not None}
		if changes:
			self.store.update(candidate_id, changes)
		return await self.open_candidate(candidate_id)

	async def open_candidate(self, candidate_id: str) -> Candidate:
		"""Make a candidate active, fetching questions on first open and restoring its timer."""
		self.cancel_countdown()
		self._generation += 1
		generation = self._generation
		cand = self.store.get_required(candidate_id)

		if not cand.questions:
			questions = await self.api.generate_questions(self.role, self.stack)
			if self._is_stale(generation):
				return cand
			cand = self.store.update(candidate_id, {"questions": tuple(questions), "questions_length": len(questions)})

		self.active_id = candidate_id
		self.draft = ""
		total = len(cand.questions)

		if cand.is_complete:
			self.current_index = total
			self.phase = SessionPhase.COMPLETED
			return cand
		if len(cand.answers) >= total:
			self.current_index = total
			self.phase = SessionPhase.INCOMPLETE
			return cand

		index = max(cand.current_index, len(cand.answers))
		question = cand.questions[index]
		now = self._clock()
		remaining = question.budget_seconds
		if cand.timer is not None and cand.timer.question_index == index:
			# paused time does not count, running time does
			remaining = cand.timer.remaining_at(now, cand.paused)

		self.current_index = index
		self.phase = SessionPhase.ANSWERING
		return self.store.update(candidate_id, {
			"current_index": index,
			"timer": TimerState(index, remaining, now),
			"paused": False,
		})

	def close_interview(self) -> None:
		"""Detach from the active candidate without touching its record."""
		self.cancel_countdown()
		self._generation += 1
		self.active_id = None
		self.current_index = 0
		self.phase = SessionPhase.NOT_STARTED
		self.draft = ""

	def close(self) -> None:
		"""Tear down: stop the countdown and drop results of in-flight requests."""
		self._closed = True
		self.close_interview()

	def _is_stale(self, generation: int) -> bool:
		return self._closed or generation != self._generation

	# ---- timer -------------------------------------------------------------

	def pause(self) -> bool:
		cand = self.active
		if cand is None or cand.paused or self.phase is not SessionPhase.ANSWERING:
			return False
		self.cancel_countdown()
		remaining = self.remaining()
		self.store.update(cand.id, {
			"paused": True,
			"timer": TimerState(self.current_index, remaining, self._clock()),
		})
		logger.info("Interview paused for %s with %ss left", cand.id, remaining)
		return True

	def resume(self) -> bool:
		cand = self.active
		if cand is None or not cand.paused:
			return False
		remaining = self.remaining()
		self.store.update(cand.id, {
			"paused": False,
			"timer": TimerState(self.current_index, remaining, self._clock()),
		})
		logger.info("Interview resumed for %s with %ss left", cand.id, remaining)
		return True

	async def tick(self) -> int:
		"""Persist the current remaining time; auto-submit when it hits zero."""
		cand = self.active
		if cand is None or cand.paused or self.phase is not SessionPhase.ANSWERING:
			return self.remaining()

		now = self._clock()
		timer = cand.timer
		if timer is None or timer.question_index != self.current_index:
			timer = TimerState(self.current_index, self.remaining(), now)
		else:
			# carry the sub-second remainder so frequent ticks never lose time
			elapsed = max(0, (now - timer.last_updated) // 1000)
			timer = TimerState(self.current_index, max(0, timer.remaining - elapsed), timer.last_updated + elapsed * 1000)
		self.store.update(cand.id, {"timer": timer})

		if timer.remaining <= 0:
			response = self.draft if self.draft.strip() else AUTO_SUBMIT_SENTINEL
			logger.info("Time is up on question %s for %s; auto-submitting", self.current_index + 1, cand.id)
			await self._record_and_advance(response, auto=True, remaining=0)
		return timer.remaining

	def cancel_countdown(self) -> None:
		if self._countdown_scope is not None:
			self._countdown_scope.cancel()
			self._countdown_scope = None

	async def countdown(self, interval: float = 1.0, *, question_only: bool = False) -> None:
		"""Tick once per ``interval`` until paused, finished or cancelled.

		Starting a countdown cancels any previous one, so at most one runs.
		With ``question_only`` the loop also stops once the question it
		started on has been answered or auto-submitted.
		"""
		self.cancel_countdown()
		start_index = self.current_index
		with anyio.CancelScope() as scope:
			self._countdown_scope = scope
			try:
				while not self._closed:
					await anyio.sleep(interval)
					if self.phase in (SessionPhase.GRADING, SessionPhase.SUMMARIZING):
						continue
					if self.phase is not SessionPhase.ANSWERING or self.paused:
						break
					if question_only and self.current_index != start_index:
						break
					await self.tick()
					if question_only and self.current_index != start_index:
						break
			finally:
				if self._countdown_scope is scope:
					self._countdown_scope = None

	# ---- answers -------------------------------------------------------------

	async def submit(self, text: str) -> Answer:
		cand = self.active
		if cand is None or self.phase is not SessionPhase.ANSWERING:
			raise SubmissionRejected("No question is waiting for an answer")
		if cand.paused:
			raise SubmissionRejected("Interview is paused")
		if not text.strip():
			raise SubmissionRejected("Answer is empty")
		remaining = self.remaining()
		if remaining <= 0:
			raise SubmissionRejected("Time is up for this question")
		return await self._record_and_advance(text, auto=False, remaining=remaining)

	async def _record_and_advance(self, response_text: str, *, auto: bool, remaining: int) -> Answer:
		generation = self._generation
		cand = self.active
		index = self.current_index
		question = cand.questions[index]
		answer = Answer(
			question_id=question.id,
			question_text=question.text,
			difficulty=question.difficulty,
			response_text=response_text,
			time_taken_seconds=question.budget_seconds - remaining,
			auto_submitted=auto,
		)
		self.phase = SessionPhase.GRADING
		self.draft = ""
		cand = self.store.update(cand.id, lambda c: c.with_changes(
			answers=c.answers + (answer,),
			current_index=index + 1,
			timer=None,
		))

		answer = await self._grade(cand.id, index, answer)
		if self._is_stale(generation):
			return answer

		next_index = index + 1
		if next_index < len(cand.questions):
			self.current_index = next_index
			budget = cand.questions[next_index].budget_seconds
			self.store.update(cand.id, {
				"timer": TimerState(next_index, budget, self._clock()),
				"paused": False,
			})
			self.phase = SessionPhase.ANSWERING
		else:
			self.current_index = next_index
			await self._summarize(cand.id, generation)
		return answer

	async def _grade(self, candidate_id: str, index: int, answer: Answer) -> Answer:
		try:
			grade = await self.api.grade_answer(answer.question_text, answer.response_text)
		except ApiError as exc:
			# ungraded answers keep score/feedback as None; the interview goes on
			logger.warning("Error grading answer %s for %s: %s", index + 1, candidate_id, exc)
			return answer
		if self._closed:
			return answer

		graded = replace(answer, score=grade.get("score"), feedback=grade.get("feedback"))

		def _apply(c: Candidate) -> Candidate:
			answers = list(c.answers)
			if index < len(answers) and answers[index].question_id == answer.question_id:
				answers[index] = graded
			return c.with_changes(answers=tuple(answers))

		self.store.update(candidate_id, _apply)
		return graded

	async def _summarize(self, candidate_id: str, generation: int) -> None:
		self.phase = SessionPhase.SUMMARIZING
		latest = self.store.get_required(candidate_id)
		try:
			result = await self.api.final_summary(latest)
		except ApiError as exc:
			logger.error("Interview finished but summary failed for %s: %s", candidate_id, exc)
			if not self._is_stale(generation):
				self.phase = SessionPhase.INCOMPLETE
			return
		if self._is_stale(generation):
			return

		final_score = result.get("finalScorePercent")
		self.store.update(candidate_id, {
			"final_score": final_score,
			"summary": result.get("summary"),
			"current_index": len(latest.questions),
		})
		self.phase = SessionPhase.COMPLETED if final_score is not None else SessionPhase.INCOMPLETE
		logger.info("Interview completed for %s with score %s", candidate_id, final_score)
