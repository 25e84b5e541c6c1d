"""Terminal front end for a mock interview.

Usage: python -m mock_interview.client.console [RESUME] [--role ROLE] [--stack A,B]
       python -m mock_interview.client.console --list
       python -m mock_interview.client.console --open CANDIDATE_ID

The countdown runs while an answer is being typed. When it expires the
question is auto-submitted and a line entered afterwards is discarded.
Enter ``:pause`` to pause the clock.
"""
from __future__ import annotations

import argparse
import logging
from functools import partial
from typing import List, Optional

import anyio

from mock_interview.client.api import ApiError, InterviewApiClient, InvalidQuestionSetError
from mock_interview.client.controller import InterviewController, SessionPhase, SubmissionRejected
from mock_interview.client.models import Candidate
from mock_interview.client.store import CandidateStore
from mock_interview.config import settings
from mock_interview.utils.logging import configure_logging


logger = logging.getLogger(__name__)

LATE_ANSWER_NOTICE = "Time ran out before you answered; the question was auto-submitted and your late answer was discarded."


async def _ask(prompt: str) -> str:
	return await anyio.to_thread.run_sync(input, prompt)


def list_sessions(store: CandidateStore) -> int:
	"""Print every stored candidate, newest first."""
	candidates = store.all()
	if not candidates:
		print("No candidates yet")
		return 0
	for c in reversed(candidates):
		status = f"Score: {c.final_score}%" if c.is_complete else "In progress"
		action = "view" if c.is_complete else "resume"
		print(f"{c.id}  {c.name or 'Untitled Candidate'}  <{c.email or 'No email'}>  {status}  (--open {c.id} to {action})")
	return 0


def print_summary(candidate: Candidate) -> None:
	print("\nInterview Summary")
	for i, a in enumerate(candidate.answers, start=1):
		score = "ungraded" if a.score is None else f"{a.score}/10"
		flag = " (auto-submitted)" if a.auto_submitted else ""
		print(f"  Q{i} [{a.difficulty}] {score}{flag}: {a.question_text}")
	print(f"Score: {candidate.final_score}%\n{candidate.summary}")


async def _fill_missing(controller: InterviewController, candidate_id: str, missing) -> None:
	print("Please complete your profile to begin.")
	fields = {}
	for name in missing:
		value = ""
		while not value.strip():
			value = await _ask(f"  {name.capitalize()}: ")
		fields[name] = value
	await controller.complete_profile(candidate_id, **fields)


async def _read_answer(controller: InterviewController, tick_interval: float) -> Optional[str]:
	"""Prompt for an answer with the countdown running; None if time ran out first."""
	index = controller.current_index
	async with anyio.create_task_group() as tg:
		tg.start_soon(partial(controller.countdown, tick_interval, question_only=True))
		text = await _ask("> ")
		if controller.phase is SessionPhase.ANSWERING and controller.current_index == index:
			tg.cancel_scope.cancel()
		# otherwise an auto-submit is in flight; let it finish grading
	if controller.current_index != index:
		return None
	return text


def _report_last(controller: InterviewController) -> None:
	cand = controller.active
	if cand is None or not cand.answers:
		return
	last = cand.answers[-1]
	if last.score is None:
		print("Answer recorded (grading unavailable).")
	else:
		print(f"Score: {last.score}/10 - {last.feedback}")


async def _answer_questions(controller: InterviewController, tick_interval: float = 1.0) -> None:
	while controller.phase is SessionPhase.ANSWERING:
		question = controller.current_question
		total = len(controller.questions)
		print(f"\nQuestion {controller.current_index + 1} / {total} [{question.difficulty.upper()}] ({controller.remaining()}s)")
		print(question.text)
		text = await _read_answer(controller, tick_interval)

		if text is None:
			print(LATE_ANSWER_NOTICE)
			_report_last(controller)
			continue

		if text.strip() == ":pause":
			controller.pause()
			await _ask("Interview paused. Press Enter to resume.")
			controller.resume()
			continue

		if controller.remaining() <= 0:
			# expired between the last tick and the Enter key
			controller.draft = ""
			await controller.tick()
			print(LATE_ANSWER_NOTICE)
		else:
			try:
				await controller.submit(text)
			except SubmissionRejected as exc:
				print(f"Not submitted: {exc}")
				continue
		_report_last(controller)


async def run_session(
	controller: InterviewController,
	resume_path: Optional[str] = None,
	open_id: Optional[str] = None,
	tick_interval: float = 1.0,
) -> int:
	"""Start, resume or view one interview; returns the process exit code."""
	store = controller.store
	candidate_id = None
	try:
		if open_id is not None:
			if store.get(open_id) is None:
				print(f"No candidate with id {open_id}.")
				return 1
			await controller.open_candidate(open_id)
		else:
			offer = controller.resume_offer()
			if offer is not None:
				reply = await _ask(f"Welcome back{', ' + offer.name if offer.name else ''}! Resume your unfinished interview? [Y/n] ")
				if reply.strip().lower() in ("", "y", "yes"):
					await controller.open_candidate(offer.id)

		if controller.active_id is None:
			if not resume_path:
				print("No active interview. Pass a PDF or DOCX resume to start one.")
				return 1
			candidate, missing = await controller.upload_resume(resume_path)
			if missing:
				await _fill_missing(controller, candidate.id, missing)

		await _answer_questions(controller, tick_interval)
	except (ApiError, InvalidQuestionSetError) as exc:
		logger.error("Interview aborted: %s", exc)
		return 1
	finally:
		candidate_id = controller.active_id
		controller.close()

	final = store.get(candidate_id) if candidate_id else None
	if final is not None and final.is_complete:
		print_summary(final)
		return 0
	print("\nInterview finished but the summary is not available.")
	return 1


async def run(
	resume_path: Optional[str],
	role: Optional[str],
	stack: Optional[List[str]],
	open_id: Optional[str] = None,
) -> int:
	store = CandidateStore(settings.store_path)
	async with InterviewApiClient(api_key=settings.api_key) as api:
		controller = InterviewController(store, api, role=role, stack=stack)
		return await run_session(controller, resume_path, open_id)


def main(argv: Optional[List[str]] = None) -> int:
	parser = argparse.ArgumentParser(description="Take a timed, AI-graded mock interview.")
	parser.add_argument("resume", nargs="?", help="PDF or DOCX resume to start a new interview")
	parser.add_argument("--role", default=None, help="Role the questions should target")
	parser.add_argument("--stack", default=None, help="Comma separated skills, e.g. React,Node.js")
	parser.add_argument("--list", action="store_true", help="List past sessions, newest first")
	parser.add_argument("--open", dest="open_id", default=None, metavar="ID", help="View a completed session or resume an unfinished one")
	args = parser.parse_args(argv)

	configure_logging()
	if args.list:
		return list_sessions(CandidateStore(settings.store_path))
	stack = [s.strip() for s in args.stack.split(",") if s.strip()] if args.stack else None
	return anyio.run(run, args.resume, args.role, stack, args.open_id)


if __name__ == "__main__":
	raise SystemExit(main())
