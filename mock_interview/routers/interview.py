from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from mock_interview.config import settings
from mock_interview.schemas import (
	FinalSummaryIn,
	FinalSummaryOut,
	GenerateQuestionsIn,
	GenerateQuestionsOut,
	GradeAnswerIn,
	GradeAnswerOut,
)
from mock_interview.services.llm_service import LLMServiceError, llm_service
from mock_interview.utils.audit import auditor
from mock_interview.utils.security import verify_api_key


router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.post("/generate-questions", response_model=GenerateQuestionsOut)
async def generate_questions(payload: GenerateQuestionsIn | None = None):
	payload = payload or GenerateQuestionsIn()
	role = (payload.role or "").strip() or settings.default_role
	stack = [s for s in (payload.stack or []) if s.strip()] or list(settings.default_stack)

	try:
		questions = await llm_service.generate_questions(role, stack)
	except LLMServiceError as e:
		await auditor.log("llm_error", operation="generate_questions", error=str(e))
		raise HTTPException(status_code=500, detail=str(e))

	await auditor.log("questions_generated", role=role, stack=stack, count=len(questions))
	return GenerateQuestionsOut(questions=questions)


@router.post("/grade-answer", response_model=GradeAnswerOut)
async def grade_answer(payload: GradeAnswerIn):
	try:
		grading = await llm_service.grade_answer(payload.question, payload.answer)
	except LLMServiceError as e:
		await auditor.log("llm_error", operation="grade_answer", error=str(e))
		raise HTTPException(status_code=500, detail=str(e))

	await auditor.log("answer_graded", question=payload.question, score=grading.score)
	return grading


@router.post("/final-summary", response_model=FinalSummaryOut)
async def final_summary(payload: FinalSummaryIn):
	candidate = payload.candidate
	try:
		result = await llm_service.summarize(candidate)
	except LLMServiceError as e:
		await auditor.log("llm_error", operation="final_summary", error=str(e))
		raise HTTPException(status_code=500, detail=str(e))

	await auditor.log(
		"final_summary",
		candidate=candidate.name,
		answers=len(candidate.answers),
		final_score_percent=result.final_score_percent,
	)
	return result
