from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional


Difficulty = Literal["easy", "medium", "hard"]


class CamelModel(BaseModel):
	"""Wire models use camelCase keys; Python code uses snake_case attributes."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ParsedResume(BaseModel):
	name: Optional[str] = None
	email: Optional[str] = None
	phone: Optional[str] = None
	text: str = ""


class Question(CamelModel):
	id: str = Field(..., min_length=1)
	difficulty: Difficulty
	text: str = Field(..., min_length=1)

	@field_validator("id", mode="before")
	@classmethod
	def coerce_id(cls, v):
		# Models sometimes emit numeric ids
		return str(v) if isinstance(v, int) else v

	@field_validator("difficulty", mode="before")
	@classmethod
	def normalize_difficulty(cls, v):
		return v.strip().lower() if isinstance(v, str) else v


class GenerateQuestionsIn(CamelModel):
	role: Optional[str] = Field(default=None, description="Target role; defaults to settings.default_role")
	stack: Optional[List[str]] = Field(default=None, description="Skills to cover; defaults to settings.default_stack")


class GenerateQuestionsOut(CamelModel):
	questions: List[Question]


class GradeAnswerIn(CamelModel):
	question: str = Field(..., min_length=1)
	answer: str = Field(..., min_length=1)

	@field_validator("question", "answer")
	@classmethod
	def not_blank(cls, v: str) -> str:
		if not v.strip():
			raise ValueError("must not be blank")
		return v


class GradeAnswerOut(CamelModel):
	score: float
	feedback: str = ""

	@field_validator("score")
	@classmethod
	def clamp_score(cls, v: float) -> float:
		return max(0.0, min(10.0, v))


class CandidateIn(CamelModel):
	"""Candidate snapshot sent for the final summary.

	Only ``answers`` is required; other client-side fields ride along and are ignored.
	"""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

	name: Optional[str] = None
	email: Optional[str] = None
	phone: Optional[str] = None
	answers: List[Dict[str, Any]]


class FinalSummaryIn(CamelModel):
	candidate: CandidateIn


class FinalSummaryOut(CamelModel):
	final_score_percent: float
	summary: str = ""

	@field_validator("final_score_percent")
	@classmethod
	def clamp_percent(cls, v: float) -> float:
		return max(0.0, min(100.0, v))
