from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


DIFFICULTY_SECONDS: Dict[str, int] = {"easy": 20, "medium": 60, "hard": 120}
QUESTIONS_PER_INTERVIEW = 6
AUTO_SUBMIT_SENTINEL = "[AUTO SUBMITTED]"


def time_budget(difficulty: str) -> int:
	return DIFFICULTY_SECONDS[difficulty]


@dataclass(frozen=True)
class Question:
	id: str
	difficulty: str
	text: str

	@property
	def budget_seconds(self) -> int:
		return time_budget(self.difficulty)

	def to_dict(self) -> Dict[str, Any]:
		return {"id": self.id, "difficulty": self.difficulty, "text": self.text}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Question":
		return cls(id=str(data["id"]), difficulty=data["difficulty"], text=data["text"])


@dataclass(frozen=True)
class Answer:
	question_id: str
	question_text: str
	difficulty: str
	response_text: str
	time_taken_seconds: int
	auto_submitted: bool = False
	score: Optional[float] = None
	feedback: Optional[str] = None

	def to_dict(self) -> Dict[str, Any]:
		return {
			"questionId": self.question_id,
			"questionText": self.question_text,
			"difficulty": self.difficulty,
			"responseText": self.response_text,
			"timeTakenSeconds": self.time_taken_seconds,
			"autoSubmitted": self.auto_submitted,
			"score": self.score,
			"feedback": self.feedback,
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Answer":
		return cls(
			question_id=str(data["questionId"]),
			question_text=data.get("questionText", ""),
			difficulty=data.get("difficulty", "easy"),
			response_text=data.get("responseText", ""),
			time_taken_seconds=int(data.get("timeTakenSeconds", 0)),
			auto_submitted=bool(data.get("autoSubmitted", False)),
			score=data.get("score"),
			feedback=data.get("feedback"),
		)


@dataclass(frozen=True)
class TimerState:
	"""Countdown snapshot: ``remaining`` seconds as of ``last_updated`` (epoch ms)."""

	question_index: int
	remaining: int
	last_updated: int

	def remaining_at(self, now_ms: int, paused: bool = False) -> int:
		if paused:
			return max(0, self.remaining)
		elapsed = (now_ms - self.last_updated) // 1000
		return max(0, self.remaining - max(0, elapsed))

	def to_dict(self) -> Dict[str, Any]:
		return {"questionIndex": self.question_index, "remaining": self.remaining, "lastUpdated": self.last_updated}

	@classmethod
	def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["TimerState"]:
		if not data or data.get("remaining") is None:
			return None
		return cls(
			question_index=int(data.get("questionIndex", 0)),
			remaining=int(data["remaining"]),
			last_updated=int(data.get("lastUpdated", 0)),
		)


@dataclass(frozen=True)
class Candidate:
	id: str
	name: str = ""
	email: str = ""
	phone: str = ""
	resume_text: str = ""
	created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
	current_index: int = 0
	answers: Tuple[Answer, ...] = ()
	final_score: Optional[float] = None
	summary: Optional[str] = None
	timer: Optional[TimerState] = None
	paused: bool = False
	questions_length: int = 0
	questions: Tuple[Question, ...] = ()

	@property
	def is_complete(self) -> bool:
		return self.final_score is not None

	@property
	def is_unfinished(self) -> bool:
		return len(self.answers) < self.questions_length and self.final_score is None

	def missing_fields(self) -> Tuple[str, ...]:
		return tuple(name for name in ("name", "email", "phone") if not getattr(self, name))

	def with_changes(self, **changes: Any) -> "Candidate":
		return replace(self, **changes)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"name": self.name,
			"email": self.email,
			"phone": self.phone,
			"resumeText": self.resume_text,
			"createdAt": self.created_at,
			"currentIndex": self.current_index,
			"answers": [a.to_dict() for a in self.answers],
			"finalScore": self.final_score,
			"summary": self.summary,
			"timer": self.timer.to_dict() if self.timer else None,
			"paused": self.paused,
			"questionsLength": self.questions_length,
			"questions": [q.to_dict() for q in self.questions],
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Candidate":
		return cls(
			id=str(data["id"]),
			name=data.get("name") or "",
			email=data.get("email") or "",
			phone=data.get("phone") or "",
			resume_text=data.get("resumeText") or "",
			created_at=data.get("createdAt") or datetime.now(timezone.utc).isoformat(),
			current_index=int(data.get("currentIndex") or 0),
			answers=tuple(Answer.from_dict(a) for a in data.get("answers") or []),
			final_score=data.get("finalScore"),
			summary=data.get("summary"),
			timer=TimerState.from_dict(data.get("timer")),
			paused=bool(data.get("paused", False)),
			questions_length=int(data.get("questionsLength") or 0),
			questions=tuple(Question.from_dict(q) for q in data.get("questions") or []),
		)
