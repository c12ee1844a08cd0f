"""
Data model shared by the store and the orchestration components.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from .errors import ValidationError


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return datetime.now().isoformat()


class Mode(Enum):
    DIVE = "dive"
    TURN = "turn"
    WORK = "work"


class ResponseStatus(Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not ResponseStatus.PENDING


class VerificationStatus(Enum):
    NONE = "none"
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


TITLE_LENGTH = 50


def make_title(query: str) -> str:
    if len(query) > TITLE_LENGTH:
        return query[:TITLE_LENGTH] + "..."
    return query


@dataclass
class User:
    username: str
    id: str = field(default_factory=new_id)
    credentials: dict[str, str] = field(default_factory=dict)
    created_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "credentials": dict(self.credentials),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            username=data["username"],
            credentials=dict(data.get("credentials") or {}),
            created_at=data.get("created_at") or now_iso(),
        )


@dataclass
class VerificationResult:
    verifier: str
    accuracy_score: float
    factual_errors: list[str] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    overall_assessment: str = ""
    recommendations: list[str] = field(default_factory=list)
    verified_at: str = field(default_factory=now_iso)
    parse_failed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "verifier": self.verifier,
            "accuracy_score": self.accuracy_score,
            "factual_errors": list(self.factual_errors),
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "overall_assessment": self.overall_assessment,
            "recommendations": list(self.recommendations),
            "verified_at": self.verified_at,
            "parse_failed": self.parse_failed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VerificationResult":
        return cls(
            verifier=data["verifier"],
            accuracy_score=data.get("accuracy_score", 5),
            factual_errors=list(data.get("factual_errors") or []),
            strengths=list(data.get("strengths") or []),
            weaknesses=list(data.get("weaknesses") or []),
            overall_assessment=data.get("overall_assessment", ""),
            recommendations=list(data.get("recommendations") or []),
            verified_at=data.get("verified_at") or now_iso(),
            parse_failed=data.get("parse_failed", False),
        )


@dataclass
class Response:
    conversation_id: str
    provider: str
    id: str = field(default_factory=new_id)
    content: str = ""
    status: ResponseStatus = ResponseStatus.PENDING
    award: Optional[str] = None
    work_step: Optional[str] = None
    verification_status: VerificationStatus = VerificationStatus.NONE
    verification_results: list[VerificationResult] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=now_iso)

    @property
    def latest_verification(self) -> Optional[VerificationResult]:
        return self.verification_results[-1] if self.verification_results else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "provider": self.provider,
            "content": self.content,
            "status": self.status.value,
            "award": self.award,
            "work_step": self.work_step,
            "verification_status": self.verification_status.value,
            "verification_results": [v.to_dict() for v in self.verification_results],
            "metadata": dict(self.metadata),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Response":
        return cls(
            id=data["id"],
            conversation_id=data["conversation_id"],
            provider=data["provider"],
            content=data.get("content", ""),
            status=ResponseStatus(data.get("status", "pending")),
            award=data.get("award"),
            work_step=data.get("work_step"),
            verification_status=VerificationStatus(data.get("verification_status", "none")),
            verification_results=[
                VerificationResult.from_dict(v) for v in data.get("verification_results") or []
            ],
            metadata=dict(data.get("metadata") or {}),
            created_at=data.get("created_at") or now_iso(),
        )


@dataclass
class WorkflowStep:
    step: int
    provider: str
    objective: str
    prompt: str
    completed: bool = False
    output: str = ""
    completed_at: Optional[str] = None

    @property
    def label(self) -> str:
        return f"step-{self.step}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "provider": self.provider,
            "objective": self.objective,
            "prompt": self.prompt,
            "completed": self.completed,
            "output": self.output,
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkflowStep":
        return cls(
            step=data["step"],
            provider=data["provider"],
            objective=data.get("objective", ""),
            prompt=data.get("prompt", ""),
            completed=data.get("completed", False),
            output=data.get("output", ""),
            completed_at=data.get("completed_at"),
        )


@dataclass
class WorkflowState:
    original_query: str
    providers: list[str]
    steps: list[WorkflowStep]
    current_step: int = 0
    collaborative_doc: str = ""
    step_in_progress: bool = False
    started_at: str = field(default_factory=now_iso)

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def is_complete(self) -> bool:
        return self.current_step >= self.total_steps

    @property
    def completed_steps(self) -> list[WorkflowStep]:
        return [s for s in self.steps if s.completed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_query": self.original_query,
            "providers": list(self.providers),
            "steps": [s.to_dict() for s in self.steps],
            "current_step": self.current_step,
            "total_steps": self.total_steps,
            "collaborative_doc": self.collaborative_doc,
            "step_in_progress": self.step_in_progress,
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkflowState":
        return cls(
            original_query=data["original_query"],
            providers=list(data.get("providers") or []),
            steps=[WorkflowStep.from_dict(s) for s in data.get("steps") or []],
            current_step=data.get("current_step", 0),
            collaborative_doc=data.get("collaborative_doc", ""),
            step_in_progress=data.get("step_in_progress", False),
            started_at=data.get("started_at") or now_iso(),
        )


@dataclass
class Conversation:
    user_id: str
    query: str
    mode: Mode
    id: str = field(default_factory=new_id)
    title: str = ""
    workflow_state: Optional[WorkflowState] = None
    created_at: str = field(default_factory=now_iso)

    def __post_init__(self):
        if not self.title:
            self.title = make_title(self.query)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "query": self.query,
            "mode": self.mode.value,
            "workflow_state": self.workflow_state.to_dict() if self.workflow_state else None,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Conversation":
        state = data.get("workflow_state")
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            title=data.get("title", ""),
            query=data["query"],
            mode=Mode(data.get("mode", "dive")),
            workflow_state=WorkflowState.from_dict(state) if state else None,
            created_at=data.get("created_at") or now_iso(),
        )


@dataclass
class QueryRequest:
    """
    A submission from the outer layer.

    For dive and work, `selected_providers` are the providers to query.
    For turn, `response_id` names the response to critique and the first
    selected provider is the verifier.
    """

    query: str
    selected_providers: list[str]
    mode: Mode = Mode.DIVE
    conversation_id: Optional[str] = None
    response_id: Optional[str] = None

    def validate(self, known_providers: Iterable[str]) -> None:
        known = set(known_providers)

        if not isinstance(self.mode, Mode):
            try:
                self.mode = Mode(str(self.mode).lower())
            except ValueError:
                raise ValidationError(f"Unknown mode: {self.mode}")

        self.query = (self.query or "").strip()
        if self.mode != Mode.TURN and not self.query:
            raise ValidationError("Query is required")

        if not self.selected_providers:
            raise ValidationError("At least one provider must be selected")

        providers = [p.strip().lower() for p in self.selected_providers]
        unknown = [p for p in providers if p not in known]
        if unknown:
            raise ValidationError(f"Unknown provider: {', '.join(unknown)}")

        if len(set(providers)) != len(providers):
            raise ValidationError("Each provider may only be selected once")
        self.selected_providers = providers

        if self.mode == Mode.TURN and not self.response_id:
            raise ValidationError("Turn mode requires a response to verify")
