"""Pydantic models for the Advocate / Critic / Writer committee."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

ConnectionStrength = Literal["strong", "moderate", "inferred", "transferable"]
Priority = Literal["high", "medium", "low"]
ChallengeType = Literal[
    "overclaim", "unsupported", "missing", "weak_evidence", "terminology_gap", "blandification"
]
Severity = Literal["critical", "major", "minor"]


def _coerce_score(value) -> float:
    """Clamp a model-reported score into [0, 1]; percentages are rescaled."""
    if isinstance(value, bool) or value is None:
        raise ValueError("fit score must be a number")
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    score = float(value)
    if 1.0 < score <= 100.0:
        score /= 100.0
    return min(1.0, max(0.0, score))


def _coerce_choice(value, allowed: tuple[str, ...], default: str, field_name: str) -> str:
    label = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    if label in allowed:
        return label
    logger.warning("Unexpected %s %r, using %r", field_name, value, default)
    return default


class Connection(BaseModel):
    job_requirement: str
    resume_evidence: str = ""
    connection_strength: ConnectionStrength = "moderate"
    confidence: float = 0.5
    reasoning: str = ""
    suggested_framing: str | None = None

    @field_validator("connection_strength", mode="before")
    @classmethod
    def _strength(cls, v):
        return _coerce_choice(
            v, ("strong", "moderate", "inferred", "transferable"), "moderate", "connection_strength"
        )

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, v):
        try:
            return _coerce_score(v)
        except (TypeError, ValueError):
            return 0.5


class ReframingOpportunity(BaseModel):
    current_content: str
    suggested_reframe: str
    job_requirement_addressed: str = ""
    rationale: str = ""
    priority: Priority = "medium"

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v):
        return _coerce_choice(v, ("high", "medium", "low"), "medium", "priority")


class TerminologyAlignment(BaseModel):
    resume_term: str
    job_term: str
    context: str = ""


class AdvocateAnalysis(BaseModel):
    fit_score: float
    assessment: str = ""
    connections: list[Connection] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    reframing_opportunities: list[ReframingOpportunity] = Field(default_factory=list)
    terminology_alignments: list[TerminologyAlignment] = Field(default_factory=list)
    claimed_qualifications: list[str] = Field(default_factory=list)

    @field_validator("fit_score", mode="before")
    @classmethod
    def _score(cls, v):
        return _coerce_score(v)


class Challenge(BaseModel):
    type: ChallengeType = "unsupported"
    claim: str = ""
    issue: str
    evidence: str | None = None
    severity: Severity = "minor"
    can_be_addressed: bool = True
    suggested_fix: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v):
        return _coerce_choice(
            v,
            ("overclaim", "unsupported", "missing", "weak_evidence", "terminology_gap", "blandification"),
            "unsupported",
            "challenge type",
        )

    @field_validator("severity", mode="before")
    @classmethod
    def _severity(cls, v):
        return _coerce_choice(v, ("critical", "major", "minor"), "minor", "severity")

    @property
    def is_blocking(self) -> bool:
        return self.severity in ("critical", "major")


class GenuineGap(BaseModel):
    requirement: str
    reason: str = ""
    is_required: bool = False


class CriticAnalysis(BaseModel):
    fit_score: float
    assessment: str = ""
    agreements: list[str] = Field(default_factory=list)
    challenges: list[Challenge] = Field(default_factory=list)
    validated_strengths: list[str] = Field(default_factory=list)
    genuine_gaps: list[GenuineGap] = Field(default_factory=list)
    overclaim_corrections: list[str] = Field(default_factory=list)
    blocking_issues: list[str] = Field(default_factory=list)

    @field_validator("fit_score", mode="before")
    @classmethod
    def _score(cls, v):
        return _coerce_score(v)


class WriterOutput(BaseModel):
    rewritten_content: str
    changes_applied: list[str] = Field(default_factory=list)
    sections_modified: list[str] = Field(default_factory=list)
    advocate_points_adopted: list[str] = Field(default_factory=list)
    critic_corrections_applied: list[str] = Field(default_factory=list)
    issues_not_addressed: list[str] = Field(default_factory=list)
    keywords_added: list[str] = Field(default_factory=list)

    @field_validator("rewritten_content")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("rewritten_content is empty")
        return v


class ConsensusState(BaseModel):
    advocate_score: float
    critic_score: float
    score_delta: float
    is_consensus: bool
    round: int


class CommitteeRound(BaseModel):
    round: int
    advocate: AdvocateAnalysis
    critic: CriticAnalysis
    writer: WriterOutput
    consensus: ConsensusState
    improvement: float | None = None  # None on round 1


class TerminationReason(str, Enum):
    CONSENSUS = "consensus"
    TARGET_REACHED = "target_reached"
    MAX_ROUNDS = "max_rounds"
    NO_IMPROVEMENT = "no_improvement"


class DialogueSummary(BaseModel):
    connections_found: int = 0
    challenges_raised: int = 0
    challenges_addressable: int = 0
    genuine_gaps: list[str] = Field(default_factory=list)
    changes_applied: int = 0


class CommitteeResult(BaseModel):
    rounds: list[CommitteeRound]
    initial_fit: float
    final_fit: float
    improvement: float
    termination_reason: TerminationReason
    final_resume: str
    fit_history: list[float] = Field(default_factory=list)
    dialogue_summary: DialogueSummary = Field(default_factory=DialogueSummary)

    @property
    def round_count(self) -> int:
        return len(self.rounds)
