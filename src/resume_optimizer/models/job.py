"""Pydantic models for job postings and parsed requirements."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

RequirementType = Literal["skill", "experience", "education", "soft-skill", "domain-knowledge"]
Importance = Literal["must-have", "nice-to-have", "implicit"]

_TYPE_ALIASES = {
    "skill": "skill",
    "technical": "skill",
    "technical-skill": "skill",
    "tool": "skill",
    "experience": "experience",
    "responsibility": "experience",
    "education": "education",
    "degree": "education",
    "certification": "education",
    "soft-skill": "soft-skill",
    "soft": "soft-skill",
    "interpersonal": "soft-skill",
    "leadership": "soft-skill",
    "domain-knowledge": "domain-knowledge",
    "domain": "domain-knowledge",
    "industry": "domain-knowledge",
    "knowledge": "domain-knowledge",
}

_IMPORTANCE_ALIASES = {
    "must-have": "must-have",
    "must": "must-have",
    "required": "must-have",
    "requirement": "must-have",
    "critical": "must-have",
    "high": "must-have",
    "nice-to-have": "nice-to-have",
    "preferred": "nice-to-have",
    "optional": "nice-to-have",
    "bonus": "nice-to-have",
    "medium": "nice-to-have",
    "implicit": "implicit",
    "implied": "implicit",
    "inferred": "implicit",
    "low": "implicit",
}


def _normalize_label(value) -> str:
    return str(value).strip().lower().replace("_", "-").replace(" ", "-")


class JobPosting(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str = ""
    description: str = ""
    requirements: list[str] = Field(default_factory=list)
    qualifications: list[str] = Field(default_factory=list)
    company: str | None = None
    metadata: dict = Field(default_factory=dict)

    def has_content(self) -> bool:
        return bool(
            self.title.strip()
            or self.description.strip()
            or any(r.strip() for r in self.requirements)
            or any(q.strip() for q in self.qualifications)
        )

    def to_text(self) -> str:
        """Render the posting as plain text for prompts."""
        parts = [f"Title: {self.title}"]
        if self.company:
            parts.append(f"Company: {self.company}")
        if self.description:
            parts.append(f"\nDescription:\n{self.description}")
        if self.requirements:
            parts.append("\nRequirements:\n" + "\n".join(f"- {r}" for r in self.requirements))
        if self.qualifications:
            parts.append("\nQualifications:\n" + "\n".join(f"- {q}" for q in self.qualifications))
        return "\n".join(parts)


class Requirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    type: RequirementType = "skill"
    importance: Importance = "nice-to-have"
    keywords: list[str] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value):
        label = _normalize_label(value)
        if label in _TYPE_ALIASES:
            return _TYPE_ALIASES[label]
        logger.warning("Unknown requirement type %r, treating as skill", value)
        return "skill"

    @field_validator("importance", mode="before")
    @classmethod
    def _coerce_importance(cls, value):
        label = _normalize_label(value)
        if label in _IMPORTANCE_ALIASES:
            return _IMPORTANCE_ALIASES[label]
        logger.warning("Unknown requirement importance %r, treating as nice-to-have", value)
        return "nice-to-have"

    @field_validator("keywords", mode="before")
    @classmethod
    def _coerce_keywords(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [k.strip() for k in value.split(",") if k.strip()]
        return [str(k) for k in value]


class ParsedRequirements(BaseModel):
    model_config = ConfigDict(frozen=True)

    themes: list[str] = Field(default_factory=list)
    domain: str | None = None
    seniority_level: str | None = None
    requirements: list[Requirement] = Field(default_factory=list)

    @property
    def must_haves(self) -> list[Requirement]:
        return [r for r in self.requirements if r.importance == "must-have"]
