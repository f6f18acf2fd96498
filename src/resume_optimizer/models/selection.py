"""Pydantic models for Selector output."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from resume_optimizer.models.job import ParsedRequirements, Requirement
from resume_optimizer.models.vault import ContentItem


class ScoredItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    item: ContentItem
    relevance_score: float = Field(ge=0.0, le=1.0)
    rationale: str = ""
    matched_requirements: list[str] = Field(default_factory=list)


class GroupedItems(BaseModel):
    model_config = ConfigDict(frozen=True)

    jobs: list[ScoredItem] = Field(default_factory=list)
    skills: list[ScoredItem] = Field(default_factory=list)
    accomplishments: list[ScoredItem] = Field(default_factory=list)
    education: list[ScoredItem] = Field(default_factory=list)
    certifications: list[ScoredItem] = Field(default_factory=list)


class SelectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    selected_items: list[ScoredItem] = Field(default_factory=list)
    grouped_items: GroupedItems = Field(default_factory=GroupedItems)
    coverage_score: float = Field(default=0.0, ge=0.0, le=1.0)
    unmatched_requirements: list[Requirement] = Field(default_factory=list)
    draft_resume: str = ""
    warnings: list[str] = Field(default_factory=list)
    parsed_requirements: ParsedRequirements = Field(default_factory=ParsedRequirements)

    @property
    def mean_relevance(self) -> float:
        if not self.selected_items:
            return 0.0
        return sum(s.relevance_score for s in self.selected_items) / len(self.selected_items)
