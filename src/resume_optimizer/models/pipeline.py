"""Pydantic models for the end-to-end pipeline result."""

from __future__ import annotations

from pydantic import BaseModel, Field

from resume_optimizer.models.committee import CommitteeResult
from resume_optimizer.models.selection import SelectionResult


class PipelineMetrics(BaseModel):
    vault_items_considered: int = 0
    items_selected: int = 0
    requirements_coverage: float = 0.0
    initial_fit_estimate: float = 0.0
    final_fit: float = 0.0
    processing_time_ms: int = 0


class PipelineResult(BaseModel):
    """Complete result from the optimization pipeline."""

    final_resume: str
    selection: SelectionResult
    committee: CommitteeResult | None = None
    metrics: PipelineMetrics = Field(default_factory=PipelineMetrics)
    committee_error: str | None = None
    warnings: list[str] = Field(default_factory=list)
