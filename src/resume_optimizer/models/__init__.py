"""Data models for the resume optimizer pipeline."""

from resume_optimizer.models.committee import (
    AdvocateAnalysis,
    Challenge,
    CommitteeResult,
    CommitteeRound,
    Connection,
    ConsensusState,
    CriticAnalysis,
    GenuineGap,
    ReframingOpportunity,
    TerminationReason,
    WriterOutput,
)
from resume_optimizer.models.job import JobPosting, ParsedRequirements, Requirement
from resume_optimizer.models.pipeline import PipelineMetrics, PipelineResult
from resume_optimizer.models.selection import GroupedItems, ScoredItem, SelectionResult
from resume_optimizer.models.vault import (
    ContentItem,
    ContentMetadata,
    ContentType,
    DateRange,
    Location,
)

__all__ = [
    "AdvocateAnalysis",
    "Challenge",
    "CommitteeResult",
    "CommitteeRound",
    "Connection",
    "ConsensusState",
    "ContentItem",
    "ContentMetadata",
    "ContentType",
    "CriticAnalysis",
    "DateRange",
    "GenuineGap",
    "GroupedItems",
    "JobPosting",
    "Location",
    "ParsedRequirements",
    "PipelineMetrics",
    "PipelineResult",
    "ReframingOpportunity",
    "Requirement",
    "ScoredItem",
    "SelectionResult",
    "TerminationReason",
    "WriterOutput",
]
