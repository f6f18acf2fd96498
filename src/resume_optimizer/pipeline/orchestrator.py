"""Main pipeline orchestrator - runs the Selector, then the Committee."""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import Callable

from resume_optimizer.clients.llm_client import LLMClient
from resume_optimizer.config import PipelineConfig
from resume_optimizer.errors import ResumeOptimizerError, StageError
from resume_optimizer.models.committee import AdvocateAnalysis, CommitteeResult, ConsensusState, CriticAnalysis
from resume_optimizer.models.job import JobPosting
from resume_optimizer.models.pipeline import PipelineMetrics, PipelineResult
from resume_optimizer.models.selection import SelectionResult
from resume_optimizer.models.vault import ContentItem
from resume_optimizer.pipeline.committee import Committee
from resume_optimizer.pipeline.scoring import RelevanceScorer
from resume_optimizer.pipeline.selector import ContentSelector

logger = logging.getLogger(__name__)

COVERAGE_WEIGHT = 0.4
RELEVANCE_WEIGHT = 0.6


def estimate_initial_fit(selection: SelectionResult) -> float:
    """Fit proxy before any committee round: coverage blended with mean relevance."""
    if not selection.selected_items:
        return 0.0
    return COVERAGE_WEIGHT * selection.coverage_score + RELEVANCE_WEIGHT * selection.mean_relevance


class PipelineOrchestrator:
    """Orchestrates the two-stage resume optimization pipeline."""

    def __init__(
        self,
        llm: LLMClient,
        config: PipelineConfig | None = None,
        *,
        scorer: RelevanceScorer | None = None,
        reference_date: date | None = None,
    ):
        self.config = config or PipelineConfig()
        self.selector = ContentSelector(
            llm, self.config.selector, scorer=scorer, reference_date=reference_date,
        )
        self.committee = Committee(llm, self.config.committee)

    async def run(
        self,
        job: JobPosting,
        vault_items: list[ContentItem],
        *,
        on_phase: Callable[[str, str], None] | None = None,
    ) -> PipelineResult:
        """Run selection and committee refinement for one job.

        Args:
            job: Target job posting.
            vault_items: Career content to select from. Never modified.
            on_phase: Optional callback(phase_name, detail) for progress.
        """
        start = time.monotonic()

        def _notify(phase: str, detail: str = ""):
            if on_phase:
                on_phase(phase, detail)

        # --- Stage 1: selection ---
        _notify("selector", f"Selecting content from {len(vault_items)} vault items")
        try:
            selection = await self.selector.select(job, vault_items)
        except ResumeOptimizerError as exc:
            raise StageError("selector", str(exc)) from exc

        initial_fit = estimate_initial_fit(selection)
        warnings = list(selection.warnings)
        _notify(
            "selector_done",
            f"Selected {len(selection.selected_items)} items, coverage {selection.coverage_score:.0%}",
        )

        # --- Stage 2: committee ---
        committee: CommitteeResult | None = None
        committee_error: str | None = None
        final_resume = selection.draft_resume

        if self.config.skip_committee:
            logger.info("Committee skipped by configuration")
        elif not selection.draft_resume.strip():
            warnings.append("Nothing was selected; committee skipped")
        else:
            _notify("committee", "Refining draft with committee")
            try:
                committee = await self.committee.run(job, selection.draft_resume)
                final_resume = committee.final_resume
            except ResumeOptimizerError as exc:
                if not self.config.fallback_to_selection:
                    raise
                committee_error = str(exc)
                warnings.append(f"Committee failed, using selector draft: {exc}")
                logger.warning("Committee failed, falling back to selector draft", exc_info=True)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        metrics = PipelineMetrics(
            vault_items_considered=len(vault_items),
            items_selected=len(selection.selected_items),
            requirements_coverage=selection.coverage_score,
            initial_fit_estimate=initial_fit,
            final_fit=committee.final_fit if committee else initial_fit,
            processing_time_ms=elapsed_ms,
        )
        _notify("done", f"Done: fit {metrics.final_fit:.0%} in {elapsed_ms / 1000:.1f}s")

        return PipelineResult(
            final_resume=final_resume,
            selection=selection,
            committee=committee,
            metrics=metrics,
            committee_error=committee_error,
            warnings=warnings,
        )

    async def select_only(self, job: JobPosting, vault_items: list[ContentItem]) -> SelectionResult:
        """Run the Selector alone."""
        try:
            return await self.selector.select(job, vault_items)
        except ResumeOptimizerError as exc:
            raise StageError("selector", str(exc)) from exc

    async def optimize_existing(self, job: JobPosting, resume_text: str) -> CommitteeResult:
        """Run the Committee directly on an already-written resume."""
        return await self.committee.run(job, resume_text)

    async def analyze(
        self, job: JobPosting, resume_text: str,
    ) -> tuple[AdvocateAnalysis, CriticAnalysis, ConsensusState]:
        return await self.committee.analyze(job, resume_text)


async def build_optimized_resume(
    job: JobPosting,
    vault_items: list[ContentItem],
    config: PipelineConfig | None = None,
    *,
    llm: LLMClient,
    scorer: RelevanceScorer | None = None,
    reference_date: date | None = None,
    on_phase: Callable[[str, str], None] | None = None,
) -> PipelineResult:
    """Select vault content for ``job`` and refine the draft with the committee."""
    orchestrator = PipelineOrchestrator(llm, config, scorer=scorer, reference_date=reference_date)
    return await orchestrator.run(job, vault_items, on_phase=on_phase)
