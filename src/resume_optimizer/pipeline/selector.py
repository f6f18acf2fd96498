"""Selector - Scores vault content against job requirements and builds a draft."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Mapping

from resume_optimizer.clients.llm_client import LLMClient
from resume_optimizer.config import SelectorConfig
from resume_optimizer.errors import InvalidRequest
from resume_optimizer.models.job import JobPosting, ParsedRequirements, Requirement
from resume_optimizer.models.selection import GroupedItems, ScoredItem, SelectionResult
from resume_optimizer.models.vault import JOB_FRAGMENT_TYPES, ContentItem, ContentType
from resume_optimizer.pipeline.requirement_parser import RequirementParser
from resume_optimizer.pipeline.resume_builder import build_draft_resume
from resume_optimizer.pipeline.scoring import TYPE_AFFINITY, LexicalScorer, RelevanceScorer

logger = logging.getLogger(__name__)

LOW_COVERAGE_THRESHOLD = 0.5

# Accomplishments without a known parent share one cap bucket
_ORPHAN_BUCKET = "__orphan__"


def coerce_selector_config(config: SelectorConfig | Mapping | None) -> SelectorConfig:
    """Accept a SelectorConfig or a plain mapping of its fields."""
    if config is None:
        return SelectorConfig()
    if isinstance(config, SelectorConfig):
        return config
    try:
        return SelectorConfig(**dict(config))
    except (TypeError, ValueError) as exc:
        raise InvalidRequest(f"Invalid selector config: {exc}") from exc


class ContentSelector:
    """Select the vault content most relevant to a job posting."""

    def __init__(
        self,
        llm: LLMClient,
        config: SelectorConfig | Mapping | None = None,
        *,
        scorer: RelevanceScorer | None = None,
        reference_date: date | None = None,
    ):
        self.config = coerce_selector_config(config)
        self.parser = RequirementParser(llm, model=self.config.model)
        self.scorer = scorer or LexicalScorer(reference_date=reference_date)
        self.reference_date = reference_date

    async def select(self, job: JobPosting, vault_items: list[ContentItem]) -> SelectionResult:
        parsed = await self.parser.parse(job)
        return await self.select_with_requirements(parsed, vault_items)

    async def select_with_requirements(
        self, parsed: ParsedRequirements, vault_items: list[ContentItem],
    ) -> SelectionResult:
        """Run selection against already-parsed requirements."""
        config = self.config
        warnings: list[str] = []
        if not parsed.requirements:
            warnings.append("Job posting produced no parsed requirements; coverage is 0")

        if not vault_items:
            warnings.append("Vault is empty; nothing to select")
            return self._finish(parsed, [], GroupedItems(), list(parsed.requirements), 0.0, "", warnings)

        vault_index = {item.id: i for i, item in enumerate(vault_items)}
        by_id = {item.id: item for item in vault_items}
        scored = await self.scorer.score(list(vault_items), parsed)
        candidates = [s for s in scored if s.item.type not in JOB_FRAGMENT_TYPES]

        surviving = [s for s in candidates if s.relevance_score >= config.min_relevance_score]
        logger.info(
            "Scored %d items, %d at or above %.2f",
            len(candidates), len(surviving), config.min_relevance_score,
        )
        if candidates and not surviving:
            warnings.append(
                f"No vault item reached min_relevance_score {config.min_relevance_score}"
            )

        def rank_key(s: ScoredItem):
            return (-s.relevance_score, -self._recency(s.item, by_id), vault_index[s.item.id])

        by_type: dict[ContentType, list[ScoredItem]] = defaultdict(list)
        for s in sorted(surviving, key=rank_key):
            by_type[s.item.type].append(s)

        jobs = by_type[ContentType.JOB_ENTRY][: config.max_jobs]
        kept_jobs = {s.item.id for s in jobs}
        accomplishments: list[ScoredItem] = []
        per_parent: dict[str, int] = defaultdict(int)
        for s in by_type[ContentType.ACCOMPLISHMENT]:
            parent = s.item.parent_id if s.item.parent_id in by_id else None
            if parent is not None and parent not in kept_jobs:
                # its job was capped or fell below the threshold
                continue
            bucket = parent or _ORPHAN_BUCKET
            if per_parent[bucket] < config.max_accomplishments_per_job:
                per_parent[bucket] += 1
                accomplishments.append(s)

        grouped = GroupedItems(
            jobs=jobs,
            skills=by_type[ContentType.SKILL][: config.max_skills],
            accomplishments=accomplishments,
            education=by_type[ContentType.EDUCATION],
            certifications=by_type[ContentType.CERTIFICATION],
        )
        selected = sorted(
            grouped.jobs + grouped.accomplishments + grouped.skills
            + grouped.education + grouped.certifications,
            key=rank_key,
        )

        covered = {text for s in selected for text in s.matched_requirements}
        unmatched = [r for r in parsed.requirements if r.text not in covered]
        total = len(parsed.requirements)
        coverage = 1.0 - len(unmatched) / total if total else 0.0

        warnings.extend(self._type_warnings(parsed, selected))
        if total and coverage < LOW_COVERAGE_THRESHOLD:
            warnings.append(f"Low requirement coverage: {coverage:.0%}")

        fragments: dict[str, list[ContentItem]] = defaultdict(list)
        for item in vault_items:
            if item.type in JOB_FRAGMENT_TYPES and item.parent_id:
                fragments[item.parent_id].append(item)
        draft = build_draft_resume(grouped, parsed, fragments, today=self.reference_date)

        return self._finish(parsed, selected, grouped, unmatched, coverage, draft, warnings)

    @staticmethod
    def _type_warnings(parsed: ParsedRequirements, selected: list[ScoredItem]) -> list[str]:
        warnings = []
        selected_types = {s.item.type for s in selected}
        seen_types = set()
        for req in parsed.must_haves:
            if req.type in seen_types:
                continue
            able = {t for t, weight in TYPE_AFFINITY.get(req.type, {}).items() if weight > 0}
            if not able & selected_types:
                seen_types.add(req.type)
                warnings.append(
                    f"No selected content of a type that can support must-have {req.type} requirements"
                )
        return warnings

    def _recency(self, item: ContentItem, by_id: dict[str, ContentItem]) -> int:
        date_range = item.metadata.date_range
        if date_range is None and item.parent_id in by_id:
            date_range = by_id[item.parent_id].metadata.date_range
        if date_range is None:
            return 0
        end = date_range.end_date(self.reference_date)
        return end.toordinal() if end else 0

    @staticmethod
    def _finish(
        parsed: ParsedRequirements,
        selected: list[ScoredItem],
        grouped: GroupedItems,
        unmatched: list[Requirement],
        coverage: float,
        draft: str,
        warnings: list[str],
    ) -> SelectionResult:
        for warning in warnings:
            logger.warning("Selector: %s", warning)
        logger.info(
            "Selected %d items, coverage %.0f%%, %d unmatched requirements",
            len(selected), coverage * 100, len(unmatched),
        )
        return SelectionResult(
            selected_items=selected,
            grouped_items=grouped,
            coverage_score=coverage,
            unmatched_requirements=unmatched,
            draft_resume=draft,
            warnings=warnings,
            parsed_requirements=parsed,
        )


async def select_content_for_job(
    job: JobPosting,
    vault_items: list[ContentItem],
    config: SelectorConfig | Mapping | None = None,
    *,
    llm: LLMClient,
    scorer: RelevanceScorer | None = None,
    reference_date: date | None = None,
) -> SelectionResult:
    """Score, filter and group vault content for ``job``.

    An empty vault yields an empty result with every requirement unmatched.
    """
    selector = ContentSelector(llm, config, scorer=scorer, reference_date=reference_date)
    return await selector.select(job, vault_items)
