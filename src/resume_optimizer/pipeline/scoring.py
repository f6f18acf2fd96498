"""Relevance scoring strategies for vault content."""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from datetime import date
from typing import Protocol

from pydantic import ValidationError

from resume_optimizer.clients.llm_client import LLMClient
from resume_optimizer.errors import MalformedResponse
from resume_optimizer.models.job import ParsedRequirements, Requirement
from resume_optimizer.models.selection import ScoredItem
from resume_optimizer.models.vault import ContentItem, ContentType

logger = logging.getLogger(__name__)

# Per-requirement match at or above this counts towards coverage
MATCH_THRESHOLD = 0.5

IMPORTANCE_WEIGHTS = {
    "must-have": 1.0,
    "nice-to-have": 0.6,
    "implicit": 0.4,
}

# How well an item type can evidence a requirement type
TYPE_AFFINITY: dict[str, dict[ContentType, float]] = {
    "skill": {
        ContentType.SKILL: 1.0,
        ContentType.ACCOMPLISHMENT: 0.9,
        ContentType.JOB_ENTRY: 0.8,
        ContentType.CERTIFICATION: 0.7,
        ContentType.EDUCATION: 0.4,
    },
    "experience": {
        ContentType.JOB_ENTRY: 1.0,
        ContentType.ACCOMPLISHMENT: 0.9,
        ContentType.SKILL: 0.5,
        ContentType.CERTIFICATION: 0.4,
        ContentType.EDUCATION: 0.3,
    },
    "education": {
        ContentType.EDUCATION: 1.0,
        ContentType.CERTIFICATION: 0.8,
    },
    "soft-skill": {
        ContentType.ACCOMPLISHMENT: 1.0,
        ContentType.JOB_ENTRY: 0.8,
        ContentType.SKILL: 0.6,
        ContentType.EDUCATION: 0.2,
        ContentType.CERTIFICATION: 0.2,
    },
    "domain-knowledge": {
        ContentType.JOB_ENTRY: 1.0,
        ContentType.ACCOMPLISHMENT: 0.9,
        ContentType.SKILL: 0.8,
        ContentType.CERTIFICATION: 0.7,
        ContentType.EDUCATION: 0.6,
    },
}

RECENCY_BONUS = 0.05
RECENCY_HORIZON_YEARS = 10.0

STOPWORDS = frozenset("""
a an and are as at be by for from has have in into is it its of on or our
the their to with within you your we will who able ability strong
excellent good proven plus experience experienced using use work working
""".split())

_SYNONYM_GROUPS = (
    ("lead", "led", "manag", "mentor", "supervis", "coach"),
    ("develop", "build", "built", "implement"),
    ("javascript", "js"),
    ("typescript", "ts"),
    ("kubernet", "k8s"),
    ("postgresql", "postgr"),
)
SYNONYMS = {word: group[0] for group in _SYNONYM_GROUPS for word in group}

_SUFFIXES = ("ership", "ments", "ment", "ings", "ing", "ers", "er", "ed", "es", "s")
_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9+#.]*")


def stem(token: str) -> str:
    """Strip common English suffixes; good enough for keyword matching."""
    for _ in range(2):
        for suffix in _SUFFIXES:
            if suffix == "s" and token.endswith("ss"):
                continue
            if token.endswith(suffix) and len(token) - len(suffix) >= 3:
                token = token[: -len(suffix)]
                break
        else:
            break
    if token.endswith("e") and len(token) > 4:
        token = token[:-1]
    return token


def terms(text: str) -> list[str]:
    """Canonical terms of ``text``: lowercased, stopworded, stemmed, synonym-folded."""
    out = []
    for raw in _TOKEN_RE.findall(text.lower()):
        raw = raw.rstrip(".")
        if not raw or raw in STOPWORDS:
            continue
        canonical = stem(raw)
        out.append(SYNONYMS.get(canonical, canonical))
    return out


def requirement_keywords(requirement: Requirement) -> list[tuple[str, ...]]:
    """Keyword phrases for a requirement, each as a tuple of canonical terms."""
    phrases = [tuple(terms(k)) for k in requirement.keywords]
    phrases = [p for p in phrases if p]
    if not phrases:
        phrases = [(t,) for t in dict.fromkeys(terms(requirement.text))]
    return list(dict.fromkeys(phrases))


def keyword_overlap(item_terms: set[str], phrases: list[tuple[str, ...]]) -> float:
    """0 with no hits, else 0.6 rising to 1.0 as more keyword phrases hit."""
    if not phrases:
        return 0.0
    hits = sum(1 for phrase in phrases if all(t in item_terms for t in phrase))
    if hits == 0:
        return 0.0
    return 0.6 + 0.4 * hits / len(phrases)


class RelevanceScorer(Protocol):
    """Strategy interface used by the Selector."""

    async def score(
        self, items: list[ContentItem], requirements: ParsedRequirements,
    ) -> list[ScoredItem]:
        ...


class LexicalScorer:
    """Deterministic keyword/tag overlap scorer.

    Each item is matched against every requirement. A requirement match is
    keyword overlap scaled by how well the item's type can evidence the
    requirement's type. The item score blends the best importance-weighted
    match (70%) with the mean over all requirements (30%), plus a small
    recency bonus for dated items that already match something.

    Job entries are scored on their own text plus the text of items whose
    ``parent_id`` points at them.
    """

    def __init__(self, reference_date: date | None = None):
        self.reference_date = reference_date

    async def score(
        self, items: list[ContentItem], requirements: ParsedRequirements,
    ) -> list[ScoredItem]:
        return self.score_sync(items, requirements)

    def score_sync(
        self, items: list[ContentItem], requirements: ParsedRequirements,
    ) -> list[ScoredItem]:
        today = self.reference_date or date.today()
        children: dict[str, list[ContentItem]] = defaultdict(list)
        by_id = {item.id: item for item in items}
        for item in items:
            if item.parent_id:
                children[item.parent_id].append(item)

        phrases = [(req, requirement_keywords(req)) for req in requirements.requirements]
        results = []
        for item in items:
            item_terms = set(terms(self._item_text(item, children)))
            matches = []
            for req, req_phrases in phrases:
                affinity = TYPE_AFFINITY.get(req.type, {}).get(item.type, 0.0)
                matches.append((req, keyword_overlap(item_terms, req_phrases) * affinity))
            results.append(self._combine(item, matches, by_id, today))
        return results

    @staticmethod
    def _item_text(item: ContentItem, children: dict[str, list[ContentItem]]) -> str:
        meta = item.metadata
        parts = [item.content, " ".join(sorted(item.tags))]
        parts.extend(p for p in (meta.company, meta.proficiency, meta.notes) if p)
        if item.type == ContentType.JOB_ENTRY:
            for child in children.get(item.id, []):
                parts.append(child.content)
                parts.append(" ".join(sorted(child.tags)))
        return " ".join(parts)

    def _combine(
        self,
        item: ContentItem,
        matches: list[tuple[Requirement, float]],
        by_id: dict[str, ContentItem],
        today: date,
    ) -> ScoredItem:
        if not matches:
            return ScoredItem(item=item, relevance_score=0.0, rationale="no requirements to match")

        weighted = [m * IMPORTANCE_WEIGHTS[req.importance] for req, m in matches]
        score = 0.7 * max(weighted) + 0.3 * sum(weighted) / len(weighted)
        if max(weighted) > 0:
            score += self._recency_bonus(item, by_id, today)
        score = min(1.0, max(0.0, score))

        matched = [req.text for req, m in matches if m >= MATCH_THRESHOLD]
        hits = [f"{req.text} ({m:.2f})" for req, m in matches if m > 0]
        rationale = "matches: " + ", ".join(hits) if hits else "no keyword overlap"
        return ScoredItem(
            item=item,
            relevance_score=round(score, 4),
            rationale=rationale,
            matched_requirements=matched,
        )

    @staticmethod
    def _recency_bonus(item: ContentItem, by_id: dict[str, ContentItem], today: date) -> float:
        date_range = item.metadata.date_range
        if date_range is None and item.parent_id in by_id:
            date_range = by_id[item.parent_id].metadata.date_range
        if date_range is None:
            return 0.0
        end = date_range.end_date(today)
        if end is None:
            return 0.0
        years_ago = max(0.0, (today - end).days / 365.25)
        return RECENCY_BONUS * max(0.0, 1.0 - years_ago / RECENCY_HORIZON_YEARS)


LLM_SCORING_PROMPT = """\
You are a strategic resume content selector. Score how relevant each item from a
candidate's experience vault is to the job requirements below.

Guidelines:
1. Prioritize content that directly matches job requirements
2. Credit transferable experience that demonstrates a required skill
3. Consider the seniority level and match experience depth appropriately
4. A skill never substitutes for an education requirement

Respond with JSON only:
{
  "selections": [
    {"item_id": "...", "relevance_score": 0.85, "matched_requirements": ["requirement text"], "rationale": "..."}
  ]
}
Items you leave out are treated as irrelevant."""


class LLMScorer:
    """Scores all items with a single LLM call. Not deterministic."""

    def __init__(self, llm: LLMClient, model: str | None = None, temperature: float = 0.3):
        self.llm = llm
        self.model = model
        self.temperature = temperature

    async def score(
        self, items: list[ContentItem], requirements: ParsedRequirements,
    ) -> list[ScoredItem]:
        if not items:
            return []
        req_lines = "\n".join(
            f"{i}. [{r.importance.upper()}] [{r.type}] {r.text}"
            for i, r in enumerate(requirements.requirements, 1)
        )
        vault_lines = "\n".join(
            f"- id={item.id} type={item.type.value}"
            + (f" parent={item.parent_id}" if item.parent_id else "")
            + f": {item.content}"
            for item in items
        )
        prompt = f"""JOB REQUIREMENTS:
{req_lines}

KEY THEMES: {", ".join(requirements.themes) or "none"}
DOMAIN: {requirements.domain or "general"}
SENIORITY LEVEL: {requirements.seniority_level or "not specified"}

CONTENT VAULT:
{vault_lines}"""

        data = await self.llm.generate_json(
            prompt=prompt,
            system=LLM_SCORING_PROMPT,
            model=self.model,
            temperature=self.temperature,
        )
        if not isinstance(data, dict) or not isinstance(data.get("selections"), list):
            raise MalformedResponse("Expected a 'selections' list from LLM", str(data))

        known_requirements = {r.text for r in requirements.requirements}
        picked: dict[str, dict] = {}
        for entry in data["selections"]:
            if isinstance(entry, dict) and entry.get("item_id") is not None:
                picked[str(entry["item_id"])] = entry

        results = []
        for item in items:
            entry = picked.get(item.id)
            if entry is None:
                results.append(ScoredItem(item=item, relevance_score=0.0, rationale="not selected"))
                continue
            try:
                raw_score = float(entry.get("relevance_score", 0.0))
            except (TypeError, ValueError) as exc:
                raise MalformedResponse(f"Bad relevance_score for item {item.id}", str(entry)) from exc
            matched = [r for r in entry.get("matched_requirements") or [] if r in known_requirements]
            try:
                results.append(
                    ScoredItem(
                        item=item,
                        relevance_score=min(1.0, max(0.0, raw_score)),
                        rationale=str(entry.get("rationale") or ""),
                        matched_requirements=matched,
                    )
                )
            except ValidationError as exc:
                raise MalformedResponse(f"Invalid selection for item {item.id}", str(entry)) from exc
        unknown = set(picked) - {item.id for item in items}
        if unknown:
            logger.warning("LLM scored unknown vault items: %s", sorted(unknown))
        return results
