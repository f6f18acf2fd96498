"""Shared test fixtures."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock

import pytest

from resume_optimizer.clients.llm_client import LLMClient, LLMResponse, TokenUsage
from resume_optimizer.models.job import JobPosting, ParsedRequirements
from resume_optimizer.models.vault import ContentItem

REFERENCE_DATE = date(2024, 6, 1)


@pytest.fixture
def reference_date() -> date:
    return REFERENCE_DATE


@pytest.fixture
def sample_job() -> JobPosting:
    return JobPosting(
        id="acme-senior-backend",
        title="Senior Backend Engineer",
        company="Acme Analytics",
        description="Build and scale the data platform behind our analytics product.",
        requirements=[
            "5+ years of Python development",
            "Experience leading and mentoring engineers",
        ],
        qualifications=["Bachelor's degree in Computer Science"],
    )


@pytest.fixture
def sample_requirements_data() -> dict:
    """Requirement parser output as the LLM returns it."""
    return {
        "requirements": [
            {"text": "Python programming", "type": "skill", "importance": "must-have", "keywords": ["Python"]},
            {
                "text": "Team leadership",
                "type": "soft-skill",
                "importance": "must-have",
                "keywords": ["leadership", "mentoring"],
            },
            {
                "text": "Bachelor's degree in Computer Science",
                "type": "education",
                "importance": "nice-to-have",
                "keywords": ["computer science"],
            },
        ],
        "themes": ["data platform", "technical leadership"],
        "domain": "analytics",
        "seniority_level": "senior",
    }


@pytest.fixture
def sample_requirements(sample_requirements_data) -> ParsedRequirements:
    return ParsedRequirements(**sample_requirements_data)


@pytest.fixture
def sample_vault() -> list[ContentItem]:
    return [
        ContentItem(
            id="job-1",
            type="job_entry",
            content="Senior Software Engineer - Acme Corp",
            tags=["python", "leadership"],
            metadata={
                "company": "Acme Corp",
                "date_range": {"start": "2019-01", "end": None},
                "location": {"city": "Austin", "state": "TX", "country": "USA"},
            },
        ),
        ContentItem(
            id="acc-1",
            type="accomplishment",
            content="Led a team of 5 engineers to deliver a payment platform",
            tags=["leadership"],
            parent_id="job-1",
        ),
        ContentItem(
            id="acc-2",
            type="accomplishment",
            content="Built a Python-based data pipeline processing 10M events per day",
            tags=["python", "data"],
            parent_id="job-1",
        ),
        ContentItem(
            id="skill-1",
            type="skill",
            content="Python",
            tags=["python"],
            metadata={"proficiency": "expert"},
        ),
        ContentItem(id="skill-2", type="skill", content="Gardening", tags=["hobby"]),
        ContentItem(
            id="edu-1",
            type="education",
            content="B.S. Computer Science, State University",
            metadata={"date_range": {"start": "2011-09", "end": "2015-05"}},
        ),
    ]


@pytest.fixture
def untagged_vault(sample_vault) -> list[ContentItem]:
    """The sample vault with every tag removed, so matching relies on text alone."""
    return [item.model_copy(update={"tags": frozenset()}) for item in sample_vault]


@pytest.fixture
def sample_resume_text() -> str:
    return """## Professional Experience

### Senior Software Engineer | Acme Corp
- Led a team of 5 engineers to deliver a payment platform
- Built a Python-based data pipeline processing 10M events per day

## Skills

Python
"""


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Create a mock LLM client."""
    client = AsyncMock(spec=LLMClient)
    client.generate = AsyncMock(
        return_value=LLMResponse(
            content="{}", model="claude-sonnet-4-20250514", usage=TokenUsage(100, 50)
        )
    )
    client.generate_json = AsyncMock(return_value={})
    return client


def advocate_payload(fit_score: float = 0.7, **overrides) -> dict:
    data = {
        "fit_score": fit_score,
        "assessment": "Solid Python background with clear leadership evidence.",
        "connections": [
            {
                "job_requirement": "Team leadership",
                "resume_evidence": "Led a team of 5 engineers",
                "connection_strength": "strong",
                "confidence": 0.9,
                "reasoning": "Direct people leadership",
            }
        ],
        "strengths": ["Python", "Leadership"],
        "reframing_opportunities": [
            {
                "current_content": "Built a Python-based data pipeline",
                "suggested_reframe": "Built a scalable Python-based data pipeline",
                "job_requirement_addressed": "Python programming",
                "priority": "high",
            }
        ],
        "terminology_alignments": [],
        "claimed_qualifications": ["Python programming", "Team leadership"],
    }
    data.update(overrides)
    return data


def critic_payload(fit_score: float = 0.6, **overrides) -> dict:
    data = {
        "fit_score": fit_score,
        "assessment": "Claims are mostly supported.",
        "agreements": ["Python evidence is strong"],
        "challenges": [
            {
                "type": "weak_evidence",
                "claim": "Mentoring",
                "issue": "Mentoring is only implied",
                "severity": "minor",
                "can_be_addressed": True,
                "suggested_fix": "Say 'led' rather than 'mentored'",
            }
        ],
        "validated_strengths": ["Python"],
        "genuine_gaps": [
            {"requirement": "Bachelor's degree in Computer Science", "reason": "Not listed", "is_required": False}
        ],
    }
    data.update(overrides)
    return data


def writer_payload(content: str = "## Revised resume\n- Led a team of 5 engineers", **overrides) -> dict:
    data = {
        "rewritten_content": content,
        "changes_applied": ["Added 'scalable' to pipeline bullet"],
        "sections_modified": ["Experience"],
        "keywords_added": ["scalable"],
    }
    data.update(overrides)
    return data


def make_committee_dispatch(advocate_scores, critic_scores, writer_contents=None, parsed=None):
    """side_effect for generate_json keyed on the role named in the system prompt.

    Each role pops its next payload per call; the last value repeats.
    """
    counters = {"advocate": 0, "critic": 0, "writer": 0}

    def _next(role: str, values):
        index = min(counters[role], len(values) - 1)
        counters[role] += 1
        return values[index]

    async def _dispatch(prompt="", system="", **kwargs):
        if "requirement analyst" in system:
            return dict(parsed or {})
        if "You are the ADVOCATE" in system:
            return advocate_payload(_next("advocate", advocate_scores))
        if "You are the CRITIC" in system:
            return critic_payload(_next("critic", critic_scores))
        if "You are the WRITER" in system:
            contents = writer_contents or ["## Revised resume"]
            index = min(counters["writer"], len(contents) - 1)
            counters["writer"] += 1
            return writer_payload(f"{contents[index]} (round {counters['writer']})")
        return {}

    return _dispatch


@pytest.fixture
def committee_dispatch():
    return make_committee_dispatch


@pytest.fixture
def payloads():
    """Factories for committee role payloads."""
    return {"advocate": advocate_payload, "critic": critic_payload, "writer": writer_payload}
