"""Requirement Parser - Turns a job posting into structured requirements."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from resume_optimizer.clients.llm_client import LLMClient
from resume_optimizer.errors import InvalidRequest, MalformedResponse
from resume_optimizer.models.job import JobPosting, ParsedRequirements

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a job requirement analyst. Parse the job posting you are given and extract structured requirements.

For each requirement, determine:
1. text: a concise description of the requirement
2. type: skill | experience | education | soft-skill | domain-knowledge
3. importance: must-have | nice-to-have | implicit
   (implicit = not stated outright but clearly expected for the role)
4. keywords: terms that would appear in a matching resume

Also identify:
- themes: 2-4 key focus areas of the role
- domain: the industry or domain (e.g. "biotech", "fintech", "enterprise SaaS")
- seniority_level: entry | mid | senior | lead | executive

Respond with JSON only, in this shape:
{
  "requirements": [
    {"text": "...", "type": "skill", "importance": "must-have", "keywords": ["...", "..."]}
  ],
  "themes": ["...", "..."],
  "domain": "...",
  "seniority_level": "senior"
}

Do not invent requirements the posting does not support."""


class RequirementParser:
    def __init__(self, llm: LLMClient, model: str | None = None, temperature: float = 0.2):
        self.llm = llm
        self.model = model
        self.temperature = temperature

    async def parse(self, job: JobPosting) -> ParsedRequirements:
        """Extract requirements, themes, domain and seniority from a posting."""
        if not job.has_content():
            raise InvalidRequest("Job posting has no title, description or requirements")

        prompt = f"""Parse the following job posting:

---
{job.to_text()}
---

Respond with JSON only."""

        data = await self.llm.generate_json(
            prompt=prompt,
            system=SYSTEM_PROMPT,
            model=self.model,
            temperature=self.temperature,
        )
        if not isinstance(data, dict):
            raise MalformedResponse(f"Expected dict from LLM, got {type(data).__name__}", str(data))
        # camelCase key from older prompt variants
        if "seniorityLevel" in data and "seniority_level" not in data:
            data["seniority_level"] = data.pop("seniorityLevel")
        try:
            parsed = ParsedRequirements(**data)
        except ValidationError as exc:
            raise MalformedResponse(f"Invalid requirement data: {exc}", str(data)) from exc

        logger.info(
            "Parsed %d requirements (%d must-have) for %r",
            len(parsed.requirements), len(parsed.must_haves), job.title,
        )
        return parsed
