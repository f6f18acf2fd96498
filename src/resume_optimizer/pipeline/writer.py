"""Committee role 3: Writer - Merges Advocate and Critic input into a revised resume."""

from __future__ import annotations

from resume_optimizer.clients.llm_client import LLMClient
from resume_optimizer.models.committee import AdvocateAnalysis, CriticAnalysis, WriterOutput
from resume_optimizer.models.job import JobPosting
from resume_optimizer.utils.json_parser import validate_payload

# Only connections the Advocate is fairly sure about reach the Writer
MIN_CONNECTION_CONFIDENCE = 0.7

SYSTEM_PROMPT = """\
You are the WRITER in a resume optimization committee. Synthesize the Advocate's
suggestions and the Critic's corrections into an optimized resume.

You are not producing a keyword-stuffed resume. You are producing the sharpest
version of this specific person, in their own voice.

THE AUGMENTATION RULE
- ADD job keywords by prepending them or weaving them in naturally
- NEVER delete specific, impressive content to make room for generic terms
- If a keyword cannot be added without removing something valuable, leave it out

Resolution rules when Advocate and Critic disagree:
- Critic says overclaim -> do not include it
- Critic says weak evidence -> soften the language or add context
- Critic validates a connection -> apply the Advocate's suggestion confidently
- Critic names a genuine gap -> do not claim it; lean on related strengths
- Critic flags blandification -> use the Critic's fix or keep the original

Priority: no overclaims, no blandification, job keywords where natural, preserved voice.
Avoid template phrases such as "results-driven professional" or "proven track record".

Respond with JSON only:
{
  "rewritten_content": "the complete rewritten resume in markdown",
  "changes_applied": ["..."],
  "sections_modified": ["Summary", "Experience"],
  "advocate_points_adopted": ["..."],
  "critic_corrections_applied": ["..."],
  "issues_not_addressed": ["issue and reason"],
  "keywords_added": ["..."]
}
rewritten_content must be the complete resume, never partial content or placeholders."""


class Writer:
    def __init__(
        self,
        llm: LLMClient,
        model: str | None = None,
        temperature: float = 0.2,
        max_tokens: int = 6000,
    ):
        self.llm = llm
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def rewrite(
        self,
        job: JobPosting,
        resume: str,
        advocate: AdvocateAnalysis,
        critic: CriticAnalysis,
        round_number: int = 1,
    ) -> WriterOutput:
        """Produce the next revision of ``resume``."""
        prompt = build_writer_prompt(job, resume, advocate, critic, round_number)
        data = await self.llm.generate_json(
            prompt=prompt,
            system=SYSTEM_PROMPT,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return validate_payload(data, WriterOutput, "writer output")


def build_writer_prompt(
    job: JobPosting,
    resume: str,
    advocate: AdvocateAnalysis,
    critic: CriticAnalysis,
    round_number: int,
) -> str:
    connections = "\n".join(
        f"- {c.job_requirement}: \"{c.resume_evidence}\""
        + (f"\n  Framing: {c.suggested_framing}" if c.suggested_framing else "")
        for c in advocate.connections
        if c.confidence >= MIN_CONNECTION_CONFIDENCE
    )
    reframings = "\n".join(
        f"- [{r.priority.upper()}] \"{r.current_content}\"\n  -> \"{r.suggested_reframe}\"\n"
        f"  For: {r.job_requirement_addressed}"
        for r in advocate.reframing_opportunities
        if r.priority != "low"
    )
    terminology = "\n".join(
        f"- {t.resume_term} ~ {t.job_term}" for t in advocate.terminology_alignments
    )
    blocked = "\n".join(
        f"- [BLOCKED] {c.claim}\n  Issue: {c.issue}\n  "
        + (f"Fix: {c.suggested_fix}" if c.suggested_fix else "Cannot be addressed")
        for c in critic.challenges
        if c.is_blocking
    )
    soften = "\n".join(
        f"- [SOFTEN] {c.claim}\n  Issue: {c.issue}\n  Fix: {c.suggested_fix or 'Use more cautious language'}"
        for c in critic.challenges
        if c.severity == "minor" and c.can_be_addressed
    )
    gaps = "\n".join(
        f"- {g.requirement}{' (REQUIRED)' if g.is_required else ''}: {g.reason}"
        for g in critic.genuine_gaps
    )
    validated = "\n".join(f"- {s}" for s in critic.validated_strengths)

    return f"""=== ROUND {round_number} SYNTHESIS ===

=== TARGET JOB ===
{job.to_text()}

=== CURRENT RESUME ===
{resume}

=== ADVOCATE'S VALIDATED CONNECTIONS ===
{connections or "None with high confidence"}

=== ADVOCATE'S PROPOSED REFRAMINGS ===
{reframings or "None proposed"}

=== ADVOCATE'S TERMINOLOGY ALIGNMENTS ===
{terminology or "None identified"}

=== CRITIC'S BLOCKED CLAIMS (DO NOT USE) ===
{blocked or "None blocked"}

=== CRITIC'S SOFTENING REQUESTS ===
{soften or "None"}

=== GENUINE GAPS (CANNOT BE ADDRESSED BY REFRAMING) ===
{gaps or "None identified"}

=== VALIDATED STRENGTHS (USE CONFIDENTLY) ===
{validated or "None explicitly validated"}

Rewrite the resume applying the Advocate's reframings where the Critic did not
challenge them, apply the Critic's corrections and softenings, and never claim
anything the Critic blocked. Produce a complete resume ready for submission."""
