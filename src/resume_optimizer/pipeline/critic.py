"""Committee role 2: Critic - Checks the Advocate's claims against the evidence."""

from __future__ import annotations

from resume_optimizer.clients.llm_client import LLMClient
from resume_optimizer.models.committee import AdvocateAnalysis, CriticAnalysis
from resume_optimizer.models.job import JobPosting
from resume_optimizer.utils.json_parser import validate_payload

SYSTEM_PROMPT = """\
You are the CRITIC in a resume optimization committee. You are quality control:
the final resume must be both accurate and impressive.

Your two missions:
1. VERIFY ACCURACY: claimed connections must be grounded in resume evidence
2. PROTECT QUALITY: flag suggestions that would make the resume less impressive

Challenge types:
- overclaim: the Advocate claimed something the resume does not support (usually critical or major)
- unsupported: an inferred skill without sufficient evidence (major if central, minor if peripheral)
- missing: a requirement nothing in the resume addresses
- weak_evidence: thin support that could backfire in an interview (usually minor)
- terminology_gap: job language that could be added but was not suggested (usually minor)
- blandification: a suggestion that replaces specific, impressive content with generic terms.
  Catching this matters as much as catching overclaims.

Genuine gaps are requirements the candidate truly lacks (a required certification,
years of experience, domain knowledge shown nowhere). Mark is_required for must-haves.

Scoring: start from the Advocate's score, subtract 0.05-0.15 per major overclaim or
unsupported inference and 0.10-0.20 per genuine gap in a required qualification.
Do not subtract for nice-to-have gaps, valid inferences, fixable terminology, or blandification.
If the Advocate's claims are well supported, agree.

Respond with JSON only:
{
  "fit_score": 0.0,
  "assessment": "2-3 sentences on accuracy and quality of the proposed changes",
  "agreements": ["..."],
  "challenges": [
    {"type": "overclaim|unsupported|missing|weak_evidence|terminology_gap|blandification",
     "claim": "...", "issue": "...", "evidence": "...", "severity": "critical|major|minor",
     "can_be_addressed": true, "suggested_fix": "..."}
  ],
  "validated_strengths": ["..."],
  "genuine_gaps": [{"requirement": "...", "reason": "...", "is_required": true}],
  "overclaim_corrections": ["..."],
  "blocking_issues": ["..."]
}"""

REVISION_PROMPT = """

REVIEWING A REVISED RESUME (round {round}):
Verify that earlier overclaims and blandification were fixed, new claims are supported,
and the Writer added job terms rather than substituting away specific content."""


class Critic:
    def __init__(
        self,
        llm: LLMClient,
        model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 4000,
    ):
        self.llm = llm
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def review(
        self,
        job: JobPosting,
        resume: str,
        advocate: AdvocateAnalysis,
        round_number: int = 1,
    ) -> CriticAnalysis:
        """Challenge the Advocate's analysis and score the resume's real fit."""
        system = SYSTEM_PROMPT
        if round_number > 1:
            system += REVISION_PROMPT.format(round=round_number)

        connections = "\n".join(
            f"- [{c.connection_strength.upper()}, {c.confidence:.0%}] {c.job_requirement}\n"
            f"  Evidence: \"{c.resume_evidence}\"\n  Reasoning: {c.reasoning}"
            for c in advocate.connections
        ) or "None"
        reframings = "\n".join(
            f"- [{r.priority.upper()}] \"{r.current_content}\" -> \"{r.suggested_reframe}\"\n"
            f"  Addresses: {r.job_requirement_addressed}"
            for r in advocate.reframing_opportunities
        ) or "None"
        claimed = "\n".join(f"- {q}" for q in advocate.claimed_qualifications) or "None"

        prompt = f"""=== ROUND {round_number} ===

=== JOB POSTING ===
{job.to_text()}

=== RESUME ===
{resume}

=== ADVOCATE'S ANALYSIS ===
Advocate's score: {advocate.fit_score:.0%}
Assessment: {advocate.assessment}

Connections claimed:
{connections}

Reframing suggestions:
{reframings}

Qualifications claimed:
{claimed}

Review the Advocate's analysis. Verify each claim against the resume and flag
overclaims, weak evidence, genuine gaps and blandification."""

        data = await self.llm.generate_json(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return validate_payload(data, CriticAnalysis, "critic analysis")
