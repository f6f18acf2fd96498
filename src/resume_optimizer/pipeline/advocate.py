"""Committee role 1: Advocate - Argues for the candidate's fit."""

from __future__ import annotations

from resume_optimizer.clients.llm_client import LLMClient
from resume_optimizer.models.committee import AdvocateAnalysis, CriticAnalysis
from resume_optimizer.models.job import JobPosting
from resume_optimizer.utils.json_parser import validate_payload

SYSTEM_PROMPT = """\
You are the ADVOCATE in a resume optimization committee. Find every legitimate way
this candidate is qualified for the job and present the strongest honest case.

How you work:
- Generous in interpretation: if something could demonstrate a qualification, say so
- Specificity-obsessed: concrete details are evidence, never trade them for vague language
- Truthful: you surface real connections, you never invent experience

THE AUGMENTATION PRINCIPLE
When suggesting terminology changes, ADD the job's language alongside the resume's
specific content. Never REPLACE specifics with generic keywords.
- Prepend: "conducted genome-wide CRISPR screens" -> "conducted high-throughput genome-wide CRISPR screens"
- Parenthetical: "CRISPR-Cas9-mediated repair" -> "genome editing (CRISPR-Cas9-mediated repair)"
- Keep: content that already exceeds the requirement stays as written

What you look for:
1. Direct matches that only need to be visible and well positioned
2. Inferred skills grounded in what the candidate actually did (led a team -> leadership)
3. Terminology where the resume says the same thing in different words
4. Transferable experience, generously but honestly

Scoring guidance for fit_score:
- 0.85-1.0 strong fit, 0.70-0.85 good fit, 0.55-0.70 moderate fit,
  0.40-0.55 stretch fit, below 0.40 weak fit.
Different terminology for the same skill should still score high; missing
experience is the real gap.

Respond with JSON only:
{
  "fit_score": 0.0,
  "assessment": "2-3 sentence assessment",
  "connections": [
    {"job_requirement": "...", "resume_evidence": "exact quote", "connection_strength": "strong|moderate|inferred|transferable",
     "confidence": 0.0, "reasoning": "...", "suggested_framing": "optional, must keep original content"}
  ],
  "strengths": ["..."],
  "reframing_opportunities": [
    {"current_content": "exact text", "suggested_reframe": "augmented text keeping every original specific",
     "job_requirement_addressed": "...", "rationale": "...", "priority": "high|medium|low"}
  ],
  "terminology_alignments": [{"resume_term": "...", "job_term": "...", "context": "..."}],
  "claimed_qualifications": ["..."]
}"""

FEEDBACK_PROMPT = """

RESPONDING TO THE CRITIC (round {round}):
- If a challenge is valid, acknowledge it and adjust your assessment
- If a challenge misses context, defend your position with evidence
- If the Critic flagged blandification, revise that suggestion to use augmentation
- Look for new connections you missed earlier"""


class Advocate:
    def __init__(
        self,
        llm: LLMClient,
        model: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 4000,
    ):
        self.llm = llm
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def analyze(
        self,
        job: JobPosting,
        resume: str,
        round_number: int = 1,
        previous_critic: CriticAnalysis | None = None,
    ) -> AdvocateAnalysis:
        """Build the strongest honest case for the candidate."""
        system = SYSTEM_PROMPT
        if previous_critic is not None:
            system += FEEDBACK_PROMPT.format(round=round_number)

        prompt = f"""=== ROUND {round_number} ===

=== JOB POSTING ===
{job.to_text()}

=== RESUME ===
{resume}

"""
        if previous_critic is not None:
            prompt += _format_critic_feedback(previous_critic)
        else:
            prompt += (
                "Analyze this resume against the job posting. Find all connections, "
                "including inferred and transferable skills."
            )

        data = await self.llm.generate_json(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return validate_payload(data, AdvocateAnalysis, "advocate analysis")


def _format_critic_feedback(critic: CriticAnalysis) -> str:
    agreements = "\n".join(f"- {a}" for a in critic.agreements) or "None stated"
    challenges = "\n".join(
        f"- [{c.severity.upper()}] {c.type}: {c.claim}\n  Issue: {c.issue}" for c in critic.challenges
    ) or "None"
    gaps = "\n".join(
        f"- {g.requirement}{' (REQUIRED)' if g.is_required else ''}: {g.reason}"
        for g in critic.genuine_gaps
    ) or "None"
    return f"""=== CRITIC'S PREVIOUS FEEDBACK ===
Critic's score: {critic.fit_score:.0%}
Assessment: {critic.assessment}

Agreements with your analysis:
{agreements}

Challenges to your analysis:
{challenges}

Genuine gaps identified:
{gaps}

Respond to this feedback. Defend valid connections, acknowledge fair criticism, and look for new evidence."""
