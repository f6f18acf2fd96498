"""Committee - Advocate / Critic / Writer rounds until the resume converges."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from resume_optimizer.clients.llm_client import LLMClient
from resume_optimizer.config import DEFAULT_FAST_MODELS, CommitteeConfig
from resume_optimizer.errors import ResumeOptimizerError, StageError
from resume_optimizer.models.committee import (
    AdvocateAnalysis,
    CommitteeResult,
    CommitteeRound,
    ConsensusState,
    CriticAnalysis,
    DialogueSummary,
    TerminationReason,
)
from resume_optimizer.models.job import JobPosting
from resume_optimizer.pipeline.advocate import Advocate
from resume_optimizer.pipeline.critic import Critic
from resume_optimizer.pipeline.writer import Writer

logger = logging.getLogger(__name__)


class CommitteeState(str, Enum):
    INIT = "init"
    ADVOCATING = "advocating"
    CRITIQUING = "critiquing"
    WRITING = "writing"
    CONTINUE = "continue"
    TERMINATED = "terminated"


def consensus_state(
    advocate_score: float, critic_score: float, round_number: int, threshold: float,
) -> ConsensusState:
    delta = abs(advocate_score - critic_score)
    return ConsensusState(
        advocate_score=advocate_score,
        critic_score=critic_score,
        score_delta=delta,
        is_consensus=delta <= threshold,
        round=round_number,
    )


def decide_termination(
    rounds: list[CommitteeRound], config: CommitteeConfig,
) -> TerminationReason | None:
    """Return why the committee should stop after the last round, or None.

    Checked in precedence order: target reached, consensus (never on the
    first round), round budget, then two consecutive non-improving rounds.
    """
    if not rounds:
        return None
    last = rounds[-1]
    if last.critic.fit_score >= config.target_fit:
        return TerminationReason.TARGET_REACHED
    if len(rounds) >= 2 and last.consensus.score_delta <= config.consensus_threshold:
        return TerminationReason.CONSENSUS
    if len(rounds) >= config.max_rounds:
        return TerminationReason.MAX_ROUNDS
    recent = [r.improvement for r in rounds[-2:]]
    if len(recent) == 2 and all(i is not None and i <= 0 for i in recent):
        return TerminationReason.NO_IMPROVEMENT
    return None


def summarize_dialogue(rounds: list[CommitteeRound]) -> DialogueSummary:
    challenges = [c for r in rounds for c in r.critic.challenges]
    gaps = list(dict.fromkeys(g.requirement for r in rounds for g in r.critic.genuine_gaps))
    return DialogueSummary(
        connections_found=sum(len(r.advocate.connections) for r in rounds),
        challenges_raised=len(challenges),
        challenges_addressable=sum(1 for c in challenges if c.can_be_addressed),
        genuine_gaps=gaps,
        changes_applied=sum(len(r.writer.changes_applied) for r in rounds),
    )


class Committee:
    """Runs the Advocate -> Critic -> Writer loop over a draft resume."""

    def __init__(
        self,
        llm: LLMClient,
        config: CommitteeConfig | None = None,
        *,
        on_round: Callable[[CommitteeRound], None] | None = None,
    ):
        self.config = config or CommitteeConfig()
        primary = self.config.primary_model
        fast = self.config.fast_model
        if self.config.fast_mode and fast is None:
            fast = DEFAULT_FAST_MODELS.get(getattr(llm, "provider", None))
        secondary = fast if self.config.fast_mode and fast else primary
        self.advocate = Advocate(llm, model=primary)
        self.critic = Critic(llm, model=secondary)
        self.writer = Writer(llm, model=secondary)
        self.on_round = on_round
        self.state = CommitteeState.INIT

    def _enter(self, state: CommitteeState, round_number: int) -> None:
        logger.debug("Committee round %d: %s -> %s", round_number, self.state.value, state.value)
        self.state = state

    async def run(self, job: JobPosting, draft: str) -> CommitteeResult:
        """Iterate on ``draft`` until a termination condition holds.

        A failure inside any role aborts the whole run with a StageError
        naming the role and round; no partial round is recorded.
        """
        cfg = self.config
        logger.info(
            "Committee start: max_rounds=%d threshold=%.2f target=%.2f fast_mode=%s",
            cfg.max_rounds, cfg.consensus_threshold, cfg.target_fit, cfg.fast_mode,
        )
        self.state = CommitteeState.INIT
        rounds: list[CommitteeRound] = []
        resume = draft
        previous_critic: CriticAnalysis | None = None
        reason: TerminationReason | None = None

        while reason is None:
            n = len(rounds) + 1

            self._enter(CommitteeState.ADVOCATING, n)
            advocate = await self._run_role(
                "advocate", n, self.advocate.analyze(job, resume, n, previous_critic)
            )
            self._enter(CommitteeState.CRITIQUING, n)
            critic = await self._run_role("critic", n, self.critic.review(job, resume, advocate, n))
            self._enter(CommitteeState.WRITING, n)
            writer = await self._run_role(
                "writer", n, self.writer.rewrite(job, resume, advocate, critic, n)
            )

            improvement = None if previous_critic is None else critic.fit_score - previous_critic.fit_score
            record = CommitteeRound(
                round=n,
                advocate=advocate,
                critic=critic,
                writer=writer,
                consensus=consensus_state(advocate.fit_score, critic.fit_score, n, cfg.consensus_threshold),
                improvement=improvement,
            )
            rounds.append(record)
            logger.info(
                "Round %d: advocate=%.2f critic=%.2f delta=%.2f",
                n, advocate.fit_score, critic.fit_score, record.consensus.score_delta,
            )
            if self.on_round:
                self.on_round(record)

            resume = writer.rewritten_content
            previous_critic = critic
            reason = decide_termination(rounds, cfg)
            self._enter(CommitteeState.TERMINATED if reason else CommitteeState.CONTINUE, n)

        fit_history = [r.critic.fit_score for r in rounds]
        result = CommitteeResult(
            rounds=rounds,
            initial_fit=fit_history[0],
            final_fit=fit_history[-1],
            improvement=fit_history[-1] - fit_history[0],
            termination_reason=reason,
            final_resume=rounds[-1].writer.rewritten_content,
            fit_history=fit_history,
            dialogue_summary=summarize_dialogue(rounds),
        )
        logger.info(
            "Committee done after %d round(s): %s, fit %.2f -> %.2f",
            len(rounds), reason.value, result.initial_fit, result.final_fit,
        )
        return result

    async def analyze(
        self, job: JobPosting, resume: str,
    ) -> tuple[AdvocateAnalysis, CriticAnalysis, ConsensusState]:
        """One Advocate + Critic pass without rewriting."""
        advocate = await self._run_role("advocate", 1, self.advocate.analyze(job, resume))
        critic = await self._run_role("critic", 1, self.critic.review(job, resume, advocate))
        consensus = consensus_state(
            advocate.fit_score, critic.fit_score, 1, self.config.consensus_threshold
        )
        return advocate, critic, consensus

    async def _run_role(self, role: str, round_number: int, call):
        try:
            return await call
        except ResumeOptimizerError as exc:
            logger.error("Committee %s failed in round %d: %s", role, round_number, exc)
            raise StageError(f"committee.{role}", str(exc), round_number=round_number) from exc
