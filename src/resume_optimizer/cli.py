"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from resume_optimizer.cache.llm_cache import LLMCache
from resume_optimizer.clients.llm_client import LLMClient, create_llm_client
from resume_optimizer.config import AppConfig, PipelineConfig, load_config
from resume_optimizer.errors import ResumeOptimizerError
from resume_optimizer.logging.cost_calculator import calculate_cost
from resume_optimizer.logging.models import UsageLog
from resume_optimizer.logging.usage_store import UsageStore
from resume_optimizer.models.selection import SelectionResult
from resume_optimizer.parsers.job_parser import load_job_file
from resume_optimizer.parsers.vault_loader import FileVaultStore
from resume_optimizer.pipeline.orchestrator import PipelineOrchestrator

app = typer.Typer(
    name="resume-optimizer",
    help="Select vault content for a job posting and refine it with an LLM committee",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _require_file(path: Path, label: str) -> None:
    if not path.exists():
        console.print(f"[red]{label} not found: {path}[/red]")
        raise typer.Exit(1)


def pipeline_config_for(
    config: AppConfig, *, fast: bool | None = None, skip_committee: bool = False,
) -> PipelineConfig:
    """Fill committee model names from the LLM section and apply CLI flags."""
    committee = replace(
        config.pipeline.committee,
        primary_model=config.pipeline.committee.primary_model or config.llm.resolved_model,
        fast_model=config.pipeline.committee.fast_model or config.llm.resolved_fast_model,
    )
    if fast is not None:
        committee = replace(committee, fast_mode=fast)
    return replace(
        config.pipeline,
        committee=committee,
        skip_committee=skip_committee or config.pipeline.skip_committee,
    )


def _build(config: AppConfig, **kwargs) -> tuple[LLMClient, PipelineOrchestrator]:
    llm = create_llm_client(config, cache=LLMCache.from_config(config.cache))
    return llm, PipelineOrchestrator(llm, pipeline_config_for(config, **kwargs))


def _record_usage(config: AppConfig, llm: LLMClient, log: UsageLog) -> None:
    tokens = llm.get_token_summary()
    log.total_input_tokens = tokens["input"]
    log.total_output_tokens = tokens["output"]
    log.estimated_cost_usd = calculate_cost(tokens["calls"])
    log.provider = config.llm.provider
    try:
        UsageStore(config.usage.resolved_db_path).save_log(log)
    except sqlite3.Error:
        logger.warning("Could not record usage", exc_info=True)


def _print_selection(selection: SelectionResult) -> None:
    grouped = selection.grouped_items
    console.print(
        Panel(
            f"Jobs: {len(grouped.jobs)} | Accomplishments: {len(grouped.accomplishments)} | "
            f"Skills: {len(grouped.skills)} | Education: {len(grouped.education)} | "
            f"Certifications: {len(grouped.certifications)}\n"
            f"Coverage: [bold]{selection.coverage_score:.0%}[/bold]",
            title="Selection",
        )
    )
    if selection.unmatched_requirements:
        console.print("\n[yellow]Unmatched requirements:[/yellow]")
        for req in selection.unmatched_requirements:
            console.print(f"  - {req.text} [dim]({req.importance}, {req.type})[/dim]")
    if selection.warnings:
        console.print("\n[yellow]Warnings:[/yellow]")
        for warning in selection.warnings:
            console.print(f"  - {warning}")


def _write_output(output: Path | None, default_name: str, text: str) -> Path:
    if output is None:
        output = Path("./output") / default_name.replace(" ", "_")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    console.print(f"\n[green]Saved: {output}[/green]")
    return output


@app.command()
def optimize(
    job: Path = typer.Option(..., "--job", help="Job posting file (.yaml/.json/.txt)"),
    vault: Path = typer.Option(..., "--vault", help="Content vault file (.yaml/.json)"),
    output: Path = typer.Option(None, "--output", "-o", help="Output markdown path"),
    fast: bool = typer.Option(None, "--fast/--no-fast", help="Use the fast model for Critic and Writer"),
    skip_committee: bool = typer.Option(False, "--skip-committee", help="Stop after selection"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Build an optimized resume for a job from the vault."""
    _setup_logging(verbose)
    _require_file(job, "Job posting")
    _require_file(vault, "Vault")

    config = load_config()
    posting = load_job_file(job)
    items = FileVaultStore(vault).list_content_items()
    llm, orchestrator = _build(config, fast=fast, skip_committee=skip_committee)
    log = UsageLog(mode="optimize", job_title=posting.title)
    start = time.monotonic()

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Optimizing resume...", total=None)

            def on_phase(phase: str, detail: str) -> None:
                progress.update(task, description=detail)

            result = asyncio.run(orchestrator.run(posting, items, on_phase=on_phase))
    except ResumeOptimizerError as exc:
        log.success = False
        log.error_message = str(exc)
        log.elapsed_seconds = time.monotonic() - start
        _record_usage(config, llm, log)
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    _write_output(output, f"{posting.id or posting.title}.md", result.final_resume)
    _print_selection(result.selection)

    metrics = result.metrics
    body = (
        f"Vault items: {metrics.vault_items_considered} | Selected: {metrics.items_selected}\n"
        f"Initial fit estimate: {metrics.initial_fit_estimate:.0%} | "
        f"[bold]Final fit: {metrics.final_fit:.0%}[/bold]\n"
        f"Time: {metrics.processing_time_ms / 1000:.1f}s"
    )
    if result.committee:
        body += (
            f"\nRounds: {result.committee.round_count} "
            f"({result.committee.termination_reason.value})"
        )
    if result.committee_error:
        body += f"\n[yellow]Committee error: {result.committee_error}[/yellow]"
    console.print(Panel(body, title="Result"))

    log.coverage = metrics.requirements_coverage
    log.initial_fit = metrics.initial_fit_estimate
    log.final_fit = metrics.final_fit
    if result.committee:
        log.rounds = result.committee.round_count
        log.termination_reason = result.committee.termination_reason.value
    log.elapsed_seconds = time.monotonic() - start
    _record_usage(config, llm, log)


@app.command()
def select(
    job: Path = typer.Option(..., "--job", help="Job posting file"),
    vault: Path = typer.Option(..., "--vault", help="Content vault file"),
    output: Path = typer.Option(None, "--output", "-o", help="Output markdown path for the draft"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Run content selection only and show coverage."""
    _setup_logging(verbose)
    _require_file(job, "Job posting")
    _require_file(vault, "Vault")

    config = load_config()
    posting = load_job_file(job)
    items = FileVaultStore(vault).list_content_items()
    llm, orchestrator = _build(config)
    start = time.monotonic()

    with console.status("Selecting content..."):
        try:
            selection = asyncio.run(orchestrator.select_only(posting, items))
        except ResumeOptimizerError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1)

    if selection.draft_resume:
        _write_output(output, f"{posting.id or posting.title}_draft.md", selection.draft_resume)
    _print_selection(selection)

    _record_usage(config, llm, UsageLog(
        mode="select",
        job_title=posting.title,
        coverage=selection.coverage_score,
        elapsed_seconds=time.monotonic() - start,
    ))


@app.command()
def refine(
    job: Path = typer.Option(..., "--job", help="Job posting file"),
    resume: Path = typer.Option(..., "--resume", help="Existing resume (markdown or text)"),
    output: Path = typer.Option(None, "--output", "-o", help="Output markdown path"),
    fast: bool = typer.Option(None, "--fast/--no-fast", help="Use the fast model for Critic and Writer"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Run the committee on an existing resume."""
    _setup_logging(verbose)
    _require_file(job, "Job posting")
    _require_file(resume, "Resume")

    config = load_config()
    posting = load_job_file(job)
    llm, orchestrator = _build(config, fast=fast)
    start = time.monotonic()

    with console.status("Refining resume..."):
        try:
            result = asyncio.run(
                orchestrator.optimize_existing(posting, resume.read_text(encoding="utf-8"))
            )
        except ResumeOptimizerError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1)

    _write_output(output, f"{posting.id or posting.title}_refined.md", result.final_resume)
    console.print(Panel(
        f"Fit: {result.initial_fit:.0%} -> [bold]{result.final_fit:.0%}[/bold]\n"
        f"Rounds: {result.round_count} ({result.termination_reason.value})\n"
        f"Changes applied: {result.dialogue_summary.changes_applied}",
        title="Committee",
    ))
    if result.dialogue_summary.genuine_gaps:
        console.print("\n[yellow]Genuine gaps:[/yellow]")
        for gap in result.dialogue_summary.genuine_gaps:
            console.print(f"  - {gap}")

    _record_usage(config, llm, UsageLog(
        mode="refine",
        job_title=posting.title,
        initial_fit=result.initial_fit,
        final_fit=result.final_fit,
        rounds=result.round_count,
        termination_reason=result.termination_reason.value,
        elapsed_seconds=time.monotonic() - start,
    ))


@app.command()
def analyze(
    job: Path = typer.Option(..., "--job", help="Job posting file"),
    resume: Path = typer.Option(..., "--resume", help="Resume to analyze"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """One Advocate/Critic pass without rewriting."""
    _setup_logging(verbose)
    _require_file(job, "Job posting")
    _require_file(resume, "Resume")

    config = load_config()
    posting = load_job_file(job)
    llm, orchestrator = _build(config)

    with console.status("Analyzing fit..."):
        try:
            advocate, critic, consensus = asyncio.run(
                orchestrator.analyze(posting, resume.read_text(encoding="utf-8"))
            )
        except ResumeOptimizerError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1)

    table = Table(title="Fit analysis")
    table.add_column("Role")
    table.add_column("Score", justify="right")
    table.add_column("Assessment")
    table.add_row("Advocate", f"{advocate.fit_score:.0%}", advocate.assessment)
    table.add_row("Critic", f"{critic.fit_score:.0%}", critic.assessment)
    console.print(table)
    console.print(
        f"Consensus: {'yes' if consensus.is_consensus else 'no'} (delta {consensus.score_delta:.0%})"
    )
    for gap in critic.genuine_gaps:
        console.print(f"  - [yellow]{gap.requirement}[/yellow]{' (required)' if gap.is_required else ''}: {gap.reason}")

    _record_usage(config, llm, UsageLog(
        mode="analyze",
        job_title=posting.title,
        initial_fit=critic.fit_score,
        final_fit=critic.fit_score,
    ))


@app.command()
def usage() -> None:
    """Show this month's usage and cost."""
    config = load_config()
    store = UsageStore(config.usage.resolved_db_path)
    stats = store.get_monthly_stats()
    avg_fit = f"{stats['avg_final_fit']:.0%}" if stats["avg_final_fit"] is not None else "-"
    console.print(Panel(
        f"Runs: {stats['total_runs']} | Success rate: {stats['success_rate']:.0f}%\n"
        f"Tokens: {stats['total_input_tokens']:,} in / {stats['total_output_tokens']:,} out\n"
        f"Average final fit: {avg_fit}\n"
        f"Cost this month: ${stats['total_cost_usd']:.4f} | All time: ${store.get_total_cost():.4f}",
        title=f"Usage {stats['month']}",
    ))


if __name__ == "__main__":
    app()
