"""Assemble selected vault content into a markdown draft resume."""

from __future__ import annotations

import re
from datetime import date

from resume_optimizer.models.job import ParsedRequirements
from resume_optimizer.models.selection import GroupedItems, ScoredItem
from resume_optimizer.models.vault import ContentItem, ContentType, DateRange, Location

_TITLE_RE = re.compile(r"^([^-–|•\n]+)")
_DOMESTIC = {"usa", "us", "united states"}


def build_draft_resume(
    grouped: GroupedItems,
    requirements: ParsedRequirements,
    fragments: dict[str, list[ContentItem]] | None = None,
    today: date | None = None,
) -> str:
    """Render the grouped selection as markdown.

    ``fragments`` maps a job entry id to its job_title / job_location /
    job_duration items, which override what is parsed from the job text.
    The output depends only on the arguments.
    """
    fragments = fragments or {}
    sections = [
        _summary_section(grouped, requirements, today),
        _experience_section(grouped, fragments),
        _unattached_section(grouped),
        _skills_section(grouped.skills),
        _education_section(grouped.education),
        _certifications_section(grouped.certifications),
    ]
    return "\n\n".join(s for s in sections if s)


def _summary_section(grouped: GroupedItems, requirements: ParsedRequirements, today: date | None) -> str:
    parts = []
    years = years_of_experience([s.item for s in grouped.jobs], today)
    if years > 0:
        parts.append(f"{years}+ years of experience")
    if requirements.domain:
        parts.append(f"in {requirements.domain}")
    top_skills = [s.item.content for s in grouped.skills[:3]]
    if top_skills:
        parts.append(f"with expertise in {', '.join(top_skills)}")

    lines = []
    if parts:
        sentence = " ".join(parts)
        lines.append(sentence[0].upper() + sentence[1:] + ".")
    if requirements.themes:
        lines.append(f"Background in {' and '.join(requirements.themes[:2])}.")

    top = sorted(grouped.accomplishments, key=lambda s: -s.relevance_score)[:3]
    if top:
        if lines:
            lines.append("")
        lines.append("Key achievements:")
        lines.extend(f"- {s.item.content}" for s in top)

    if not lines:
        return ""
    return "## Professional Summary\n\n" + "\n".join(lines)


def _experience_section(grouped: GroupedItems, fragments: dict[str, list[ContentItem]]) -> str:
    if not grouped.jobs:
        return ""
    jobs = sorted(grouped.jobs, key=_start_key, reverse=True)
    blocks = [_format_job(job, grouped.accomplishments, fragments.get(job.item.id, [])) for job in jobs]
    return "## Professional Experience\n\n" + "\n\n".join(blocks)


def _unattached_section(grouped: GroupedItems) -> str:
    job_ids = {s.item.id for s in grouped.jobs}
    loose = [a for a in grouped.accomplishments if a.item.parent_id not in job_ids]
    if not loose:
        return ""
    loose.sort(key=lambda s: -s.relevance_score)
    return "## Additional Accomplishments\n\n" + "\n".join(f"- {a.item.content}" for a in loose)


def _format_job(job: ScoredItem, accomplishments: list[ScoredItem], parts: list[ContentItem]) -> str:
    item = job.item
    title = _fragment(parts, ContentType.JOB_TITLE) or extract_job_title(item.content)
    company = item.metadata.company or ""
    location = _fragment(parts, ContentType.JOB_LOCATION) or format_location(item.metadata.location)
    dates = format_date_range(item.metadata.date_range) or _fragment(parts, ContentType.JOB_DURATION)

    lines = [f"### {title}" + (f" | {company}" if company else "")]
    subtitle = " | ".join(p for p in (location, dates) if p)
    if subtitle:
        lines.append(f"*{subtitle}*")
    lines.append("")

    own = sorted(
        (a for a in accomplishments if a.item.parent_id == item.id),
        key=lambda s: -s.relevance_score,
    )
    if own:
        lines.extend(f"- {a.item.content}" for a in own)
    elif item.content.strip() and item.content.strip() != title:
        lines.append(f"- {item.content.strip()}")
    return "\n".join(lines).rstrip()


def _skills_section(skills: list[ScoredItem]) -> str:
    if not skills:
        return ""
    levels: dict[str, list[str]] = {"Expert": [], "Proficient": [], "Familiar": [], "Additional": []}
    for skill in skills:
        proficiency = (skill.item.metadata.proficiency or "").lower()
        if "expert" in proficiency or "advanced" in proficiency:
            levels["Expert"].append(skill.item.content)
        elif "proficient" in proficiency or "intermediate" in proficiency:
            levels["Proficient"].append(skill.item.content)
        elif "familiar" in proficiency or "basic" in proficiency:
            levels["Familiar"].append(skill.item.content)
        else:
            levels["Additional"].append(skill.item.content)

    if levels["Expert"] or levels["Proficient"]:
        body = "\n".join(f"**{level}:** {', '.join(names)}" for level, names in levels.items() if names)
    else:
        body = " • ".join(levels["Familiar"] + levels["Additional"])
    return "## Skills\n\n" + body


def _education_section(education: list[ScoredItem]) -> str:
    if not education:
        return ""
    blocks = []
    for edu in sorted(education, key=_start_key, reverse=True):
        lines = [f"**{edu.item.content}**"]
        subtitle = " | ".join(
            p for p in (format_location(edu.item.metadata.location), format_date_range(edu.item.metadata.date_range)) if p
        )
        if subtitle:
            lines.append(f"*{subtitle}*")
        blocks.append("\n".join(lines))
    return "## Education\n\n" + "\n\n".join(blocks)


def _certifications_section(certifications: list[ScoredItem]) -> str:
    if not certifications:
        return ""
    lines = []
    for cert in certifications:
        date_range = cert.item.metadata.date_range
        if date_range and date_range.start:
            lines.append(f"- {cert.item.content} ({_year(date_range.start)})")
        else:
            lines.append(f"- {cert.item.content}")
    return "## Certifications\n\n" + "\n".join(lines)


def _fragment(parts: list[ContentItem], kind: ContentType) -> str:
    for part in parts:
        if part.type == kind and part.content.strip():
            return part.content.strip()
    return ""


def _start_key(scored: ScoredItem) -> str:
    date_range = scored.item.metadata.date_range
    return date_range.start if date_range else ""


def _year(value: str) -> str:
    return value.split("-")[0]


def extract_job_title(content: str) -> str:
    """Job title is the text before the first dash, pipe or bullet."""
    match = _TITLE_RE.match(content.strip())
    if match and match.group(1).strip():
        return match.group(1).strip()
    return content.strip().split("\n")[0]


def format_location(location: Location | None) -> str:
    if location is None:
        return ""
    parts = [location.city, location.state]
    if location.country and location.country.lower() not in _DOMESTIC:
        parts.append(location.country)
    return ", ".join(p for p in parts if p)


def format_date_range(date_range: DateRange | None) -> str:
    if date_range is None or not date_range.start:
        return ""
    if date_range.is_current:
        return f"{_year(date_range.start)} - Present"
    return f"{_year(date_range.start)} - {_year(date_range.end)}"


def years_of_experience(jobs: list[ContentItem], today: date | None = None) -> int:
    """Whole years from the earliest job start to the latest job end."""
    starts, ends = [], []
    for job in jobs:
        date_range = job.metadata.date_range
        if date_range is None:
            continue
        start, end = date_range.start_date(), date_range.end_date(today)
        if start and end:
            starts.append(start)
            ends.append(end)
    if not starts:
        return 0
    return max(0, (max(ends) - min(starts)).days // 365)
