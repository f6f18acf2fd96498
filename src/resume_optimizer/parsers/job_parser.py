"""Load job postings from YAML, JSON or plain-text files."""

from __future__ import annotations

import json
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from resume_optimizer.errors import InvalidRequest
from resume_optimizer.models.job import JobPosting

_SECTION_RE = re.compile(
    r"^(requirements|required|qualifications|preferred qualifications|nice to have)\s*:?\s*$",
    re.IGNORECASE,
)
_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+")


def clean_text(text: str) -> str:
    """Clean and normalize job description text."""
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    lines = [line.strip() for line in text.splitlines()]
    return "\n".join(lines).strip()


def parse_job_text(text: str, job_id: str = "") -> JobPosting:
    """Split plain text into title, description, requirements and qualifications.

    The first non-empty line is the title. Lines under a "Requirements:" or
    "Qualifications:" heading become list entries; everything else is
    description.
    """
    lines = clean_text(text).splitlines()
    title = ""
    description: list[str] = []
    requirements: list[str] = []
    qualifications: list[str] = []
    target = description

    for line in lines:
        if not title and line:
            title = line
            continue
        heading = _SECTION_RE.match(line)
        if heading:
            name = heading.group(1).lower()
            target = requirements if name in ("requirements", "required") else qualifications
            continue
        if not line:
            if target is description and description:
                description.append("")
            continue
        if target is description:
            description.append(line)
        else:
            target.append(_BULLET_RE.sub("", line))

    return JobPosting(
        id=job_id,
        title=title,
        description="\n".join(description).strip(),
        requirements=requirements,
        qualifications=qualifications,
    )


def load_job_file(file_path: str | Path) -> JobPosting:
    """Load a job posting; .yaml/.yml/.json are structured, anything else is text."""
    path = Path(file_path)
    raw = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix not in (".yaml", ".yml", ".json"):
        return parse_job_text(raw, job_id=path.stem)

    data = json.loads(raw) if suffix == ".json" else yaml.safe_load(raw)
    if not isinstance(data, dict):
        raise InvalidRequest(f"Job file {path} must contain a mapping")
    data.setdefault("id", path.stem)
    for key in ("requirements", "qualifications"):
        if isinstance(data.get(key), str):
            data[key] = [line for line in data[key].splitlines() if line.strip()]
    try:
        return JobPosting(**data)
    except ValidationError as exc:
        raise InvalidRequest(f"Invalid job posting in {path}: {exc}") from exc
