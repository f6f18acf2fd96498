"""Pydantic models for vault content items."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContentType(str, Enum):
    JOB_ENTRY = "job_entry"
    ACCOMPLISHMENT = "accomplishment"
    SKILL = "skill"
    EDUCATION = "education"
    CERTIFICATION = "certification"
    JOB_TITLE = "job_title"
    JOB_LOCATION = "job_location"
    JOB_DURATION = "job_duration"

    @classmethod
    def _missing_(cls, value):
        # accept "job-entry" spellings
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        return None


# Fragments of a job entry; they enrich the parent job and are never selected alone
JOB_FRAGMENT_TYPES = frozenset(
    {ContentType.JOB_TITLE, ContentType.JOB_LOCATION, ContentType.JOB_DURATION}
)


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: str  # ISO date, "2019-03" or "2019-03-01"
    end: str | None = None  # None = ongoing

    @property
    def is_current(self) -> bool:
        return self.end is None or self.end.lower() in ("present", "current")

    def end_date(self, today: date | None = None) -> date | None:
        """Parsed end date; ongoing ranges end ``today``."""
        if self.is_current:
            return today or date.today()
        return parse_partial_date(self.end)

    def start_date(self) -> date | None:
        return parse_partial_date(self.start)


def parse_partial_date(value: str | None) -> date | None:
    """Parse "2020", "2020-05" or "2020-05-17"; None if unparseable."""
    if not value:
        return None
    parts = value.strip().split("-")
    try:
        year = int(parts[0])
        month = int(parts[1]) if len(parts) > 1 else 1
        day = int(parts[2][:2]) if len(parts) > 2 else 1
        return date(year, month, day)
    except (ValueError, IndexError):
        return None


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: str | None = None
    state: str | None = None
    country: str | None = None

    def display(self) -> str:
        return ", ".join(p for p in (self.city, self.state, self.country) if p)


class ContentMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    date_range: DateRange | None = None
    location: Location | None = None
    company: str | None = None
    proficiency: str | None = None
    notes: str | None = None
    custom_fields: dict = Field(default_factory=dict)


class ContentItem(BaseModel):
    """A single vault entry. Items are never mutated by optimization."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: ContentType
    content: str
    tags: frozenset[str] = frozenset()
    metadata: ContentMetadata = Field(default_factory=ContentMetadata)
    parent_id: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        if value is None:
            return frozenset()
        return frozenset(str(t).strip() for t in value if str(t).strip())
