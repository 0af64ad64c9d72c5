"""
Project API schemas (request models).
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from blogs.schemas import Seo, split_tags

ProjectCategory = Literal["web", "mobile", "desktop", "ai/ml", "data-science", "other"]
ProjectStatus = Literal["planning", "in-progress", "completed", "on-hold", "cancelled"]
ProjectPriority = Literal["low", "medium", "high"]
ProjectSort = Literal["newest", "oldest", "order", "title", "year"]

MIN_PROJECT_YEAR = 2020
DEMO_URL_PATTERN = r"^https?://.+"
GITHUB_URL_PATTERN = r"^https?://(www\.)?github\.com/.+"


def split_list(value: object) -> object:
    """
    Accept `"a, b"` as well as `["a", "b"]`; trims, keeps case.
    """
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return value


def check_year(value: int | None) -> int | None:
    if value is None:
        return value
    latest = datetime.now(timezone.utc).year + 1
    if not MIN_PROJECT_YEAR <= value <= latest:
        raise ValueError(f"Year must be between {MIN_PROJECT_YEAR} and {latest}.")
    return value


class Challenge(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    solution: str | None = None


class OtherMetric(BaseModel):
    metric: str
    value: str


class Metrics(BaseModel):
    performance: str | None = None
    users: int | None = Field(default=None, ge=0)
    other: list[OtherMetric] = Field(default_factory=list)


class ProjectImage(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    url: str = Field(..., min_length=1, max_length=2000)
    alt: str = Field(default="", max_length=300)
    caption: str = Field(default="", max_length=500)
    is_primary: bool = False


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    long_description: str | None = Field(default=None, max_length=2000)
    category: ProjectCategory = "web"
    status: ProjectStatus = "completed"
    priority: ProjectPriority = "medium"
    technologies: list[str] = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)
    images: list[ProjectImage] = Field(default_factory=list)
    demo_url: str | None = Field(default=None, pattern=DEMO_URL_PATTERN)
    github_url: str | None = Field(default=None, pattern=GITHUB_URL_PATTERN)
    year: int
    start_date: date | None = None
    end_date: date | None = None
    team_size: int = Field(default=1, ge=1)
    my_role: str | None = Field(default=None, max_length=100)
    challenges: list[Challenge] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    learnings: list[str] = Field(default_factory=list)
    metrics: Metrics = Field(default_factory=Metrics)
    is_published: bool = True
    is_featured: bool = False
    order: int = 0
    seo: Seo = Field(default_factory=Seo)

    @field_validator("technologies", "features", "learnings", mode="before")
    @classmethod
    def _split_list(cls, value: object) -> object:
        return split_list(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: object) -> object:
        return split_tags(value)

    @field_validator("year")
    @classmethod
    def _check_year(cls, value: int) -> int:
        return check_year(value)


class ProjectUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1, max_length=500)
    long_description: str | None = Field(default=None, max_length=2000)
    category: ProjectCategory | None = None
    status: ProjectStatus | None = None
    priority: ProjectPriority | None = None
    technologies: list[str] | None = Field(default=None, min_length=1)
    tags: list[str] | None = None
    demo_url: str | None = Field(default=None, pattern=DEMO_URL_PATTERN)
    github_url: str | None = Field(default=None, pattern=GITHUB_URL_PATTERN)
    year: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    team_size: int | None = Field(default=None, ge=1)
    my_role: str | None = Field(default=None, max_length=100)
    challenges: list[Challenge] | None = None
    features: list[str] | None = None
    learnings: list[str] | None = None
    metrics: Metrics | None = None
    is_published: bool | None = None
    is_featured: bool | None = None
    order: int | None = None
    seo: Seo | None = None

    @field_validator("technologies", "features", "learnings", mode="before")
    @classmethod
    def _split_list(cls, value: object) -> object:
        return split_list(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: object) -> object:
        return split_tags(value)

    @field_validator("year")
    @classmethod
    def _check_year(cls, value: int | None) -> int | None:
        return check_year(value)
