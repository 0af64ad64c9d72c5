"""
Blog post API schemas (request models).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

BLOG_CATEGORIES = (
    "web-development",
    "mobile-development",
    "ai-ml",
    "data-science",
    "programming-tips",
    "career",
    "tutorials",
    "technology-trends",
    "personal",
    "other",
)

BlogCategory = Literal[
    "web-development",
    "mobile-development",
    "ai-ml",
    "data-science",
    "programming-tips",
    "career",
    "tutorials",
    "technology-trends",
    "personal",
    "other",
]
PostStatus = Literal["draft", "published", "archived"]
PostSort = Literal["newest", "oldest", "popular", "title"]


def split_tags(value: object) -> object:
    """
    Accept `"a, b"` as well as `["a", "b"]`; trims and lowercases.
    """
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, list):
        return [str(tag).strip().lower() for tag in value if str(tag).strip()]
    return value


class FeaturedImage(BaseModel):
    url: str = Field(..., min_length=1, max_length=2000)
    alt: str = Field(default="", max_length=300)
    caption: str = Field(default="", max_length=500)


class Seo(BaseModel):
    meta_title: str | None = Field(default=None, max_length=60)
    meta_description: str | None = Field(default=None, max_length=160)
    keywords: list[str] = Field(default_factory=list)
    canonical_url: str | None = Field(default=None, pattern=r"^https?://.+")


class Series(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    part: int | None = Field(default=None, ge=1)
    total_parts: int | None = Field(default=None, ge=1)


class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=150)
    excerpt: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    category: BlogCategory
    tags: list[str] = Field(..., min_length=1)
    status: PostStatus = "draft"
    featured_image: FeaturedImage | None = None
    is_sticky: bool = False
    is_featured: bool = False
    order: int = 0
    related_post_ids: list[int] = Field(default_factory=list)
    seo: Seo = Field(default_factory=Seo)
    series: Series | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: object) -> object:
        return split_tags(value)


class PostUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=150)
    excerpt: str | None = Field(default=None, min_length=1, max_length=300)
    content: str | None = Field(default=None, min_length=1)
    category: BlogCategory | None = None
    tags: list[str] | None = Field(default=None, min_length=1)
    status: PostStatus | None = None
    featured_image: FeaturedImage | None = None
    is_sticky: bool | None = None
    is_featured: bool | None = None
    order: int | None = None
    related_post_ids: list[int] | None = None
    seo: Seo | None = None
    series: Series | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: object) -> object:
        return split_tags(value)
