"""Data models for the article workflows."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

Tone = Literal["casual", "business", "technical"]

DEFAULT_TONE: Tone = "casual"
DEFAULT_TARGET_LENGTH = 2000


def count_characters(text: str) -> int:
    """Count non-whitespace characters, the unit used for article length."""
    return sum(1 for char in text if not char.isspace())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArticleRequest(BaseModel):
    """Structured article request extracted from an issue body."""

    model_config = ConfigDict(frozen=True)

    theme: str
    target_audience: str = ""
    tone: Tone = DEFAULT_TONE
    target_length: int = Field(
        DEFAULT_TARGET_LENGTH, gt=0, description="Target length in characters."
    )
    additional_instructions: str = ""
    references: List[str] = Field(default_factory=list)


class ArticleMetadata(BaseModel):
    issue_number: int = Field(0, ge=0, description="Source issue; 0 when unknown.")
    tone: str = DEFAULT_TONE
    target_audience: str = ""
    suggested_tags: List[str] = Field(default_factory=list)


class GeneratedArticle(BaseModel):
    """A drafted article; revisions produce new instances."""

    title: str
    content: str = Field(..., description="Markdown body without the title line.")
    summary: str = ""
    generated_at: datetime = Field(default_factory=_utcnow)
    metadata: ArticleMetadata = Field(default_factory=ArticleMetadata)

    @computed_field
    @property
    def word_count(self) -> int:
        return count_characters(self.content)


class FeedbackCommand(str, Enum):
    """Directive tokens recognized in review comments, in priority order."""

    REGENERATE = "/regenerate"
    SHORTER = "/shorter"
    LONGER = "/longer"
    CASUAL = "/casual"
    FORMAL = "/formal"
    PUBLISH = "/publish"


class FeedbackRequest(BaseModel):
    feedback: str
    command: Optional[FeedbackCommand] = None
    original_article: GeneratedArticle


class Issue(BaseModel):
    """Subset of a GitHub issue used to build an article request."""

    number: int
    title: str = ""
    body: str = ""
    labels: List[str] = Field(default_factory=list)

    @field_validator("title", "body", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or ""

    @field_validator("labels", mode="before")
    @classmethod
    def _label_names(cls, value):
        if not value:
            return []
        return [item.get("name", "") if isinstance(item, dict) else item for item in value]


class PullRequest(BaseModel):
    number: int
    head_ref: str
    html_url: str = ""
