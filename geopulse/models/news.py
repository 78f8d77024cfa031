from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

MAX_DESCRIPTION_LENGTH = 200


class NewsArticle(BaseModel):
    title: str = Field(description="Article headline")
    url: str = Field(description="Link to the full article")
    source: str = Field(description="Publisher name")
    description: str | None = Field(
        default=None,
        max_length=MAX_DESCRIPTION_LENGTH,
        description="Plain-text teaser, HTML stripped",
    )
    published_at: datetime | None = Field(
        default=None, description="Publication timestamp in UTC if available"
    )
    category: str | None = Field(default=None, description="Feed category")
