"""Domain models used across the application."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

TITLE_MAX_LENGTH = 256
SUMMARY_MAX_LENGTH = 5000
AUTHOR_MAX_LENGTH = 256
SOURCE_URL_MAX_LENGTH = 1000


class DigestEntry(BaseModel):
    """A single article extracted from a crawled page."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    summary: str = Field(default="", max_length=SUMMARY_MAX_LENGTH)
    author: str = Field(default="", max_length=AUTHOR_MAX_LENGTH)
    source_url: str = Field(..., max_length=SOURCE_URL_MAX_LENGTH)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Title must not be blank")
        return value


class StoredEntry(DigestEntry):
    """A :class:`DigestEntry` as held by the entry store."""

    id: int
    created: datetime
    updated: datetime

    def to_entry(self) -> DigestEntry:
        return DigestEntry(
            title=self.title,
            summary=self.summary,
            author=self.author,
            source_url=self.source_url,
        )
