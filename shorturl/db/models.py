"""
Database Models for URL Shortener Service

This module defines the SQLModel database schema for UrlMapping, the only
persisted entity: the pairing of an original URL with its short identifier.

Design Decisions:
- Unique index on original_url backs the create-or-reuse lookup
- Unique index on short_id backs the redirect lookup and rejects a second
  writer that computed the same next id
- Rows are never updated or deleted once written
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Text
from sqlmodel import Column, Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UrlMapping(SQLModel, table=True):
    """
    Mapping between an original URL and its short identifier.

    Fields:
    - id: Surrogate primary key (storage detail, never exposed)
    - original_url: The URL as submitted (exact string, not normalized)
    - short_id: Public identifier, assigned 1, 2, 3, ... in creation order
    - created_at: Timestamp when the mapping was created
    """
    __tablename__ = "url_mappings"

    id: Optional[int] = Field(default=None, primary_key=True)
    original_url: str = Field(
        sa_column=Column(Text, nullable=False, unique=True, index=True)
    )
    short_id: int = Field(
        sa_column=Column(BigInteger, nullable=False, unique=True, index=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
