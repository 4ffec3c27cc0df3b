"""
API Request and Response Schemas

This module defines the Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ShortenRequest(BaseModel):
    """
    Request model for URL shortening endpoint.

    The URL is kept as a plain string: rejection is reported in the response
    body rather than as a 422, and the exact submitted text is what gets
    stored and compared.
    """
    url: Optional[str] = Field(default=None, description="The long URL to shorten")


class ShortenResponse(BaseModel):
    """Response model for URL shortening endpoint."""
    original_url: str = Field(..., description="The original long URL")
    short_url: int = Field(..., description="The short identifier assigned to the URL")


class ErrorResponse(BaseModel):
    """Error body shared by every endpoint."""
    error: str


class HealthResponse(BaseModel):
    """Response model for the health endpoint."""
    status: str
    database: str
