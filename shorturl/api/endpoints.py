"""
FastAPI Endpoints for URL Shortener Service

This module defines the REST API endpoints with minimal logic.
Endpoints only handle:
- Reading the request (JSON or form body, path parameters)
- Mapping typed failures to HTTP status codes and error bodies
- Issuing the redirect
- Delegating to the validator and registry

Response contract:
- POST /api/shorturl: 200 {original_url, short_url}; 200 {"error": "invalid url"}
  when the URL is rejected; 500 {"error": "Server error"} on storage failure
- GET /api/shorturl/{short_url}: 302 redirect; 400 {"error": "Wrong format"};
  404 {"error": "No short URL found for the given input"}; 500 on storage failure
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from shorturl.api.schemas import ErrorResponse, ShortenRequest, ShortenResponse
from shorturl.core.exceptions import (
    DatabaseError,
    InvalidURLError,
    MalformedIdentifierError,
    ShortIdNotFoundError,
)
from shorturl.core.validators import UrlValidator, parse_short_id
from shorturl.db.session import get_session
from shorturl.services.registry import UrlRegistry

logger = logging.getLogger(__name__)

INVALID_URL_MESSAGE = "invalid url"
WRONG_FORMAT_MESSAGE = "Wrong format"
NOT_FOUND_MESSAGE = "No short URL found for the given input"
SERVER_ERROR_MESSAGE = "Server error"

router = APIRouter(prefix="/api")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump()
    )


def get_url_validator() -> UrlValidator:
    """Dependency providing the admission validator (overridden in tests)."""
    return UrlValidator()


async def read_submitted_url(request: Request) -> Optional[str]:
    """
    Extract the `url` field from a JSON, urlencoded or multipart body.

    Returns None when the field is missing, not a string, or the body cannot
    be decoded (including multipart bodies Starlette refuses to parse); the
    validator reports that as an invalid URL.
    """
    content_type = request.headers.get("content-type", "")

    try:
        if content_type.startswith("application/json"):
            payload = await request.json()
        else:
            payload = dict(await request.form())
        return ShortenRequest.model_validate(payload).url
    except (ValueError, ValidationError, MultiPartException, StarletteHTTPException) as e:
        logger.debug(f"Unreadable shorten request body: {e}")
        return None


@router.post(
    "/shorturl",
    response_model=ShortenResponse,
    summary="Create or reuse a short URL",
    description="Validates the URL and returns its short identifier, creating one if the URL is new",
    responses={500: {"model": ErrorResponse}},
)
async def create_short_url(
    request: Request,
    session: AsyncSession = Depends(get_session),
    validator: UrlValidator = Depends(get_url_validator),
):
    """
    Create a short URL, or return the existing one for a known URL.

    Returns:
        ShortenResponse with original_url and short_url, or an error body
    """
    submitted_url = await read_submitted_url(request)

    try:
        valid_url = await validator.validate(submitted_url)
    except InvalidURLError as e:
        logger.info(f"Rejected URL submission: {e}")
        return error_response(status.HTTP_200_OK, INVALID_URL_MESSAGE)

    try:
        mapping = await UrlRegistry(session).create_or_get(valid_url)
    except DatabaseError:
        # Details were logged by the registry
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)

    return ShortenResponse(
        original_url=mapping.original_url,
        short_url=mapping.short_id
    )


@router.get(
    "/shorturl/{short_url}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to original URL",
    description="Takes a short identifier and redirects to the original URL",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def redirect_to_url(
    short_url: str,
    session: AsyncSession = Depends(get_session),
):
    """
    Redirect to the original URL for a given short identifier.

    Args:
        short_url: The identifier path segment, expected to be an integer

    Returns:
        RedirectResponse (HTTP 302) to original URL, or an error body
    """
    try:
        short_id = parse_short_id(short_url)
    except MalformedIdentifierError:
        return error_response(status.HTTP_400_BAD_REQUEST, WRONG_FORMAT_MESSAGE)

    try:
        original_url = await UrlRegistry(session).resolve(short_id)
    except ShortIdNotFoundError:
        return error_response(status.HTTP_404_NOT_FOUND, NOT_FOUND_MESSAGE)
    except DatabaseError:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)

    return RedirectResponse(
        url=original_url,
        status_code=status.HTTP_302_FOUND
    )
