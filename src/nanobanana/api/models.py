"""Pydantic request and response models for the relay API.

Models
------
GenerationRequest
    Payload for ``POST /v1/image/generations``: the prompt and an optional
    seed image URL.
GenerationResponse / ImageData
    OpenAI-images-shaped envelope returned on success.
HealthResponse
    Payload of ``GET /health``.
ServiceInfo
    Payload of ``GET /``.
ErrorResponse
    ``{"error": message}`` envelope used by every failure.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class GenerationRequest(BaseModel):
    """Request body for the ``POST /v1/image/generations`` endpoint.

    Attributes:
        prompt: Text prompt.  Must contain at least one non-whitespace
            character; it is forwarded unstripped.
        image_url: Optional seed image URL, passed through unvalidated.
    """

    prompt: str = Field(
        ...,
        description="Text prompt describing the image to generate.",
    )
    image_url: str | None = Field(
        default=None,
        description="Optional seed image URL.  Blank means use the default image.",
    )

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt cannot be empty")
        return value


class ImageData(BaseModel):
    """One generated image in a :class:`GenerationResponse`."""

    url: str
    revised_prompt: str


class GenerationResponse(BaseModel):
    """Response body for a successful generation.

    Attributes:
        created: Unix timestamp (seconds) of the response.
        data: Single-element list with the re-hosted image.
    """

    created: int
    data: list[ImageData]


class HealthResponse(BaseModel):
    status: str = "healthy"
    service: str
    timestamp: str


class ServiceInfo(BaseModel):
    message: str
    version: str
    description: str
    endpoints: dict[str, str]


class ErrorResponse(BaseModel):
    error: str
