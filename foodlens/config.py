"""
Configuration for the Gemini analysis endpoint.

The API key is always injected (constructor or environment); it never
lives in code.

Example .env:
    GEMINI_API_KEY=AIza...
    GEMINI_MODEL=gemini-2.0-flash
    GEMINI_TIMEOUT_S=30
"""

from __future__ import annotations

import os
import re
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from foodlens.domain.shared.errors import ConfigurationError

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_TIMEOUT_S = 30.0
DEFAULT_JPEG_QUALITY = 70

_MODEL_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class GeminiSettings(BaseModel):
    """
    Endpoint settings for the analysis client.

    Attributes:
        api_key: Gemini API key, sent as the ``key`` query parameter
        model: Model identifier used in the endpoint path
        base_url: API root (must be HTTPS)
        timeout_s: Total request timeout in seconds
        jpeg_quality: JPEG quality used when recompressing photos

    ``create`` and ``from_env`` raise ConfigurationError for bad values; the
    bare constructor raises pydantic.ValidationError.

    Example:
        >>> settings = GeminiSettings.create(api_key="test-key")
        >>> settings.endpoint_url
        'https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent'
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(..., repr=False, description="Gemini API key")
    model: str = Field(DEFAULT_MODEL, description="Model identifier")
    base_url: str = Field(DEFAULT_BASE_URL, description="API root URL")
    timeout_s: float = Field(DEFAULT_TIMEOUT_S, gt=0, description="Request timeout")
    jpeg_quality: int = Field(DEFAULT_JPEG_QUALITY, ge=1, le=95, description="JPEG quality")

    @field_validator("api_key")
    @classmethod
    def valid_key(cls, v: str) -> str:
        """Reject blank keys and keys that cannot travel in a URL."""
        v = v.strip()
        if not v:
            raise ValueError("API key is empty")
        if any(ch.isspace() for ch in v):
            raise ValueError("API key contains whitespace")
        return v

    @field_validator("model")
    @classmethod
    def valid_model(cls, v: str) -> str:
        """Model name must be a single path segment."""
        v = v.strip()
        if not _MODEL_NAME_RE.match(v):
            raise ValueError(f"Invalid model name: {v!r}")
        return v

    @field_validator("base_url")
    @classmethod
    def https_only(cls, v: str) -> str:
        """Credentials travel in the query string: HTTPS is mandatory."""
        v = v.strip().rstrip("/")
        if not v.startswith("https://") or len(v) <= len("https://"):
            raise ValueError(f"Base URL must be HTTPS: {v!r}")
        return v

    @property
    def endpoint_url(self) -> str:
        """generateContent URL for the configured model (without the key)."""
        return f"{self.base_url}/models/{self.model}:generateContent"

    @classmethod
    def create(cls, **values: object) -> GeminiSettings:
        """
        Build settings, mapping validation failures to ConfigurationError.

        Raises:
            ConfigurationError: If any value is missing or malformed
        """
        try:
            return cls(**values)  # type: ignore[arg-type]
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid Gemini configuration: {problems}") from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> GeminiSettings:
        """
        Load settings from environment variables.

        Reads GEMINI_API_KEY, GEMINI_MODEL, GEMINI_BASE_URL, GEMINI_TIMEOUT_S
        and FOODLENS_JPEG_QUALITY.

        Args:
            environ: Mapping to read instead of os.environ (for testing)

        Raises:
            ConfigurationError: If GEMINI_API_KEY is missing or a value is malformed
        """
        env = os.environ if environ is None else environ

        api_key = env.get("GEMINI_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY not found in environment. "
                "Set it in .env file or pass as parameter."
            )

        values: dict[str, object] = {"api_key": api_key}
        if env.get("GEMINI_MODEL"):
            values["model"] = env["GEMINI_MODEL"]
        if env.get("GEMINI_BASE_URL"):
            values["base_url"] = env["GEMINI_BASE_URL"]
        if env.get("GEMINI_TIMEOUT_S"):
            values["timeout_s"] = env["GEMINI_TIMEOUT_S"]
        if env.get("FOODLENS_JPEG_QUALITY"):
            values["jpeg_quality"] = env["FOODLENS_JPEG_QUALITY"]

        return cls.create(**values)
