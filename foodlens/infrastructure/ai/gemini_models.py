"""
Gemini generateContent wire models.

Request and response envelopes for the REST API, with camelCase aliases.
Only the fields foodlens reads are modelled; everything else is ignored.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Safety probabilities that do not count as an issue
BENIGN_PROBABILITIES = frozenset({"NEGLIGIBLE", "LOW"})

FINISH_REASON_STOP = "STOP"


# ═══════════════════════════════════════════════════════════
# REQUEST
# ═══════════════════════════════════════════════════════════


class InlineData(BaseModel):
    """Base64 payload embedded in the request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    mime_type: str = Field(..., alias="mimeType")
    data: str = Field(..., description="Base64-encoded bytes")


class RequestPart(BaseModel):
    """Either a text part or an inline data part."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: Optional[str] = None
    inline_data: Optional[InlineData] = Field(None, alias="inlineData")


class RequestContent(BaseModel):
    """Ordered parts of one user turn."""

    model_config = ConfigDict(frozen=True)

    parts: List[RequestPart]


class GenerationConfig(BaseModel):
    """Generation hints sent alongside the contents."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    response_mime_type: str = Field(..., alias="responseMimeType")


class GeminiRequest(BaseModel):
    """
    generateContent request body.

    Example:
        >>> request.to_payload()["generationConfig"]
        {'responseMimeType': 'application/json'}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    contents: List[RequestContent]
    generation_config: Optional[GenerationConfig] = Field(None, alias="generationConfig")

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict with API field names and no null members."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ═══════════════════════════════════════════════════════════
# RESPONSE
# ═══════════════════════════════════════════════════════════


class ResponsePart(BaseModel):
    """One part of a candidate's content."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    text: Optional[str] = None


class ResponseContent(BaseModel):
    """Content of a candidate."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    parts: Optional[List[ResponsePart]] = None


class SafetyRating(BaseModel):
    """Category/probability pair attached to a candidate."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    category: str
    probability: str

    def is_flagged(self) -> bool:
        """True when the probability is above NEGLIGIBLE/LOW."""
        return self.probability not in BENIGN_PROBABILITIES


class Candidate(BaseModel):
    """One alternative completion."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    content: Optional[ResponseContent] = None
    finish_reason: Optional[str] = Field(None, alias="finishReason")
    safety_ratings: Optional[List[SafetyRating]] = Field(None, alias="safetyRatings")

    def first_text(self) -> Optional[str]:
        """Text of the first part, if any."""
        if self.content is None or not self.content.parts:
            return None
        return self.content.parts[0].text

    def flagged_ratings(self) -> List[SafetyRating]:
        """Safety ratings above the two lowest tiers, in response order."""
        return [r for r in self.safety_ratings or [] if r.is_flagged()]


class GeminiErrorBody(BaseModel):
    """Structured error returned on failure."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    code: Optional[int] = None
    message: Optional[str] = None
    status: Optional[str] = None


class GeminiResponse(BaseModel):
    """generateContent response envelope (success or error)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    candidates: Optional[List[Candidate]] = None
    error: Optional[GeminiErrorBody] = None
