"""
Gemini prompt for food analysis.

IMPORTANT: The prompt is sent verbatim on every call. The JSON schema it
describes must stay in sync with AnalysisPayload.
"""

from foodlens.infrastructure.ai.gemini_models import (
    GeminiRequest,
    GenerationConfig,
    InlineData,
    RequestContent,
    RequestPart,
)

JPEG_MIME_TYPE = "image/jpeg"
JSON_MIME_TYPE = "application/json"


# ═══════════════════════════════════════════════════════════
# PROMPT (static instructions + output schema)
# ═══════════════════════════════════════════════════════════

FOOD_ANALYSIS_PROMPT = """Analyze the food in the provided image. Identify the food and provide its nutritional information.
Return the output ONLY as a single, valid JSON object that strictly follows this structure:
{
  "name": "string (food name)",
  "description": "string (brief description of the food)",
  "calories": integer (total kilocalories),
  "macros": [
    {"name": "Protein", "amount": integer, "unit": "g", "percentage": integer (daily value %), "icon": "fish.fill", "color": "FF6347"},
    {"name": "Carbohydrates", "amount": integer, "unit": "g", "percentage": integer (daily value %), "icon": "leaf.fill", "color": "FFD700"},
    {"name": "Fat", "amount": integer, "unit": "g", "percentage": integer (daily value %), "icon": "drop.fill", "color": "4682B4"}
  ],
  "vitamins": [
    {"name": "Vitamin A", "percentage": integer (daily value %), "benefit": "string (brief benefit)", "color": "FFA500"},
    {"name": "Vitamin C", "percentage": integer (daily value %), "benefit": "string (brief benefit)", "color": "32CD32"}
  ],
  "ingredients": ["string (list of common ingredients)"],
  "allergies": ["string (list of common allergens if any, e.g., 'Peanuts', 'Dairy')"]
}
Do not include any explanatory text, markdown formatting, or anything else before or after the JSON object itself.
For "icon" and "color" fields, provide generic string placeholders if actual SF Symbol names or specific hex colors are not applicable, or use the examples if suitable.
If the food cannot be clearly identified or nutritional details are unavailable, provide best estimates or indicate unknown values appropriately within the JSON structure (e.g., for numeric fields use 0, for string fields use "Unknown" or "N/A").
"""


def build_analysis_request(image_b64: str, mime_type: str = JPEG_MIME_TYPE) -> GeminiRequest:
    """
    Build the generateContent request for one image.

    One content with exactly two ordered parts: the prompt, then the
    inline image. The response MIME type is pinned to JSON so the model
    answers with a bare JSON object.

    Args:
        image_b64: Base64-encoded image bytes
        mime_type: MIME type of the encoded image

    Returns:
        Request ready to be serialised with ``to_payload()``

    Example:
        >>> request = build_analysis_request("aGVsbG8=")
        >>> [p.text is not None for p in request.contents[0].parts]
        [True, False]
    """
    return GeminiRequest(
        contents=[
            RequestContent(
                parts=[
                    RequestPart(text=FOOD_ANALYSIS_PROMPT),
                    RequestPart(inline_data=InlineData(mime_type=mime_type, data=image_b64)),
                ]
            )
        ],
        generation_config=GenerationConfig(response_mime_type=JSON_MIME_TYPE),
    )
