"""
Google Gemini image generation client.

Calls the generativelanguage `generateContent` endpoint with raw httpx and
pulls the inline image out of the first candidate.
"""

import base64
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from agent_skills.core.errors import ApiError, UsageError

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
API_KEY_HINT = "Get your API key at: https://aistudio.google.com/apikey"

VALID_ASPECT_RATIOS = ["1:1", "16:9", "9:16", "4:3", "3:4", "3:2", "2:3", "4:5", "5:4", "21:9"]
VALID_SIZES = ["1K", "2K", "4K"]
MODELS = {
    "flash": "gemini-2.5-flash-image",
    "pro": "gemini-3-pro-image-preview",
}


def input_mime_type(path: Path) -> str:
    ext = path.suffix.lower()
    if ext in (".jpg", ".jpeg"):
        return "image/jpeg"
    if ext == ".webp":
        return "image/webp"
    if ext == ".gif":
        return "image/gif"
    return "image/png"


@dataclass
class GeminiImage:
    """Decoded image plus whatever the model said alongside it."""
    data: bytes
    text: str = ""


def build_request_body(
    prompt: str,
    aspect_ratio: str = "1:1",
    model: str = "flash",
    image_size: str = "1K",
    input_path: Optional[Path] = None
) -> Dict[str, Any]:
    """Build the generateContent request body.

    `imageSize` is only sent for the pro model.

    Raises:
        UsageError: If the input image does not exist
    """
    parts: List[Dict[str, Any]] = []

    if input_path is not None:
        if not input_path.exists():
            raise UsageError(f"Input file not found: {input_path}")
        parts.append({
            "inline_data": {
                "mime_type": input_mime_type(input_path),
                "data": base64.b64encode(input_path.read_bytes()).decode("ascii"),
            }
        })

    parts.append({"text": prompt})

    image_config = {"aspectRatio": aspect_ratio}
    if model == "pro":
        image_config["imageSize"] = image_size

    return {
        "contents": [{"parts": parts}],
        "generationConfig": {
            "responseModalities": ["IMAGE", "TEXT"],
            "imageConfig": image_config,
        },
    }


def extract_image(data: Dict[str, Any]) -> GeminiImage:
    """Pull the generated image out of a generateContent response.

    Raises:
        ApiError: If there are no candidates or no inline image
    """
    candidates = data.get("candidates") or []
    if not candidates:
        message = "No response generated."
        if data.get("promptFeedback"):
            message += "\nFeedback: " + json.dumps(data["promptFeedback"], indent=2)
        raise ApiError(message)

    candidate = candidates[0]
    image_bytes = None
    text = ""
    for part in (candidate.get("content") or {}).get("parts") or []:
        inline = part.get("inlineData") or part.get("inline_data")
        if inline:
            image_bytes = base64.b64decode(inline["data"])
        elif part.get("text"):
            text = part["text"]

    if image_bytes is None:
        message = "No image in response."
        if text:
            message += f"\nModel response: {text}"
        if candidate.get("finishReason"):
            message += f"\nFinish reason: {candidate['finishReason']}"
        raise ApiError(message)

    return GeminiImage(data=image_bytes, text=text)


class GeminiImageClient:
    """Client for Gemini's image models."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 120.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        if not api_key:
            raise ValueError("api_key is required and cannot be empty")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def generate(self, model_id: str, body: Dict[str, Any]) -> GeminiImage:
        """POST a generateContent request and return the image.

        Raises:
            ApiError: On non-2xx answers or responses without an image
        """
        url = f"{BASE_URL}/models/{model_id}:generateContent"
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as http:
                response = http.post(url, headers=headers, json=body)
        except httpx.HTTPError as e:
            raise ApiError(f"Request failed: {e}")

        if not response.is_success:
            detail = response.text
            try:
                detail = response.json().get("error", {}).get("message") or detail
            except (ValueError, AttributeError):
                pass
            raise ApiError(
                f"API request failed (HTTP {response.status_code})\n{detail}",
                status_code=response.status_code,
                body=response.text,
            )

        return extract_image(response.json())
