"""
Guarded OpenAI images wrapper.

Records estimated spend in the cost ledger for every successful call.
"""

import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from openai import OpenAI

from ..core.errors import ApiError, UsageError
from ..core.pricing import estimate_image_cost
from ..storage.ledger import CostLedger

API_KEY_HINT = "Get your API key at: https://platform.openai.com/api-keys"

VALID_SIZES = ["1024x1024", "1536x1024", "1024x1536", "auto"]
VALID_MODELS = ["gpt-image-1.5", "gpt-image-1", "gpt-image-1-mini", "dall-e-3", "dall-e-2"]
VALID_QUALITIES = ["low", "medium", "high", "auto"]
VALID_FORMATS = ["png", "jpeg", "webp"]


def is_gpt_image(model: str) -> bool:
    return model.startswith("gpt-image")


def upload_mime_type(path: Path) -> str:
    ext = path.suffix.lower()
    if ext in (".jpg", ".jpeg"):
        return "image/jpeg"
    if ext == ".webp":
        return "image/webp"
    if ext == ".gif":
        return "image/gif"
    return "image/png"


@dataclass
class GeneratedImage:
    """One image returned by the API."""
    data: bytes
    revised_prompt: Optional[str] = None


class GuardedOpenAIImages:
    """OpenAI images client that records spend in a cost ledger.

    Wraps `images.generate` and `images.edit`. The ledger is only written
    after the API call succeeds; API errors propagate unchanged.
    """

    def __init__(
        self,
        model: str,
        ledger: CostLedger,
        client: Optional[OpenAI] = None,
        http_client: Optional[httpx.Client] = None,
        download_timeout: float = 120.0
    ):
        """Initialize guarded images client.

        Args:
            model: OpenAI image model name (required)
            ledger: Ledger receiving one entry per call (required)
            client: Preconfigured OpenAI client, defaults to OpenAI()
            http_client: Client used to download URL results
            download_timeout: Seconds allowed for each download without http_client

        Raises:
            ValueError: If model is missing or unsupported
        """
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")
        if model not in VALID_MODELS:
            raise ValueError(f"Unsupported model: {model}")

        self.model = model
        self.ledger = ledger
        self.client = client or OpenAI()
        self._http = http_client
        self.download_timeout = download_timeout

    def _request_options(self, size: str, quality: str, output_format: str, transparent: bool) -> Dict[str, Any]:
        options: Dict[str, Any] = {}
        if size != "auto":
            options["size"] = size
        if is_gpt_image(self.model):
            # gpt-image models always answer with base64
            options["output_format"] = output_format
            if quality != "auto":
                options["quality"] = quality
            if transparent:
                options["background"] = "transparent"
        else:
            options["response_format"] = "b64_json"
        return options

    def generate(
        self,
        prompt: str,
        n: int = 1,
        size: str = "auto",
        quality: str = "auto",
        output_format: str = "png",
        transparent: bool = False
    ) -> List[GeneratedImage]:
        """Generate images from a prompt and record their cost.

        Raises:
            ValueError: If prompt is empty
            OpenAI API errors: Propagated without modification
        """
        if not prompt:
            raise ValueError("prompt is required and cannot be empty")

        response = self.client.images.generate(
            model=self.model,
            prompt=prompt,
            n=n,
            **self._request_options(size, quality, output_format, transparent)
        )
        return self._collect(response, prompt, size, quality)

    def edit(
        self,
        prompt: str,
        image_path: Path,
        mask_path: Optional[Path] = None,
        n: int = 1,
        size: str = "auto",
        quality: str = "auto"
    ) -> List[GeneratedImage]:
        """Edit an input image and record the cost.

        Raises:
            UsageError: If the model cannot edit or a file is missing
            OpenAI API errors: Propagated without modification
        """
        if self.model == "dall-e-3":
            raise UsageError(
                "DALL-E 3 does not support image editing. Use gpt-image-1 or gpt-image-1.5."
            )
        if not image_path.exists():
            raise UsageError(f"Input file not found: {image_path}")
        if mask_path is not None and not mask_path.exists():
            raise UsageError(f"Mask file not found: {mask_path}")

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "n": n,
            "image": (image_path.name, image_path.read_bytes(), upload_mime_type(image_path)),
        }
        if mask_path is not None:
            kwargs["mask"] = (mask_path.name, mask_path.read_bytes(), upload_mime_type(mask_path))
        if size != "auto":
            kwargs["size"] = size
        if not is_gpt_image(self.model):
            kwargs["response_format"] = "b64_json"

        response = self.client.images.edit(**kwargs)
        return self._collect(response, prompt, size, quality)

    def _collect(self, response: Any, prompt: str, size: str, quality: str) -> List[GeneratedImage]:
        items = list(response.data or [])
        if not items:
            raise ApiError("No images generated.")

        images = []
        for item in items:
            if getattr(item, "b64_json", None):
                data = base64.b64decode(item.b64_json)
            elif getattr(item, "url", None):
                data = self._download(item.url)
            else:
                continue
            images.append(GeneratedImage(data=data, revised_prompt=getattr(item, "revised_prompt", None)))

        cost_quality = quality if is_gpt_image(self.model) else "standard"
        cost = estimate_image_cost(self.model, size, cost_quality, count=len(images))
        self.ledger.record(
            prompt=prompt,
            model=self.model,
            size=size,
            quality=cost_quality,
            cost=cost,
            count=len(images),
        )
        return images

    def _download(self, url: str) -> bytes:
        try:
            if self._http is not None:
                response = self._http.get(url)
            else:
                with httpx.Client(timeout=self.download_timeout) as http:
                    response = http.get(url)
        except httpx.HTTPError as e:
            raise ApiError(f"Image download failed: {e}")
        if not response.is_success:
            raise ApiError(
                f"Image download failed (HTTP {response.status_code})",
                status_code=response.status_code,
                body=response.text,
            )
        return response.content
