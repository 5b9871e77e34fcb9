"""
Pricing calculations for image generation.

Handles per-image cost estimates for the OpenAI and Gemini image models.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_UP
from typing import Dict, Optional, Tuple

AUTO = "auto"


@dataclass(frozen=True)
class ImagePricing:
    """Per-image prices for a single model keyed by (quality, size)."""
    prices: Dict[Tuple[str, str], Decimal]

    def price_for(self, quality: str, size: str) -> Decimal:
        """Get the price of one image at the given quality and size.

        "auto" matches every tier on that axis. When no tier matches, or
        several do, the most expensive candidate is used so estimates never
        understate the real charge.
        """
        exact = self.prices.get((quality, size))
        if exact is not None:
            return exact

        candidates = [
            price for (tier_quality, tier_size), price in self.prices.items()
            if quality in (AUTO, tier_quality) and size in (AUTO, tier_size)
        ]
        if not candidates:
            candidates = list(self.prices.values())
        return max(candidates)


@dataclass(frozen=True)
class PricingTable:
    """Fixed pricing table for supported image models."""
    models: Dict[str, ImagePricing]

    def get_pricing(self, model: str) -> ImagePricing:
        """Get pricing for a specific model.

        Args:
            model: Model identifier

        Returns:
            ImagePricing for the model

        Raises:
            ValueError: If model is not supported
        """
        if model not in self.models:
            raise ValueError(f"Unsupported model: {model}")
        return self.models[model]


_GPT_IMAGE_1 = ImagePricing({
    ("low", "1024x1024"): Decimal("0.011"),
    ("low", "1536x1024"): Decimal("0.016"),
    ("low", "1024x1536"): Decimal("0.016"),
    ("medium", "1024x1024"): Decimal("0.042"),
    ("medium", "1536x1024"): Decimal("0.063"),
    ("medium", "1024x1536"): Decimal("0.063"),
    ("high", "1024x1024"): Decimal("0.167"),
    ("high", "1536x1024"): Decimal("0.25"),
    ("high", "1024x1536"): Decimal("0.25"),
})

# Gemini bills per output image; flash has a single tier
PRICING_TABLE = PricingTable({
    "gpt-image-1.5": _GPT_IMAGE_1,
    "gpt-image-1": _GPT_IMAGE_1,
    "gpt-image-1-mini": ImagePricing({
        ("low", "1024x1024"): Decimal("0.005"),
        ("low", "1536x1024"): Decimal("0.006"),
        ("low", "1024x1536"): Decimal("0.006"),
        ("medium", "1024x1024"): Decimal("0.011"),
        ("medium", "1536x1024"): Decimal("0.015"),
        ("medium", "1024x1536"): Decimal("0.015"),
        ("high", "1024x1024"): Decimal("0.036"),
        ("high", "1536x1024"): Decimal("0.052"),
        ("high", "1024x1536"): Decimal("0.052"),
    }),
    "dall-e-3": ImagePricing({
        ("standard", "1024x1024"): Decimal("0.04"),
        ("standard", "1536x1024"): Decimal("0.08"),
        ("standard", "1024x1536"): Decimal("0.08"),
    }),
    "dall-e-2": ImagePricing({
        ("standard", "1024x1024"): Decimal("0.02"),
    }),
    "gemini-2.5-flash-image": ImagePricing({
        ("standard", "1K"): Decimal("0.039"),
    }),
    "gemini-3-pro-image-preview": ImagePricing({
        ("standard", "1K"): Decimal("0.134"),
        ("standard", "2K"): Decimal("0.134"),
        ("standard", "4K"): Decimal("0.24"),
    }),
})


def estimate_image_cost(
    model: str,
    size: str,
    quality: Optional[str] = None,
    count: int = 1
) -> float:
    """Estimate the cost of generating images with conservative rounding.

    Args:
        model: Model identifier
        size: Requested size ("1024x1024", "1K", "auto", ...)
        quality: Requested quality; None means "auto"
        count: Number of images generated

    Returns:
        Total cost in USD rounded UP to 4 decimal places

    Raises:
        ValueError: If model is not supported or count is negative
    """
    if count < 0:
        raise ValueError("count must be >= 0")

    pricing = PRICING_TABLE.get_pricing(model)
    per_image = pricing.price_for(quality or AUTO, size)

    total_cost = per_image * Decimal(count)
    return float(total_cost.quantize(Decimal("0.0001"), rounding=ROUND_UP))
