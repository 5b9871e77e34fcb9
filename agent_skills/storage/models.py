"""
Data models for the cost ledger.

Defines the generation record and the ledger document stored on disk.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

PROMPT_LIMIT = 100


def truncate_prompt(prompt: str, limit: int = PROMPT_LIMIT) -> str:
    """Shorten a prompt for the ledger, marking the cut with an ellipsis."""
    if len(prompt) <= limit:
        return prompt
    return prompt[:limit] + "..."


@dataclass(frozen=True)
class GenerationRecord:
    """Immutable record of one image-generation call.

    `cost` covers every image the call produced.
    """
    timestamp: str
    prompt: str
    model: str
    size: str
    quality: str
    cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "prompt": self.prompt,
            "model": self.model,
            "size": self.size,
            "quality": self.quality,
            "cost": self.cost,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerationRecord":
        return cls(
            timestamp=str(data.get("timestamp", "")),
            prompt=str(data.get("prompt", "")),
            model=str(data.get("model", "")),
            size=str(data.get("size", "")),
            quality=str(data.get("quality", "")),
            cost=float(data.get("cost", 0.0)),
        )


@dataclass
class LedgerState:
    """Running totals and recent history for one skill."""
    total_cost: float = 0.0
    image_count: int = 0
    history: List[GenerationRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCost": self.total_cost,
            "imageCount": self.image_count,
            "history": [record.to_dict() for record in self.history],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerState":
        """Build state from a parsed ledger document.

        Raises:
            ValueError: If the document has the wrong shape
        """
        if not isinstance(data, dict):
            raise ValueError("ledger must be a JSON object")
        history = data.get("history", [])
        if not isinstance(history, list):
            raise ValueError("ledger history must be a list")
        return cls(
            total_cost=float(data.get("totalCost", 0.0)),
            image_count=int(data.get("imageCount", 0)),
            history=[GenerationRecord.from_dict(entry) for entry in history],
        )
