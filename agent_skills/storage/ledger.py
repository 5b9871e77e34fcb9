"""
JSON cost ledger for image-generation skills.

Each skill keeps one flat JSON file holding its running estimated spend,
image count and the most recent generations. The file is created on first
write. There is no locking: two generations finishing at the same time
race, and the last writer wins.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Optional, Union

from .models import GenerationRecord, LedgerState, truncate_prompt

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100


class CostLedger:
    """Repository for one skill's cost ledger file."""

    def __init__(self, path: Union[str, Path]):
        """Initialize the ledger with a file path.

        Args:
            path: Path to the JSON ledger file
        """
        self.path = Path(path)

    def load(self) -> LedgerState:
        """Read the ledger; a missing or unparsable file reads as empty."""
        if not self.path.exists():
            return LedgerState()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return LedgerState.from_dict(json.load(f))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable ledger %s: %s", self.path, e)
            return LedgerState()

    def save(self, state: LedgerState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(state.to_dict(), f, indent=2)

    def record(
        self,
        prompt: str,
        model: str,
        size: str,
        quality: str,
        cost: float,
        count: int = 1,
        timestamp: Optional[datetime] = None
    ) -> LedgerState:
        """Add one generation call to the ledger.

        Totals are summed with Decimal so repeated small costs do not drift.
        History keeps the newest HISTORY_LIMIT entries.

        Args:
            prompt: Prompt text, truncated before storing
            model: Model identifier
            size: Size or resolution requested
            quality: Quality tier requested
            cost: Estimated cost of the whole call in USD
            count: Number of images the call produced
            timestamp: Time of the call, defaults to now (UTC)

        Returns:
            The ledger state after the write
        """
        if cost < 0:
            raise ValueError("cost must be >= 0")
        if count < 0:
            raise ValueError("count must be >= 0")

        state = self.load()
        when = timestamp or datetime.now(timezone.utc)

        state.total_cost = float(Decimal(str(state.total_cost)) + Decimal(str(cost)))
        state.image_count += count
        state.history.append(GenerationRecord(
            timestamp=when.isoformat(),
            prompt=truncate_prompt(prompt),
            model=model,
            size=size,
            quality=quality,
            cost=cost,
        ))
        state.history = state.history[-HISTORY_LIMIT:]

        self.save(state)
        logger.debug("Recorded $%.4f in %s", cost, self.path)
        return state

    def summary(self) -> LedgerState:
        """Current totals and history, for reporting."""
        return self.load()

    def reset(self) -> LedgerState:
        """Zero the totals and clear the history."""
        state = LedgerState()
        self.save(state)
        return state
