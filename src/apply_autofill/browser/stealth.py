"""Human-like pacing for simulated form input."""

import asyncio
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import structlog

from apply_autofill.config import Settings, settings as default_settings

logger = structlog.get_logger(__name__)

DelayRange = Tuple[float, float]


@dataclass(frozen=True)
class StealthConfig:
    """Delay distributions, in seconds, for each kind of pause."""
    typing_delay: DelayRange = (0.03, 0.10)
    chunk_delay: DelayRange = (0.05, 0.15)
    field_delay: DelayRange = (0.10, 0.50)
    pre_focus_delay: DelayRange = (0.10, 0.10)
    post_focus_delay: DelayRange = (0.05, 0.05)
    first_field_delay: DelayRange = (0.30, 0.30)
    settle_delay: DelayRange = (0.10, 0.10)
    chunk_size: int = 10

    def __post_init__(self):
        for name in ("typing_delay", "chunk_delay", "field_delay", "pre_focus_delay",
                     "post_focus_delay", "first_field_delay", "settle_delay"):
            low, high = getattr(self, name)
            if low < 0 or high < low:
                raise ValueError(f"{name} must satisfy 0 <= min <= max, got {(low, high)}")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be positive")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "StealthConfig":
        settings = settings or default_settings
        return cls(
            typing_delay=(settings.typing_delay_min_ms / 1000, settings.typing_delay_max_ms / 1000),
            chunk_delay=(settings.chunk_delay_min_ms / 1000, settings.chunk_delay_max_ms / 1000),
            field_delay=(settings.field_delay_min_ms / 1000, settings.field_delay_max_ms / 1000),
            chunk_size=settings.textarea_chunk_size,
        )

    @classmethod
    def instant(cls, chunk_size: int = 10) -> "StealthConfig":
        """Zero delays, same code path. Used by tests and dry runs."""
        zero = (0.0, 0.0)
        return cls(
            typing_delay=zero,
            chunk_delay=zero,
            field_delay=zero,
            pre_focus_delay=zero,
            post_focus_delay=zero,
            first_field_delay=zero,
            settle_delay=zero,
            chunk_size=chunk_size,
        )


class StealthManager:
    """Samples and awaits human-like pauses between simulated actions."""

    def __init__(self, config: Optional[StealthConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or StealthConfig.from_settings()
        self.rng = rng or random.Random()
        self.action_count = 0
        self.total_delay = 0.0
        self.session_start_time = time.monotonic()

    def _range_for(self, action_type: str) -> DelayRange:
        ranges = {
            "keystroke": self.config.typing_delay,
            "chunk": self.config.chunk_delay,
            "field": self.config.field_delay,
            "pre_focus": self.config.pre_focus_delay,
            "post_focus": self.config.post_focus_delay,
            "first_field": self.config.first_field_delay,
            "settle": self.config.settle_delay,
        }
        try:
            return ranges[action_type]
        except KeyError:
            raise ValueError(f"Unknown pause kind: {action_type}") from None

    def sample_delay(self, action_type: str) -> float:
        """Draw one delay uniformly from the range configured for the action."""
        low, high = self._range_for(action_type)
        if high == low:
            return low
        return min(max(self.rng.uniform(low, high), low), high)

    async def human_like_delay(self, action_type: str = "field") -> float:
        """Yield to the event loop for a sampled delay."""
        self.action_count += 1
        delay = self.sample_delay(action_type)
        self.total_delay += delay
        if action_type == "field":
            logger.debug("Adding human-like delay", delay=delay, action_type=action_type)
        await asyncio.sleep(delay)
        return delay

    def get_session_stats(self) -> Dict[str, Any]:
        """Get current session statistics."""
        session_duration = time.monotonic() - self.session_start_time

        return {
            "action_count": self.action_count,
            "total_delay": round(self.total_delay, 3),
            "session_duration": session_duration,
            "actions_per_minute": self.action_count / (session_duration / 60) if session_duration > 0 else 0
        }
