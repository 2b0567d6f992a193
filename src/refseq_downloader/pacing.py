"""Fixed inter-request pacing for NCBI E-utilities."""

import logging
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PacingConfig:
    """Pause lengths, in seconds, applied after each fetch."""
    with_api_key: float = 0.15
    without_api_key: float = 0.4


class PacingPolicy:
    """Inserts a fixed pause after each fetch to respect NCBI fair use."""

    def __init__(self, has_api_key: bool = False, config: PacingConfig = PacingConfig()):
        """
        Initialize pacing policy.

        Args:
            has_api_key: Whether an NCBI API key (higher rate limit) is configured
            config: Pause lengths
        """
        self.config = config
        self.has_api_key = has_api_key

        # Stats
        self.total_pauses = 0
        self.total_wait_time = 0.0
        self.interrupted_pauses = 0

    def delay_for(self, has_api_key: bool) -> float:
        """Pause length for the given API key presence."""
        return self.config.with_api_key if has_api_key else self.config.without_api_key

    @property
    def delay(self) -> float:
        return self.delay_for(self.has_api_key)

    def pause(self) -> None:
        """
        Wait for the configured delay.

        A keyboard interrupt during the wait only cuts this pause short;
        the run continues and the next pause waits in full.
        """
        delay = self.delay
        if delay <= 0:
            return

        start = time.monotonic()
        try:
            time.sleep(delay)
        except KeyboardInterrupt:
            self.interrupted_pauses += 1
            logger.warning("Pause interrupted, continuing with the next request")
        self.total_pauses += 1
        self.total_wait_time += time.monotonic() - start

    def get_stats(self):
        """Get pacing statistics."""
        return {
            'total_pauses': self.total_pauses,
            'interrupted_pauses': self.interrupted_pauses,
            'total_wait_time': self.total_wait_time,
            'delay': self.delay,
        }


class NoPacing(PacingPolicy):
    """Zero-length pacing, for tests and offline runs."""

    def __init__(self):
        super().__init__(config=PacingConfig(0.0, 0.0))
