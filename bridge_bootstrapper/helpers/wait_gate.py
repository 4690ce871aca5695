"""
Cross-chain wait gate.

There is no proof-of-relay available to the bootstrapper, so an L1 -> L2 (or
L2 -> L1) effect is waited for with a fixed sleep. ``wait_until`` is the
opt-in alternative that polls an observable condition instead.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from .errors import CrossChainEffectNotObserved

logger = logging.getLogger(__name__)


@dataclass
class CrossChainWaitGate:
    sleep: Callable[[float], None] = field(default=time.sleep)
    clock: Callable[[], float] = field(default=time.monotonic)

    def wait_for_cross_chain_effect(self, estimated_delay: float, reason: str = "") -> None:
        """Sleep for ``estimated_delay`` seconds. No early exit, no cancellation."""
        if estimated_delay < 0:
            raise ValueError("estimated_delay must be >= 0")
        if estimated_delay == 0:
            return
        logger.info(f"Waiting {estimated_delay:g}s for cross-chain effect{f' ({reason})' if reason else ''}")
        self.sleep(estimated_delay)

    def wait_until(
        self,
        condition: Callable[[], bool],
        timeout: float,
        poll_interval: float = 5.0,
        reason: str = "",
    ) -> None:
        """
        Poll ``condition`` until it returns True or ``timeout`` seconds pass.

        Raises:
            CrossChainEffectNotObserved: condition still false at the deadline
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        deadline = self.clock() + timeout
        while True:
            if condition():
                return
            remaining = deadline - self.clock()
            if remaining <= 0:
                raise CrossChainEffectNotObserved(
                    f"cross-chain effect not observed within {timeout:g}s{f' ({reason})' if reason else ''}"
                )
            self.sleep(min(poll_interval, remaining))
