"""Bounded fixed-interval readiness polling."""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .config import ReadinessConfig
from .models import ProbeOutcome

logger = logging.getLogger(__name__)


class ReadinessPoller:
    """Polls a probe until it succeeds or the attempt budget is spent.

    Sleeps happen only between attempts, so a probe that succeeds on attempt
    K costs K probes and K-1 sleeps. Timeouts are returned, never raised.
    """

    def __init__(
        self,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sleep = sleep
        self._clock = clock

    def wait(
        self,
        service: str,
        probe: Callable[[], bool],
        policy: ReadinessConfig,
        *,
        on_attempt: Optional[Callable[[int], None]] = None,
    ) -> ProbeOutcome:
        started = self._clock()
        for attempt in range(1, policy.attempts + 1):
            if probe():
                elapsed = self._clock() - started
                logger.info("Service ready", extra={"service": service, "attempts": attempt, "elapsed_s": elapsed})
                return ProbeOutcome(service=service, ready=True, attempts=attempt, elapsed_s=elapsed)
            if on_attempt is not None:
                on_attempt(attempt)
            if attempt < policy.attempts:
                self._sleep(policy.interval_s)

        elapsed = self._clock() - started
        logger.warning(
            "Service did not become ready",
            extra={"service": service, "attempts": policy.attempts, "elapsed_s": elapsed},
        )
        return ProbeOutcome(service=service, ready=False, attempts=policy.attempts, elapsed_s=elapsed)
