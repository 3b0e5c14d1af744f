"""
Failed-login lockout per identifier (username or email string).

Counter lifecycle: absent -> counting (rolling window) -> locked (lockout
window from the tripping attempt) -> absent. Lock state is decided from the
counter's ``lastAttempt`` and the injected clock, so a lockout ends on time
even if the store has not evicted the key yet.
"""

import logging
import time
from typing import Callable, Optional

from estate_iam.app.services.ephemeral_store import IEphemeralStore
from estate_iam.domain.entities import FailedAttemptCounter, counter_key, parse_counter
from estate_iam.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


def format_remaining(seconds: int) -> str:
    """Render seconds as HH:MM:SS (hours are not wrapped at 24)"""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class AbuseGuard:
    """
    Tracks failed authentication attempts and enforces the lockout window.

    Business Rules:
    - ``threshold`` consecutive failures lock the identifier
    - Lockout lasts ``lockout_window`` seconds from the tripping attempt
    - Below the threshold, failures age out after ``rolling_window`` seconds
    - A successful login deletes the counter
    - No explicit unlock exists; the lockout clears itself
    - Store failures propagate (StoreUnavailableError), never fail open
    """

    def __init__(
        self,
        store: IEphemeralStore,
        threshold: int = 3,
        lockout_window: int = 3 * 60 * 60,
        rolling_window: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.threshold = threshold
        self.lockout_window = lockout_window
        self.rolling_window = rolling_window or lockout_window
        self.clock = clock

    async def get_counter(self, identifier: str) -> FailedAttemptCounter:
        fields = await self.store.hgetall(counter_key(identifier))
        return parse_counter(identifier, fields)

    async def check_locked(self, identifier: str) -> Result[None]:
        """
        Reject the attempt if the identifier is locked out.

        Returns:
            Result with None if attempts are allowed, or
            Error(TOO_MANY_ATTEMPTS) carrying the remaining lockout time
        """
        counter = await self.get_counter(identifier)
        if not counter.is_tripped(self.threshold):
            return Return.ok(None)

        remaining = counter.lockout_remaining(self.clock(), self.lockout_window)
        if remaining > 0:
            time_left = format_remaining(remaining)
            return Return.err(
                Error(
                    "TOO_MANY_ATTEMPTS",
                    f"Too many attempts. Try again in {time_left}.",
                    {"time_left": time_left, "retry_after_seconds": remaining},
                )
            )

        # Lockout elapsed but the key has not been evicted yet
        await self.store.delete(counter_key(identifier))
        return Return.ok(None)

    async def record_outcome(self, identifier: str, succeeded: bool) -> int:
        """
        Record the result of one authentication attempt.

        Returns:
            The failure count after this attempt (0 after a success)
        """
        key = counter_key(identifier)
        if succeeded:
            await self.store.delete(key)
            return 0

        count = await self.store.record_failure(
            key,
            now=self.clock(),
            threshold=self.threshold,
            lockout_ttl=self.lockout_window,
            rolling_ttl=self.rolling_window,
        )
        if count == self.threshold:
            logger.warning(
                f"Lockout started for identifier after {count} failed attempts "
                f"({self.lockout_window}s)"
            )
        return count
