"""
FailedAttemptCounter Value Object

Snapshot of the per-identifier failed login counter held in Redis.
"""

from dataclasses import dataclass
from typing import Dict, Optional

KEY_PREFIX = "failedAttempts"


def normalize_identifier(identifier: str) -> str:
    """Emails are matched case-insensitively, usernames exactly"""
    if "@" in identifier:
        return identifier.strip().lower()
    return identifier


def counter_key(identifier: str) -> str:
    return f"{KEY_PREFIX}:{normalize_identifier(identifier)}"


@dataclass(frozen=True)
class FailedAttemptCounter:
    """
    Business Rules:
    - Hash fields ``count`` and ``lastAttempt`` (epoch seconds)
    - Reaching the threshold locks the identifier for the lockout window
      measured from the attempt that tripped it
    - Deleted on successful login
    """

    identifier: str
    count: int = 0
    last_attempt: float = 0.0

    @classmethod
    def from_hash(cls, identifier: str, fields: Dict[str, str]) -> "FailedAttemptCounter":
        return cls(
            identifier=identifier,
            count=int(fields.get("count", 0) or 0),
            last_attempt=float(fields.get("lastAttempt", 0) or 0),
        )

    def is_tripped(self, threshold: int) -> bool:
        return self.count >= threshold

    def lockout_remaining(self, now: float, window_seconds: int) -> int:
        """Whole seconds of lockout left; 0 once the window has elapsed"""
        remaining = window_seconds - (now - self.last_attempt)
        return max(0, int(remaining))


def empty_counter(identifier: str) -> FailedAttemptCounter:
    return FailedAttemptCounter(identifier=identifier)


def parse_counter(identifier: str, fields: Optional[Dict[str, str]]) -> FailedAttemptCounter:
    if not fields:
        return empty_counter(identifier)
    return FailedAttemptCounter.from_hash(identifier, fields)
