"""
Estate IAM Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import AccountRole, ChallengeState

# Export all entities
from .account import Account, DEFAULT_PROFILE_IMAGE
from .otp_challenge import OtpChallenge
from .failed_attempt_counter import (
    FailedAttemptCounter,
    counter_key,
    normalize_identifier,
    parse_counter,
)

__all__ = [
    # Enums
    "AccountRole",
    "ChallengeState",
    # Entities
    "Account",
    "DEFAULT_PROFILE_IMAGE",
    "OtpChallenge",
    # Value objects
    "FailedAttemptCounter",
    "counter_key",
    "normalize_identifier",
    "parse_counter",
]
