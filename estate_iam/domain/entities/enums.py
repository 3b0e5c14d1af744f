"""
Estate IAM Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class AccountRole(str, Enum):
    """Role attached to an account; selects the capability set"""

    user = "User"
    agent = "Agent"
    admin = "Admin"


class ChallengeState(str, Enum):
    """Lifecycle of a single-use registration code"""

    active = "active"
    expired = "expired"
    consumed = "consumed"
