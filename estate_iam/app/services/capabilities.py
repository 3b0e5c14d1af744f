"""
Authorization capabilities per role and aggregate kind.

Repositories do not enforce these; callers check before invoking them.
"""

from enum import Enum
from typing import Dict, FrozenSet

from estate_iam.domain.entities import AccountRole

ACCOUNT_KIND = "user"


class Capability(str, Enum):
    read = "read"
    write = "write"
    delete = "delete"


ROLE_CAPABILITIES: Dict[AccountRole, Dict[str, FrozenSet[Capability]]] = {
    AccountRole.admin: {
        ACCOUNT_KIND: frozenset({Capability.read, Capability.write, Capability.delete}),
    },
    AccountRole.agent: {
        ACCOUNT_KIND: frozenset(),
    },
    AccountRole.user: {
        ACCOUNT_KIND: frozenset(),
    },
}


def capabilities_for(role: str, kind: str) -> FrozenSet[Capability]:
    try:
        account_role = AccountRole(role)
    except ValueError:
        return frozenset()
    return ROLE_CAPABILITIES.get(account_role, {}).get(kind, frozenset())


def has_capability(role: str, kind: str, capability: Capability) -> bool:
    return capability in capabilities_for(role, kind)
