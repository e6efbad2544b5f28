from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    CLIENT = "client"
    OWNER = "owner"
    BROKER = "broker"
    ADMIN = "admin"


# Roles that bypass per-entity ownership checks.
ELEVATED_ROLES = frozenset({Role.BROKER, Role.ADMIN})

# Roles a user may pick for themselves at registration.
SELF_ASSIGNABLE_ROLES = frozenset({Role.CLIENT, Role.OWNER})


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Who is acting on this request, resolved once from the session token.

    A user may hold several roles at the same time; every predicate below has
    "any-of" semantics over ``roles``.
    """

    actor_id: int
    roles: frozenset[Role] = field(default_factory=frozenset)

    @classmethod
    def for_user(cls, user) -> AuthContext:
        return cls(actor_id=user.id, roles=frozenset(Role(role.name) for role in user.roles))

    def has_role(self, *roles: Role) -> bool:
        return any(role in self.roles for role in roles)

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles

    @property
    def is_elevated(self) -> bool:
        return not self.roles.isdisjoint(ELEVATED_ROLES)

    def is_owner_of(self, property_) -> bool:
        return property_.owner_id == self.actor_id

    def can_manage_property(self, property_) -> bool:
        return self.is_elevated or self.is_owner_of(property_)
