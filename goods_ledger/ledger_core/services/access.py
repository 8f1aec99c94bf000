from dataclasses import dataclass

from django.core.exceptions import PermissionDenied

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"

# role → allowed actions
ROLE_ACTIONS = {
    ROLE_ADMIN: frozenset({"read", "create", "update", "delete"}),
    ROLE_MANAGER: frozenset({"read", "create", "update"}),
}


@dataclass(frozen=True)
class Capability:
    """
    What the caller may do, handed to every service call by the request
    layer (never looked up from global state).
    """
    role: str
    actor: str = ""

    @classmethod
    def admin(cls, actor=""):
        return cls(role=ROLE_ADMIN, actor=actor)

    @classmethod
    def manager(cls, actor=""):
        return cls(role=ROLE_MANAGER, actor=actor)

    def allows(self, action: str) -> bool:
        return action in ROLE_ACTIONS.get(self.role, frozenset())

    def require(self, action: str) -> None:
        if not self.allows(action):
            raise PermissionDenied(
                f"Role {self.role!r} is not allowed to {action}")
