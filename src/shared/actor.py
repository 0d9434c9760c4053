"""The acting user, as supplied by the authentication layer."""

from dataclasses import dataclass
from enum import Enum

from shared.errors import Forbidden


class Role(Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: Role = Role.CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def owns(self, customer_id: str) -> bool:
        return self.user_id == customer_id

    def can_access(self, customer_id: str) -> bool:
        return self.is_admin or self.owns(customer_id)


def require_admin(actor: Actor, action: str) -> None:
    if not actor.is_admin:
        raise Forbidden(f"Only administrators may {action}", user_id=actor.user_id, action=action)


def actor_of(command) -> Actor:
    """Rebuild the acting user carried on a command."""
    return Actor(user_id=command.actor_id, role=Role(command.actor_role))
