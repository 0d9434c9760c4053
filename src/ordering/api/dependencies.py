"""Request-scoped dependencies shared by the HTTP routers."""

from fastapi import Header, HTTPException

from shared.actor import Actor, Role
from shared.logging import bind_actor


async def get_actor(
    x_user_id: str = Header(min_length=1),
    x_user_role: str = Header(default=Role.CUSTOMER.value),
) -> Actor:
    """Build the acting user from headers set by the authentication gateway."""
    try:
        role = Role(x_user_role.lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_user_role}") from None

    actor = Actor(user_id=x_user_id, role=role)
    bind_actor(actor)
    return actor
