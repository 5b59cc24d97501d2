"""Who may add and remove socket slots."""

from typing import Optional

from socketsmith.core.models import User, UserRole


def can_edit_sockets(user: Optional[User], min_role: UserRole) -> bool:
    """
    Gamemasters always may; anyone else needs at least min_role.

    A missing user may not.
    """
    if user is None:
        return False
    if user.is_gm:
        return True
    return user.has_role(min_role)


__all__ = ['can_edit_sockets']
