"""
Unit tests for socket edit permissions.
"""

import pytest
from socketsmith.core.models import User, UserRole
from socketsmith.sockets.permissions import can_edit_sockets


@pytest.mark.parametrize('role,min_role,expected', [
    (UserRole.GAMEMASTER, UserRole.GAMEMASTER, True),
    (UserRole.ASSISTANT, UserRole.GAMEMASTER, False),
    (UserRole.PLAYER, UserRole.PLAYER, True),
    (UserRole.TRUSTED, UserRole.PLAYER, True),
    (UserRole.NONE, UserRole.PLAYER, False),
])
def test_role_threshold(role, min_role, expected):
    user = User(id='u', name='User', role=role)
    assert can_edit_sockets(user, min_role) is expected


def test_missing_user_denied():
    assert not can_edit_sockets(None, UserRole.NONE)


def test_gamemaster_always_allowed():
    gm = User(id='gm', name='GM', role=UserRole.GAMEMASTER)
    assert can_edit_sockets(gm, UserRole.GAMEMASTER)
