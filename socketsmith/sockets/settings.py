"""
Socket rules as an explicit, immutable settings object.

The classifier and the engine receive a SocketSettings at construction;
nothing in the socket services reads global configuration.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from socketsmith.core.models import UserRole
from .constants import DEFAULT_GEM_SUBTYPE, DEFAULT_SLOT_IMG, DEFAULT_SLOT_NAME

logger = logging.getLogger(__name__)


def _normalize_names(values: Optional[Iterable[str]]) -> Tuple[str, ...]:
    if isinstance(values, str):
        values = [values]
    seen = []
    for value in values or ():
        if not isinstance(value, str):
            continue
        name = value.strip().lower()
        if name and name not in seen:
            seen.append(name)
    return tuple(seen)


@dataclass(frozen=True)
class SocketSettings:
    """
    Rules for what can be socketed and by whom.

    Attributes:
        loot_type: Item type gems must have (matched case-insensitively)
        gem_subtypes: Accepted values of system.type.value (never empty)
        min_edit_role: Minimum role allowed to add/remove slots
        max_sockets: Slot limit per item; None means unlimited
        delete_gem_on_removal: Destroy gems on unsocketing instead of returning them
        socketable_types: Item types that may carry slots
        slot_name: Name of an empty slot
        slot_img: Placeholder image of an empty slot
    """
    loot_type: str = 'loot'
    gem_subtypes: Tuple[str, ...] = (DEFAULT_GEM_SUBTYPE,)
    min_edit_role: UserRole = UserRole.GAMEMASTER
    max_sockets: Optional[int] = 6
    delete_gem_on_removal: bool = False
    socketable_types: Tuple[str, ...] = ('weapon', 'equipment')
    slot_name: str = DEFAULT_SLOT_NAME
    slot_img: str = DEFAULT_SLOT_IMG

    def __post_init__(self):
        subtypes = _normalize_names(self.gem_subtypes)
        if not subtypes:
            logger.warning(f"No valid gem subtypes configured; using '{DEFAULT_GEM_SUBTYPE}'")
            subtypes = (DEFAULT_GEM_SUBTYPE,)
        object.__setattr__(self, 'gem_subtypes', subtypes)
        object.__setattr__(self, 'socketable_types', _normalize_names(self.socketable_types))
        object.__setattr__(self, 'loot_type', (self.loot_type or 'loot').strip().lower() or 'loot')
        object.__setattr__(self, 'min_edit_role', UserRole.parse(self.min_edit_role))

        max_sockets = self.max_sockets
        if max_sockets is not None and (not isinstance(max_sockets, int) or max_sockets < 0):
            max_sockets = None
        object.__setattr__(self, 'max_sockets', max_sockets)

    @classmethod
    def from_config(cls, config) -> 'SocketSettings':
        """
        Build settings from a socketsmith.core.config.Config.

        An unknown edit role leaves socket editing to gamemasters.
        """
        try:
            min_edit_role = UserRole.parse(config.edit_socket_role)
        except ValueError:
            logger.warning(f"Unknown edit role '{config.edit_socket_role}'; "
                           f"only gamemasters may edit sockets")
            min_edit_role = UserRole.GAMEMASTER
        return cls(
            loot_type=config.loot_type,
            gem_subtypes=tuple(config.gem_subtypes),
            min_edit_role=min_edit_role,
            max_sockets=config.max_sockets,
            delete_gem_on_removal=config.delete_gem_on_removal,
            socketable_types=tuple(config.socketable_types),
            slot_img=config.slot_img,
        )


__all__ = ['SocketSettings']
