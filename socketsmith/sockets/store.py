"""
Typed access to a host item's persisted slot list.

Every write replaces the whole list in flags.socketsmith.sockets. Reads
return detached copies, so callers read, change their copy and write it
back within one operation.
"""

import copy
from typing import Any, Dict, List

from .constants import FLAG_SOCKETS, MODULE_ID
from .slot import SocketSlot


class SocketStore:
    """Read/write the slot list of an item."""

    @staticmethod
    def get_slots(item) -> List[Dict[str, Any]]:
        slots = item.get_flag(MODULE_ID, FLAG_SOCKETS)
        if not isinstance(slots, list):
            return []
        return copy.deepcopy(slots)

    @staticmethod
    def validate_slots(slots: List[Dict[str, Any]]) -> None:
        """
        Raises:
            jsonschema.ValidationError: If any slot record is malformed
        """
        for slot in slots:
            SocketSlot.validate(slot)

    @staticmethod
    def set_slots(item, slots: List[Dict[str, Any]]) -> None:
        """
        Validate and persist the full slot list.

        Raises:
            jsonschema.ValidationError: If any slot record is malformed
        """
        SocketStore.validate_slots(slots)
        item.set_flag(MODULE_ID, FLAG_SOCKETS, copy.deepcopy(slots))

    @staticmethod
    def add_slot(item, default_slot: Dict[str, Any]) -> None:
        slots = SocketStore.get_slots(item)
        slots.append(copy.deepcopy(default_slot))
        SocketStore.set_slots(item, slots)

    @staticmethod
    def remove_slot(item, idx: int) -> bool:
        """
        Delete slot idx if it exists.

        Returns:
            True if a slot was removed
        """
        slots = SocketStore.get_slots(item)
        if not 0 <= idx < len(slots):
            return False
        slots.pop(idx)
        SocketStore.set_slots(item, slots)
        return True


__all__ = ['SocketStore']
