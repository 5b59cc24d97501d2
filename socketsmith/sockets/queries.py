"""
Read-only views of an item's sockets for outside callers.

Both helpers return plain JSON-able data. Gem snapshots are internal and
are dropped unless include_snapshots is set. Hidden slots are listed unless
include_hidden is cleared; slotIndex always refers to the full slot list.
"""

import copy
from typing import Any, Callable, Dict, List, Optional

from .slot import SocketSlot
from .store import SocketStore


def sanitize_slot(slot: Optional[Dict[str, Any]], include_snapshots: bool = False) -> Dict[str, Any]:
    cloned = copy.deepcopy(slot or {})
    if not include_snapshots:
        cloned.pop('gemSnapshot', None)
    return cloned


def _resolve_item(item_or_uuid: Any, resolve: Optional[Callable[[str], Any]]):
    if getattr(item_or_uuid, 'document_name', None) == 'Item':
        return item_or_uuid
    uuid = str(item_or_uuid or '').strip()
    if not uuid or resolve is None:
        return None
    doc = resolve(uuid)
    return doc if getattr(doc, 'document_name', None) == 'Item' else None


def get_item_slots(item_or_uuid: Any, include_snapshots: bool = False,
                   resolve: Optional[Callable[[str], Any]] = None,
                   include_hidden: bool = True) -> List[Dict[str, Any]]:
    """
    Every slot of an item.

    Returns:
        [{'slotIndex': int, 'hasGem': bool, 'hidden': bool, 'slot': dict}, ...];
        empty if the item cannot be resolved
    """
    item = _resolve_item(item_or_uuid, resolve)
    if item is None:
        return []
    return [
        {
            'slotIndex': index,
            'hasGem': bool(slot.get('gem')),
            'hidden': SocketSlot.is_hidden(slot),
            'slot': sanitize_slot(slot, include_snapshots),
        }
        for index, slot in enumerate(SocketStore.get_slots(item))
        if include_hidden or not SocketSlot.is_hidden(slot)
    ]


def get_item_gems(item_or_uuid: Any, include_snapshots: bool = False,
                  resolve: Optional[Callable[[str], Any]] = None,
                  include_hidden: bool = True) -> List[Dict[str, Any]]:
    """
    The occupied slots of an item.

    Returns:
        [{'slotIndex', 'name', 'img', 'uuid', 'sourceUuid', 'slot'}, ...]
    """
    item = _resolve_item(item_or_uuid, resolve)
    if item is None:
        return []

    gems = []
    for index, slot in enumerate(SocketStore.get_slots(item)):
        gem = slot.get('gem')
        if not gem or (SocketSlot.is_hidden(slot) and not include_hidden):
            continue
        gems.append({
            'slotIndex': index,
            'name': gem.get('name') or slot.get('name'),
            'img': gem.get('img') or slot.get('img'),
            'uuid': gem.get('uuid'),
            'sourceUuid': gem.get('sourceUuid'),
            'slot': sanitize_slot(slot, include_snapshots),
        })
    return gems


__all__ = ['get_item_slots', 'get_item_gems', 'sanitize_slot']
