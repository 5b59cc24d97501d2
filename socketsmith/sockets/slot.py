"""
Socket slot records.

Slots are persisted as plain dicts inside the host item's flags. An empty
slot is {'gem': None, 'img': ..., 'name': 'Empty', 'hidden': False}; an
occupied slot also carries the gem reference, the id of the item it came
from, a snapshot of the gem's data and its own index. Hidden slots are kept
out of default listings but behave like any other slot.

Invariant (checked by SLOT_SCHEMA): 'gem' is set iff 'gemSnapshot' is set.
"""

import copy
from typing import Any, Dict, Optional

import jsonschema

from socketsmith.core.documents import get_property, set_property
from .constants import COMPENDIUM_SOURCE_PATH, QUANTITY_PATH, SOURCE_ID_PATH
from .settings import SocketSettings

GEM_REF_SCHEMA = {
    "type": "object",
    "properties": {
        "uuid": {"type": "string"},
        "sourceUuid": {"type": ["string", "null"]},
        "name": {"type": "string"},
        "img": {"type": ["string", "null"]},
    },
    "required": ["uuid", "name"],
}

SLOT_SCHEMA = {
    "type": "object",
    "properties": {
        "gem": {"oneOf": [{"type": "null"}, GEM_REF_SCHEMA]},
        "name": {"type": "string"},
        "img": {"type": ["string", "null"]},
        "sourceItemId": {"type": ["string", "null"]},
        "gemSnapshot": {"type": "object"},
        "slotIndex": {"type": "integer", "minimum": 0},
        "hidden": {"type": "boolean"},
    },
    "required": ["gem"],
    "if": {"properties": {"gem": {"type": "object"}}},
    "then": {"required": ["gemSnapshot", "slotIndex"]},
    "else": {"not": {"required": ["gemSnapshot"]}},
}


def source_identity(data: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    The source-identity tag of item data, if any.

    flags.core.sourceId wins over _stats.compendiumSource; blank values
    count as absent.
    """
    if not data:
        return None
    for path in (SOURCE_ID_PATH, COMPENDIUM_SOURCE_PATH):
        value = get_property(data, path)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def snapshot_gem(gem) -> Dict[str, Any]:
    """
    Take a detached copy of a gem's full data for later recreation.

    The copy has quantity 1 and no document id.
    """
    snap = gem.to_object()
    snap.pop('_id', None)
    set_property(snap, QUANTITY_PATH, 1)
    return snap


class SocketSlot:
    """Builders and checks for slot records."""

    @staticmethod
    def make_default(settings: Optional[SocketSettings] = None,
                     hidden: bool = False) -> Dict[str, Any]:
        settings = settings or SocketSettings()
        return {
            'gem': None,
            'img': settings.slot_img,
            'name': settings.slot_name,
            'hidden': bool(hidden),
        }

    @staticmethod
    def fill_from_gem(prev: Optional[Dict[str, Any]], gem, snapshot: Dict[str, Any],
                      slot_index: int, settings: Optional[SocketSettings] = None) -> Dict[str, Any]:
        """
        Build an occupied slot, keeping any unrelated fields of the previous record.

        Args:
            prev: Previous slot record (may be None)
            gem: Gem ItemDocument being socketed
            snapshot: Result of snapshot_gem(gem)
            slot_index: Index of the slot
        """
        slot = copy.deepcopy(prev) if prev else SocketSlot.make_default(settings)
        slot.update({
            'gem': {
                'uuid': gem.uuid,
                'sourceUuid': source_identity(snapshot),
                'name': gem.name,
                'img': gem.img,
            },
            'name': gem.name,
            'img': gem.img,
            'sourceItemId': gem.id,
            'gemSnapshot': copy.deepcopy(snapshot),
            'slotIndex': slot_index,
        })
        return slot

    @staticmethod
    def clear(prev: Optional[Dict[str, Any]], settings: Optional[SocketSettings] = None) -> Dict[str, Any]:
        """An empty slot, keeping unrelated fields and visibility of the previous record."""
        slot = copy.deepcopy(prev) if prev else {}
        for key in ('sourceItemId', 'gemSnapshot', 'slotIndex'):
            slot.pop(key, None)
        slot.update(SocketSlot.make_default(settings, hidden=SocketSlot.is_hidden(slot)))
        return slot

    @staticmethod
    def is_occupied(slot: Optional[Dict[str, Any]]) -> bool:
        return bool(slot) and slot.get('gem') is not None

    @staticmethod
    def is_hidden(slot: Optional[Dict[str, Any]]) -> bool:
        return bool(slot) and slot.get('hidden') is True

    @staticmethod
    def validate(slot: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.ValidationError: If the record breaks the slot shape
        """
        jsonschema.validate(slot, SLOT_SCHEMA)


__all__ = ['SocketSlot', 'SLOT_SCHEMA', 'snapshot_gem', 'source_identity']
