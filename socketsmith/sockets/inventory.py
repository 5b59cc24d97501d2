"""
Inventory side of socketing: consuming gems and giving them back.

Returned gems are stacked onto an existing inventory item when the two are
the same stack:

- if both carry a source-identity tag, the tags decide;
- if only one carries a tag, they are never the same stack;
- otherwise their stacking fingerprints must be equal.

The fingerprint is canonical JSON of the item data with identity and
bookkeeping fields dropped (_id, _stats, sort, folder, ownership) at every
depth and the item's own quantity ignored.
"""

import copy
import json
import logging
from typing import Any, Dict, Optional

from socketsmith.core.documents import set_property
from .constants import QUANTITY_PATH
from .gem_criteria import GemClassifier, item_data
from .slot import source_identity

logger = logging.getLogger(__name__)

TRANSIENT_KEYS = frozenset({'_id', '_stats', 'sort', 'folder', 'ownership'})


def _strip(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _strip(v) for k, v in value.items() if k not in TRANSIENT_KEYS}
    if isinstance(value, list):
        return [_strip(v) for v in value]
    return value


def stacking_fingerprint(doc: Any) -> str:
    """
    Canonical content string for stack comparison.

    Accepts an ItemDocument (embedded effects included) or item data.
    """
    if getattr(doc, 'document_name', None) == 'Item':
        data = doc.to_object()
    else:
        data = copy.deepcopy(item_data(doc) or {})

    data.pop('quantity', None)
    system = data.get('system')
    if isinstance(system, dict):
        system.pop('quantity', None)

    return json.dumps(_strip(data), sort_keys=True, separators=(',', ':'), default=str)


def is_same_stack(a: Any, b: Any) -> bool:
    tag_a = source_identity(item_data(a))
    tag_b = source_identity(item_data(b))
    if tag_a and tag_b:
        return tag_a == tag_b
    if tag_a or tag_b:
        return False
    return stacking_fingerprint(a) == stacking_fingerprint(b)


class InventoryReconciler:
    """
    Takes gems out of and puts them back into actor inventories.

    Usage:
        reconciler = InventoryReconciler(GemClassifier(settings))
        reconciler.consume_one(ruby)
        restored = reconciler.return_one(sword, slot['gemSnapshot'])
    """

    def __init__(self, classifier: GemClassifier):
        self.classifier = classifier

    def consume_one(self, gem) -> None:
        """
        Remove one unit of gem from its owner.

        World-level items (no owning actor) are left alone. A stack of one
        is deleted outright.
        """
        actor = gem.actor
        if actor is None:
            return
        quantity = gem.quantity
        if quantity > 1:
            gem.update({QUANTITY_PATH: quantity - 1})
            logger.debug(f"{gem.name} quantity {quantity} -> {quantity - 1} for {actor.name}")
        else:
            actor.delete_items([gem.id])
            logger.debug(f"Consumed last {gem.name} from {actor.name}")

    def find_stack(self, actor, snapshot: Dict[str, Any]):
        """First gem in the actor's inventory that stacks with snapshot, or None."""
        for item in actor.items:
            if self.classifier.matches(item) and is_same_stack(item, snapshot):
                return item
        return None

    def return_one(self, host, snapshot: Optional[Dict[str, Any]]):
        """
        Give one unit of a socketed gem back to the host's owner.

        Args:
            host: Host ItemDocument; its actor receives the gem
            snapshot: The slot's gem snapshot

        Returns:
            The stack that was incremented or the item that was created,
            or None when there is nothing to return or nobody to return it to

        Raises:
            Exception: Whatever the storage raises; callers decide how to handle it
        """
        if not snapshot:
            return None
        actor = host.actor
        if actor is None:
            return None

        payload = copy.deepcopy(snapshot)
        set_property(payload, QUANTITY_PATH, 1)

        existing = self.find_stack(actor, payload)
        if existing is not None:
            quantity = existing.quantity
            existing.update({QUANTITY_PATH: quantity + 1})
            logger.debug(f"Stacked returned {existing.name} for {actor.name} ({quantity} -> {quantity + 1})")
            return existing

        created = actor.create_items([payload])
        logger.debug(f"Returned {payload.get('name')} to {actor.name} as a new item")
        return created[0] if created else None


__all__ = ['InventoryReconciler', 'stacking_fingerprint', 'is_same_stack', 'TRANSIENT_KEYS']
