"""
Copies a gem's effects onto its host item and removes them again.

Each copied effect carries a provenance record naming the slot it belongs
to. Removal scans the host's effects for that slot index and never looks
at the gem itself, so it keeps working after the gem document is gone.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .constants import FLAG_SOURCE_GEM, MODULE_ID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GemProvenance:
    """Which gem and slot a transferred effect came from."""
    source_gem_uuid: str
    slot_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {'sourceGemUuid': self.source_gem_uuid, 'slotIndex': self.slot_index}

    @staticmethod
    def from_dict(data: Any) -> Optional['GemProvenance']:
        if not isinstance(data, dict):
            return None
        slot_index = data.get('slotIndex')
        if not isinstance(slot_index, int) or isinstance(slot_index, bool):
            return None
        return GemProvenance(str(data.get('sourceGemUuid') or ''), slot_index)

    @staticmethod
    def of(effect) -> Optional['GemProvenance']:
        return GemProvenance.from_dict(effect.get_flag(MODULE_ID, FLAG_SOURCE_GEM))


class EffectPropagator:
    """Effect transfer between gems and host items."""

    @staticmethod
    def apply_gem_effects(host, slot_index: int, gem) -> List:
        """
        Copy every effect of gem onto host, tagged with slot_index.

        Returns:
            The created EffectDocuments (empty if the gem has none)
        """
        source = gem.effects
        if not source:
            return []

        provenance = GemProvenance(gem.uuid, slot_index).to_dict()
        to_create = []
        for effect in source:
            data = effect.to_object()
            data.pop('_id', None)
            data['name'] = data.get('name') or gem.name or 'Gem Effect'
            data['img'] = data.get('img') or gem.img
            data['disabled'] = False
            data['transfer'] = True
            data['origin'] = host.uuid
            flags = data.setdefault('flags', {})
            flags.setdefault(MODULE_ID, {})[FLAG_SOURCE_GEM] = provenance
            to_create.append(data)

        created = host.create_effects(to_create)
        logger.debug(f"Applied {len(created)} effect(s) from {gem.name} to {host.name} slot {slot_index}")
        return created

    @staticmethod
    def effects_for_slot(host, slot_index: int) -> List:
        """Host effects whose provenance names slot_index."""
        matches = []
        for effect in host.effects:
            provenance = GemProvenance.of(effect)
            if provenance is not None and provenance.slot_index == slot_index:
                matches.append(effect)
        return matches

    @staticmethod
    def remove_gem_effects(host, slot_index: int) -> int:
        """
        Delete every effect tagged with slot_index. Safe to repeat.

        Returns:
            Number of effects deleted
        """
        ids = [effect.id for effect in EffectPropagator.effects_for_slot(host, slot_index)]
        if not ids:
            return 0
        deleted = host.delete_effects(ids)
        logger.debug(f"Removed {deleted} effect(s) from {host.name} slot {slot_index}")
        return deleted

    @staticmethod
    def shift_slots(host, removed_index: int) -> None:
        """Renumber provenance after slot removed_index was spliced out."""
        for effect in host.effects:
            provenance = GemProvenance.of(effect)
            if provenance is None or provenance.slot_index <= removed_index:
                continue
            shifted = GemProvenance(provenance.source_gem_uuid, provenance.slot_index - 1)
            effect.update({f"flags.{MODULE_ID}.{FLAG_SOURCE_GEM}": shifted.to_dict()})


__all__ = ['EffectPropagator', 'GemProvenance']
