"""
Copies a gem's activities onto its host item and removes them again.

Only item kinds with a system.activities collection take part. Activities
are removed by id, so each slot keeps a record under
flags.socketsmith.socketActivities.<slot>:

    {
        'gemUuid': ..., 'gemName': ..., 'gemImg': ...,
        'activityIds': [<new id>, ...],
        'activityMeta': {<new id>: {'sourceId', 'slot', 'gemImg', 'gemName', 'activityName'}},
    }

Other keys under socketActivities (for example hidden-activity markers) are
left untouched.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from socketsmith.core.documents import get_property
from socketsmith.core.models import generate_id
from .constants import ACTIVITIES_PATH, FLAG_SOCKET_ACTIVITIES, MODULE_ID
from .gem_criteria import item_data

logger = logging.getLogger(__name__)

_RECORDS_PATH = f"flags.{MODULE_ID}.{FLAG_SOCKET_ACTIVITIES}"


def _slot_key(key: Any) -> Optional[int]:
    try:
        return int(key)
    except (TypeError, ValueError):
        return None


class ActivityPropagator:
    """Activity transfer between gems and host items."""

    @staticmethod
    def slot_record(host, slot_index: int) -> Optional[Dict[str, Any]]:
        records = host.get_flag(MODULE_ID, FLAG_SOCKET_ACTIVITIES)
        if not isinstance(records, dict):
            return None
        record = records.get(str(slot_index))
        return record if isinstance(record, dict) else None

    @staticmethod
    def apply_from_gem(host, slot_index: int, gem) -> List[str]:
        """
        Replace the slot's activities with copies of the gem's activities.

        The new activities and the slot record are written in a single update.

        Returns:
            IDs of the activities created on the host
        """
        if not host.supports_activities():
            return []

        ActivityPropagator.remove_for_slot(host, slot_index)

        source = get_property(item_data(gem) or {}, ACTIVITIES_PATH)
        if not isinstance(source, dict) or not source:
            return []

        changes: Dict[str, Any] = {}
        created_ids: List[str] = []
        activity_meta: Dict[str, Dict[str, Any]] = {}
        for source_id, activity in source.items():
            if not isinstance(activity, dict):
                continue
            new_id = generate_id()
            payload = copy.deepcopy(activity)
            payload['_id'] = new_id
            changes[f"{ACTIVITIES_PATH}.{new_id}"] = payload
            created_ids.append(new_id)
            activity_meta[new_id] = {
                'sourceId': activity.get('_id', source_id),
                'slot': slot_index,
                'gemImg': gem.img,
                'gemName': gem.name,
                'activityName': activity.get('name'),
            }

        if not created_ids:
            return []

        changes[f"{_RECORDS_PATH}.{slot_index}"] = {
            'gemUuid': gem.uuid,
            'gemName': gem.name,
            'gemImg': gem.img,
            'activityIds': created_ids,
            'activityMeta': activity_meta,
        }
        host.update(changes)
        logger.debug(f"Applied {len(created_ids)} activit(ies) from {gem.name} to {host.name} slot {slot_index}")
        return created_ids

    @staticmethod
    def remove_for_slot(host, slot_index: int) -> List[str]:
        """
        Delete the activities recorded for slot_index and clear its record.

        Activities that no longer exist on the host are skipped. Safe to repeat.

        Returns:
            IDs of the activities deleted
        """
        if not host.supports_activities():
            return []

        record = ActivityPropagator.slot_record(host, slot_index)
        if record is None:
            return []

        ids = record.get('activityIds')
        existing = get_property(host.source, ACTIVITIES_PATH) or {}
        removed = [i for i in ids if i in existing] if isinstance(ids, list) else []

        changes: Dict[str, Any] = {f"{ACTIVITIES_PATH}.-={i}": None for i in removed}
        changes[f"{_RECORDS_PATH}.-={slot_index}"] = None
        host.update(changes)
        if removed:
            logger.debug(f"Removed {len(removed)} activit(ies) from {host.name} slot {slot_index}")
        return removed

    @staticmethod
    def activities_for_slot(host, slot_index: int) -> List[Dict[str, Any]]:
        """Activity data currently on the host for slot_index."""
        record = ActivityPropagator.slot_record(host, slot_index) or {}
        existing = get_property(host.source, ACTIVITIES_PATH) or {}
        return [copy.deepcopy(existing[i]) for i in record.get('activityIds', []) if i in existing]

    @staticmethod
    def shift_slots(host, removed_index: int) -> None:
        """Renumber slot records after slot removed_index was spliced out."""
        records = host.get_flag(MODULE_ID, FLAG_SOCKET_ACTIVITIES)
        if not isinstance(records, dict):
            return

        shifted: Dict[str, Any] = {}
        changed = False
        for key, record in records.items():
            index = _slot_key(key)
            if index is None or index < removed_index:
                shifted[key] = record
                continue
            changed = True
            if index == removed_index:
                continue
            if isinstance(record, dict):
                for meta in (record.get('activityMeta') or {}).values():
                    if isinstance(meta, dict):
                        meta['slot'] = index - 1
            shifted[str(index - 1)] = record

        if changed:
            host.update({_RECORDS_PATH: shifted})


__all__ = ['ActivityPropagator']
