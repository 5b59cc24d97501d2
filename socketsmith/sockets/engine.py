"""
Socket Engine: the operations callers actually invoke.

    add_gem        Empty/Occupied -> Occupied
    remove_gem     Occupied -> Empty
    add_slot       append an Empty slot
    remove_slot    delete a slot (clearing it first)
    toggle_hidden  flip a slot's hidden flag

Expected failures come back as a failed Result and change nothing. The
whole slot list is validated before the first write, so a malformed record
rejects the operation up front. Storage errors raise. The steps of add_gem
and remove_gem run in a fixed order and are not rolled back:

    add_gem:    clear slot -> snapshot -> write slot -> apply effects and
                activities -> consume gem
    remove_gem: return gem (best effort) -> clear effects and activities ->
                write empty slot

A failure between writing the slot and applying its effects leaves an
occupied slot without effects. Operations on the same host item must be
serialized by the caller; concurrent writers lose updates.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import jsonschema

from socketsmith.core.event_bus import EventBus
from socketsmith.core.models import Event, User
from socketsmith.core.result import ErrorCode, Result
from .activities import ActivityPropagator
from .constants import (
    EVENT_GEM_ADDED,
    EVENT_GEM_REMOVED,
    EVENT_SLOT_ADDED,
    EVENT_SLOT_REMOVED,
    EVENT_SLOT_VISIBILITY_CHANGED,
)
from .effects import EffectPropagator
from .gem_criteria import GemClassifier, gem_fits_host
from .inventory import InventoryReconciler
from .permissions import can_edit_sockets
from .settings import SocketSettings
from .slot import SocketSlot, snapshot_gem
from .store import SocketStore

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Any]


class SocketEngine:
    """
    Socket lifecycle for host items.

    Usage:
        engine = SocketEngine(SocketSettings(), resolve=world.from_uuid,
                              event_bus=world.event_bus)
        engine.add_slot(sword, user=gm)
        result = engine.add_gem(sword, 0, ruby.uuid)
        if not result:
            print(result.error)
    """

    def __init__(self, settings: Optional[SocketSettings] = None,
                 resolve: Optional[Resolver] = None,
                 event_bus: Optional[EventBus] = None):
        """
        Args:
            settings: Socket rules (defaults apply when omitted)
            resolve: uuid -> document lookup used for string and drag-payload sources
            event_bus: Receives socket events; optional
        """
        self.settings = settings or SocketSettings()
        self.resolve = resolve
        self.event_bus = event_bus
        self.classifier = GemClassifier(self.settings)
        self.inventory = InventoryReconciler(self.classifier)

    # ========== Queries ==========

    def is_gem(self, doc: Any) -> bool:
        return self.classifier.matches(doc)

    def is_socketable(self, item: Any) -> bool:
        return self.classifier.is_socketable(item)

    def get_slots(self, item) -> List[Dict[str, Any]]:
        """Detached copy of the item's slots."""
        return SocketStore.get_slots(item)

    def resolve_source(self, source: Any):
        """
        Turn a gem source into an item document.

        Accepts an ItemDocument, a uuid string, or a drag payload
        ({'uuid': ...} or {'data': {'uuid': ...}}).

        Returns:
            The item document, or None if it cannot be resolved
        """
        if getattr(source, 'document_name', None) == 'Item':
            return source
        uuid = None
        if isinstance(source, str):
            uuid = source.strip()
        elif isinstance(source, dict):
            uuid = source.get('uuid')
            if uuid is None and isinstance(source.get('data'), dict):
                uuid = source['data'].get('uuid')
        if not uuid or self.resolve is None:
            return None
        doc = self.resolve(uuid)
        return doc if getattr(doc, 'document_name', None) == 'Item' else None

    # ========== Gems ==========

    def add_gem(self, host, idx: Any, source: Any) -> Result:
        """
        Socket a gem into slot idx of host.

        Args:
            host: Host ItemDocument
            idx: Slot index
            source: Gem document, uuid string or drag payload

        Returns:
            Result with {'slotIndex', 'gem', 'effectIds', 'activityIds'} on success
        """
        slots = SocketStore.get_slots(host)
        malformed = self._check_slots(host, slots)
        if malformed is not None:
            return malformed
        if not self._valid_index(idx, slots):
            return self._reject("Invalid socket index.", ErrorCode.INVALID_INDEX)

        gem = self.resolve_source(source)
        if gem is None:
            return self._reject("Cannot resolve dropped item.", ErrorCode.UNRESOLVED_SOURCE)

        if not self.is_gem(gem) or gem.id == host.id:
            return self._reject("Only socket-compatible items can be inserted.", ErrorCode.WRONG_KIND)

        if not gem_fits_host(gem, host):
            return self._reject("That item is not compatible with this socket.",
                                ErrorCode.INCOMPATIBLE_GEM)

        EffectPropagator.remove_gem_effects(host, idx)
        ActivityPropagator.remove_for_slot(host, idx)

        snapshot = snapshot_gem(gem)
        slots[idx] = SocketSlot.fill_from_gem(slots[idx], gem, snapshot, idx, self.settings)
        SocketStore.set_slots(host, slots)

        effects = EffectPropagator.apply_gem_effects(host, idx, gem)
        activity_ids = ActivityPropagator.apply_from_gem(host, idx, gem)

        gem_ref = slots[idx]['gem']
        self.inventory.consume_one(gem)

        logger.info(f"Socketed {gem_ref['name']} into {host.name} slot {idx}")
        self._publish(EVENT_GEM_ADDED, host, {
            'slotIndex': idx,
            'gemUuid': gem_ref['uuid'],
            'gemName': gem_ref['name'],
        })
        return Result.ok({
            'slotIndex': idx,
            'gem': gem_ref,
            'effectIds': [effect.id for effect in effects],
            'activityIds': activity_ids,
        })

    def remove_gem(self, host, idx: Any) -> Result:
        """
        Unsocket the gem in slot idx of host.

        The gem is returned to the host owner's inventory unless settings say
        to destroy it. A failed return is logged and does not stop the slot
        from being cleared.

        Returns:
            Result with {'slotIndex', 'removed', 'returned', 'returnError'};
            'removed' is False when there was nothing to remove. Fails with
            MALFORMED_SLOTS, before the gem is returned, if any slot record
            is malformed.
        """
        slots = SocketStore.get_slots(host)
        malformed = self._check_slots(host, slots)
        if malformed is not None:
            return malformed
        if not self._valid_index(idx, slots) or not SocketSlot.is_occupied(slots[idx]):
            return Result.ok({'slotIndex': idx, 'removed': False,
                              'returned': None, 'returnError': None})

        slot = slots[idx]
        gem_ref = slot['gem']

        returned = None
        return_error = None
        if not self.settings.delete_gem_on_removal:
            outcome = self._return_to_inventory(host, slot)
            if outcome:
                returned = outcome.data.uuid if outcome.data is not None else None
            else:
                return_error = outcome.error

        EffectPropagator.remove_gem_effects(host, idx)
        ActivityPropagator.remove_for_slot(host, idx)
        slots[idx] = SocketSlot.clear(slot, self.settings)
        SocketStore.set_slots(host, slots)

        logger.info(f"Unsocketed {gem_ref['name']} from {host.name} slot {idx}")
        self._publish(EVENT_GEM_REMOVED, host, {
            'slotIndex': idx,
            'gemUuid': gem_ref.get('uuid'),
            'gemName': gem_ref.get('name'),
            'returnedUuid': returned,
        })
        return Result.ok({'slotIndex': idx, 'removed': True,
                          'returned': returned, 'returnError': return_error})

    def _return_to_inventory(self, host, slot: Dict[str, Any]) -> Result:
        """Best-effort return of a slot's gem; never raises."""
        try:
            item = self.inventory.return_one(host, slot.get('gemSnapshot'))
        except Exception as e:
            logger.warning(f"Returning {slot['gem'].get('name')} to inventory failed: {e}",
                           exc_info=True)
            return Result.fail(str(e), ErrorCode.INVENTORY_RETURN_FAILED)
        return Result.ok(item)

    # ========== Slots ==========

    def add_slot(self, host, user: Optional[User] = None,
                 bypass_permission: bool = False, hidden: bool = False) -> Result:
        """
        Append an empty slot to host.

        Args:
            host: Host ItemDocument
            user: Acting user, checked against settings.min_edit_role
            bypass_permission: Skip the role check (limits still apply)
            hidden: Create the slot hidden from default listings

        Returns:
            Result with {'slotIndex', 'slotCount', 'hidden'} on success
        """
        if not bypass_permission and not can_edit_sockets(user, self.settings.min_edit_role):
            return self._reject("You do not have permission to edit sockets.",
                                ErrorCode.PERMISSION_DENIED)

        if not self.is_socketable(host):
            return self._reject(f"Items of type '{host.type}' cannot have sockets.",
                                ErrorCode.NOT_SOCKETABLE)

        slots = SocketStore.get_slots(host)
        malformed = self._check_slots(host, slots)
        if malformed is not None:
            return malformed
        max_sockets = self.settings.max_sockets
        if max_sockets is not None and len(slots) >= max_sockets:
            return self._reject("Maximum number of sockets reached.",
                                ErrorCode.MAX_SOCKETS_REACHED)

        hidden = bool(hidden)
        SocketStore.add_slot(host, SocketSlot.make_default(self.settings, hidden=hidden))
        index = len(slots)
        logger.info(f"Added {'hidden ' if hidden else ''}socket {index} to {host.name}")
        self._publish(EVENT_SLOT_ADDED, host, {'slotIndex': index, 'hidden': hidden})
        return Result.ok({'slotIndex': index, 'slotCount': index + 1, 'hidden': hidden})

    def remove_slot(self, host, idx: Any, user: Optional[User] = None,
                    bypass_permission: bool = False) -> Result:
        """
        Delete slot idx from host.

        An occupied slot is unsocketed first (gem returned, effects and
        activities cleared). Later slots move down by one and their effect
        and activity tags are renumbered to match.

        Returns:
            Result with {'slotIndex', 'slotCount', 'unsocketed'} on success
        """
        if not bypass_permission and not can_edit_sockets(user, self.settings.min_edit_role):
            return self._reject("You do not have permission to edit sockets.",
                                ErrorCode.PERMISSION_DENIED)

        slots = SocketStore.get_slots(host)
        malformed = self._check_slots(host, slots)
        if malformed is not None:
            return malformed
        if not self._valid_index(idx, slots):
            return self._reject("Invalid socket index.", ErrorCode.INVALID_INDEX)

        unsocketed = False
        if SocketSlot.is_occupied(slots[idx]):
            unsocketed = self.remove_gem(host, idx).data['removed']
        EffectPropagator.remove_gem_effects(host, idx)
        ActivityPropagator.remove_for_slot(host, idx)

        SocketStore.remove_slot(host, idx)
        self._reindex_from(host, idx)

        slot_count = len(slots) - 1
        logger.info(f"Removed socket {idx} from {host.name}")
        self._publish(EVENT_SLOT_REMOVED, host, {'slotIndex': idx})
        return Result.ok({'slotIndex': idx, 'slotCount': slot_count, 'unsocketed': unsocketed})

    def toggle_hidden(self, host, idx: Any, user: Optional[User] = None,
                      bypass_permission: bool = False) -> Result:
        """
        Flip the hidden flag of slot idx. The slot's gem, effects and
        activities are untouched.

        Returns:
            Result with {'slotIndex', 'hidden'} on success
        """
        if not bypass_permission and not can_edit_sockets(user, self.settings.min_edit_role):
            return self._reject("You do not have permission to edit sockets.",
                                ErrorCode.PERMISSION_DENIED)

        slots = SocketStore.get_slots(host)
        malformed = self._check_slots(host, slots)
        if malformed is not None:
            return malformed
        if not self._valid_index(idx, slots):
            return self._reject("Invalid socket index.", ErrorCode.INVALID_INDEX)

        hidden = not SocketSlot.is_hidden(slots[idx])
        slots[idx]['hidden'] = hidden
        SocketStore.set_slots(host, slots)

        logger.info(f"Socket {idx} of {host.name} is now {'hidden' if hidden else 'visible'}")
        self._publish(EVENT_SLOT_VISIBILITY_CHANGED, host, {'slotIndex': idx, 'hidden': hidden})
        return Result.ok({'slotIndex': idx, 'hidden': hidden})

    def _reindex_from(self, host, removed_index: int) -> None:
        slots = SocketStore.get_slots(host)
        changed = False
        for position in range(removed_index, len(slots)):
            if SocketSlot.is_occupied(slots[position]) and slots[position].get('slotIndex') != position:
                slots[position]['slotIndex'] = position
                changed = True
        if changed:
            SocketStore.set_slots(host, slots)
        EffectPropagator.shift_slots(host, removed_index)
        ActivityPropagator.shift_slots(host, removed_index)

    # ========== Helpers ==========

    @staticmethod
    def _valid_index(idx: Any, slots: List[Dict[str, Any]]) -> bool:
        return isinstance(idx, int) and not isinstance(idx, bool) and 0 <= idx < len(slots)

    def _check_slots(self, host, slots: List[Dict[str, Any]]) -> Optional[Result]:
        try:
            SocketStore.validate_slots(slots)
        except jsonschema.ValidationError as e:
            return self._reject(f"Socket data of {host.name} is malformed: {e.message}",
                                ErrorCode.MALFORMED_SLOTS)
        return None

    @staticmethod
    def _reject(message: str, code: ErrorCode) -> Result:
        logger.warning(message)
        return Result.fail(message, code)

    def _publish(self, event_type: str, host, data: Dict[str, Any]) -> None:
        if self.event_bus is None:
            return
        self.event_bus.publish(Event.create(event_type, data, document_uuid=host.uuid))


__all__ = ['SocketEngine']
