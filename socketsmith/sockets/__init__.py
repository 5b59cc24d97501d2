"""
Sockets for Socket Smith.

Host items (weapons, equipment) carry an ordered list of socket slots.
Gems socketed into a slot lend the host their effects and activities and
are taken out of their owner's inventory; unsocketing reverses both.

Services:
- GemClassifier: is this document a gem?
- SocketStore: the persisted slot list
- EffectPropagator / ActivityPropagator: copy gem abilities onto the host, tagged by slot
- InventoryReconciler: consume gems, return them (stacking by fingerprint)
- SocketEngine: add_gem / remove_gem / add_slot / remove_slot / toggle_hidden

Query helpers get_item_slots / get_item_gems return plain data for callers.
"""

from .activities import ActivityPropagator
from .effects import EffectPropagator, GemProvenance
from .engine import SocketEngine
from .gem_criteria import GemClassifier, gem_fits_host
from .inventory import InventoryReconciler, is_same_stack, stacking_fingerprint
from .queries import get_item_gems, get_item_slots
from .settings import SocketSettings
from .slot import SocketSlot, snapshot_gem
from .store import SocketStore

__all__ = [
    'ActivityPropagator',
    'EffectPropagator',
    'GemProvenance',
    'SocketEngine',
    'GemClassifier',
    'gem_fits_host',
    'InventoryReconciler',
    'is_same_stack',
    'stacking_fingerprint',
    'get_item_gems',
    'get_item_slots',
    'SocketSettings',
    'SocketSlot',
    'snapshot_gem',
    'SocketStore',
]
