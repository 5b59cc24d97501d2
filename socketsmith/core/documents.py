"""
Document views over DocumentStorage.

ActorDocument, ItemDocument and EffectDocument wrap stored JSON data and
expose the small surface the socket services need: flags, embedded effects,
owned items and dotted-path updates.

Update keys are dotted paths into the document data. A final path segment
prefixed with '-=' deletes that key instead of setting it:

    item.update({
        'system.quantity': 2,
        'flags.socketsmith.socketActivities.-=0': None,
    })
"""

import copy
import logging
from typing import Any, Dict, Iterable, List, Optional

from .models import generate_id, timestamp_ms
from .storage import DocumentStorage

logger = logging.getLogger(__name__)

DEFAULT_ITEM_IMG = 'icons/svg/item-bag.svg'
DEFAULT_EFFECT_IMG = 'icons/svg/aura.svg'

_MISSING = object()


# ========== Property paths ==========

def get_property(data: Any, path: str, default: Any = None) -> Any:
    """
    Read a dotted path from nested dicts.

    Examples:
        >>> get_property({'system': {'type': {'value': 'gem'}}}, 'system.type.value')
        'gem'
    """
    current = data
    for part in path.split('.'):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def set_property(data: Dict[str, Any], path: str, value: Any) -> None:
    """Write a dotted path, creating intermediate dicts as needed."""
    parts = path.split('.')
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


def apply_update(data: Dict[str, Any], changes: Dict[str, Any]) -> None:
    """
    Apply dotted-path changes to data in place.

    A last segment of the form '-=key' removes 'key' from its parent.
    """
    for path, value in changes.items():
        parent_path, _, last = path.rpartition('.')
        if last.startswith('-='):
            parent = get_property(data, parent_path) if parent_path else data
            if isinstance(parent, dict):
                parent.pop(last[2:], None)
            continue
        set_property(data, path, copy.deepcopy(value))


def _normalize_effect(raw: Dict[str, Any], fallback_name: str) -> Dict[str, Any]:
    effect = copy.deepcopy(raw)
    effect['_id'] = generate_id()
    effect.setdefault('name', fallback_name)
    effect.setdefault('img', DEFAULT_EFFECT_IMG)
    effect.setdefault('disabled', False)
    effect.setdefault('transfer', False)
    effect.setdefault('changes', [])
    effect.setdefault('flags', {})
    return effect


def create_item_documents(storage: DocumentStorage, actor_id: Optional[str],
                          datas: Iterable[Dict[str, Any]]) -> List['ItemDocument']:
    """
    Create item documents (and their embedded effects) from raw data.

    Any '_id' in the incoming data is replaced with a fresh one.

    Args:
        storage: Backing storage
        actor_id: Owning actor, or None for world-level items
        datas: Item data dicts, e.g. snapshots taken with ItemDocument.to_object()

    Returns:
        The created documents, in input order
    """
    created = []
    for raw in datas:
        data = copy.deepcopy(raw)
        effects = data.pop('effects', None) or []
        data['_id'] = generate_id()
        data.setdefault('name', 'New Item')
        data.setdefault('type', 'loot')
        data.setdefault('img', DEFAULT_ITEM_IMG)
        data.setdefault('system', {})
        data.setdefault('flags', {})
        data.setdefault('sort', 0)
        data.setdefault('folder', None)
        data.setdefault('ownership', {'default': 0})
        stamp = timestamp_ms()
        stats = data.get('_stats') if isinstance(data.get('_stats'), dict) else {}
        data['_stats'] = {
            'compendiumSource': stats.get('compendiumSource'),
            'createdTime': stamp,
            'modifiedTime': stamp,
        }

        storage.create_item(data['_id'], actor_id, data)
        if effects:
            storage.create_effects(
                data['_id'], [_normalize_effect(e, data['name']) for e in effects]
            )
        created.append(ItemDocument(storage, data, actor_id))
    return created


# ========== Documents ==========

class EffectDocument:
    """An active effect embedded in an item."""

    document_name = 'ActiveEffect'

    def __init__(self, storage: DocumentStorage, parent: 'ItemDocument', data: Dict[str, Any]):
        self.storage = storage
        self.parent = parent
        self._data = data

    @property
    def id(self) -> str:
        return self._data['_id']

    @property
    def name(self) -> str:
        return self._data.get('name', '')

    @property
    def img(self) -> Optional[str]:
        return self._data.get('img')

    @property
    def uuid(self) -> str:
        return f"{self.parent.uuid}.ActiveEffect.{self.id}"

    @property
    def disabled(self) -> bool:
        return bool(self._data.get('disabled', False))

    @property
    def transfer(self) -> bool:
        return bool(self._data.get('transfer', False))

    @property
    def origin(self) -> Optional[str]:
        return self._data.get('origin')

    def get_flag(self, scope: str, key: str, default: Any = None) -> Any:
        value = get_property(self._data, f"flags.{scope}.{key}", _MISSING)
        return default if value is _MISSING else copy.deepcopy(value)

    def to_object(self) -> Dict[str, Any]:
        """Deep copy of the effect's data."""
        return copy.deepcopy(self._data)

    def update(self, changes: Dict[str, Any]) -> None:
        data = copy.deepcopy(self._data)
        apply_update(data, changes)
        self.storage.update_effect(self.id, data)
        self._data = data

    def __repr__(self) -> str:
        return f"EffectDocument({self.uuid!r}, name={self.name!r})"


class ItemDocument:
    """
    An item, either owned by an actor or at world level.

    Flag and system reads come from the last state this object wrote or
    loaded; call refresh() to pick up writes made through another handle.
    Embedded effects are always read from storage.
    """

    document_name = 'Item'

    def __init__(self, storage: DocumentStorage, data: Dict[str, Any],
                 actor_id: Optional[str] = None):
        self.storage = storage
        self._data = data
        self.actor_id = actor_id

    # ----- identity -----

    @property
    def id(self) -> str:
        return self._data['_id']

    @property
    def uuid(self) -> str:
        if self.actor_id:
            return f"Actor.{self.actor_id}.Item.{self.id}"
        return f"Item.{self.id}"

    @property
    def name(self) -> str:
        return self._data.get('name', '')

    @property
    def type(self) -> str:
        return self._data.get('type', '')

    @property
    def img(self) -> Optional[str]:
        return self._data.get('img')

    @property
    def source(self) -> Dict[str, Any]:
        """The stored document data. Treat as read-only."""
        return self._data

    @property
    def system(self) -> Dict[str, Any]:
        """Read-only copy of the system data; use update() to change it."""
        return copy.deepcopy(self._data.get('system', {}))

    @property
    def quantity(self) -> int:
        return int(get_property(self._data, 'system.quantity', 1) or 1)

    @property
    def actor(self) -> Optional['ActorDocument']:
        """The owning actor, or None for world-level items."""
        if not self.actor_id:
            return None
        data = self.storage.get_actor(self.actor_id)
        return ActorDocument(self.storage, data) if data else None

    def supports_activities(self) -> bool:
        """Whether this item kind carries a system.activities collection."""
        return isinstance(self._data.get('system', {}).get('activities'), dict)

    # ----- flags -----

    def get_flag(self, scope: str, key: str, default: Any = None) -> Any:
        value = get_property(self._data, f"flags.{scope}.{key}", _MISSING)
        return default if value is _MISSING else copy.deepcopy(value)

    def set_flag(self, scope: str, key: str, value: Any) -> None:
        self.update({f"flags.{scope}.{key}": value})

    def unset_flag(self, scope: str, key: str) -> None:
        self.update({f"flags.{scope}.-={key}": None})

    # ----- persistence -----

    def update(self, changes: Dict[str, Any]) -> None:
        """
        Apply dotted-path changes and persist the whole document.

        Args:
            changes: Mapping of dotted paths to new values ('-=key' deletes)
        """
        data = copy.deepcopy(self._data)
        apply_update(data, changes)
        data.setdefault('_stats', {})['modifiedTime'] = timestamp_ms()
        self.storage.update_item(self.id, data)
        self._data = data

    def refresh(self) -> 'ItemDocument':
        """Reload data from storage."""
        row = self.storage.get_item(self.id)
        if row is None:
            raise KeyError(f"Item {self.id} no longer exists")
        self._data = row['data']
        self.actor_id = row['actor_id']
        return self

    def exists(self) -> bool:
        return self.storage.get_item(self.id) is not None

    # ----- embedded effects -----

    @property
    def effects(self) -> List[EffectDocument]:
        return [EffectDocument(self.storage, self, data)
                for data in self.storage.list_effects(self.id)]

    def get_effect(self, effect_id: str) -> Optional[EffectDocument]:
        return next((e for e in self.effects if e.id == effect_id), None)

    def create_effects(self, datas: Iterable[Dict[str, Any]]) -> List[EffectDocument]:
        """Create embedded effects, each under a fresh ID."""
        effects = [_normalize_effect(d, self.name) for d in datas]
        if not effects:
            return []
        self.storage.create_effects(self.id, effects)
        return [EffectDocument(self.storage, self, data) for data in effects]

    def delete_effects(self, effect_ids: Iterable[str]) -> int:
        return self.storage.delete_effects(self.id, list(effect_ids))

    # ----- serialization -----

    def to_object(self) -> Dict[str, Any]:
        """Deep copy of the full document data, embedded effects included."""
        data = copy.deepcopy(self._data)
        data['effects'] = [e.to_object() for e in self.effects]
        return data

    def __repr__(self) -> str:
        return f"ItemDocument({self.uuid!r}, name={self.name!r}, type={self.type!r})"


class ActorDocument:
    """A character or container that owns items."""

    document_name = 'Actor'

    def __init__(self, storage: DocumentStorage, data: Dict[str, Any]):
        self.storage = storage
        self._data = data

    @property
    def id(self) -> str:
        return self._data['_id']

    @property
    def name(self) -> str:
        return self._data.get('name', '')

    @property
    def uuid(self) -> str:
        return f"Actor.{self.id}"

    @property
    def items(self) -> List[ItemDocument]:
        return [ItemDocument(self.storage, row['data'], row['actor_id'])
                for row in self.storage.list_items(self.id)]

    def get_item(self, item_id: str) -> Optional[ItemDocument]:
        row = self.storage.get_item(item_id)
        if row is None or row['actor_id'] != self.id:
            return None
        return ItemDocument(self.storage, row['data'], row['actor_id'])

    def create_items(self, datas: Iterable[Dict[str, Any]]) -> List[ItemDocument]:
        return create_item_documents(self.storage, self.id, datas)

    def delete_items(self, item_ids: Iterable[str]) -> None:
        ids = list(item_ids)
        owned = {item.id for item in self.items}
        missing = [i for i in ids if i not in owned]
        if missing:
            raise KeyError(f"Actor {self.id} does not own items {missing}")
        self.storage.delete_items(ids)
        logger.debug(f"Deleted items {ids} from actor {self.name}")

    def __repr__(self) -> str:
        return f"ActorDocument({self.uuid!r}, name={self.name!r})"


__all__ = [
    'ActorDocument',
    'ItemDocument',
    'EffectDocument',
    'create_item_documents',
    'get_property',
    'set_property',
    'apply_update',
]
