"""
World facade for Socket Smith.

A World owns one SQLite database of actors and items plus the event bus
socket operations publish to. It is also the document resolver handed to
the socket engine: uuid strings go in, documents come out.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .documents import ActorDocument, EffectDocument, ItemDocument, create_item_documents
from .event_bus import EventBus
from .models import Event, generate_id, now, timestamp_ms
from .storage import DocumentStorage

logger = logging.getLogger(__name__)

Document = Union[ActorDocument, ItemDocument, EffectDocument]


class World:
    """
    Entry point for a single world database.

    Usage:
        world = World.initialize_world('worlds/demo', 'Demo')
        hero = world.create_actor('Theron')
        ruby = world.create_item({'name': 'Ruby', 'type': 'loot'}, actor=hero)
        same = world.from_uuid(ruby.uuid)
    """

    DB_FILENAME = 'world.db'
    CONFIG_FILENAME = 'world.json'

    def __init__(self, db_path: str, name: Optional[str] = None):
        """
        Open a world database.

        Args:
            db_path: SQLite path, or ':memory:' for a throwaway world
            name: Display name
        """
        self.name = name or Path(db_path).parent.name or 'World'
        self.storage = DocumentStorage(db_path)
        self.storage.initialize()
        self.event_bus = EventBus(self.storage)

    @classmethod
    def open(cls, world_path: str) -> 'World':
        """
        Open an existing world directory.

        Raises:
            ValueError: If the directory holds no world
        """
        path = Path(world_path)
        db_path = path / cls.DB_FILENAME
        if not db_path.exists():
            raise ValueError(f"No world found at {world_path}")
        name = None
        config_path = path / cls.CONFIG_FILENAME
        if config_path.exists():
            name = json.loads(config_path.read_text()).get('name')
        return cls(str(db_path), name=name)

    @classmethod
    def initialize_world(cls, world_path: str, world_name: str) -> 'World':
        """
        Create a new world directory with an empty database.

        Raises:
            ValueError: If a world already exists at that path
        """
        path = Path(world_path)
        if (path / cls.DB_FILENAME).exists():
            raise ValueError(f"World already exists at {world_path}")
        path.mkdir(parents=True, exist_ok=True)
        (path / cls.CONFIG_FILENAME).write_text(json.dumps({
            'name': world_name,
            'created_at': now().isoformat(),
        }, indent=2))
        logger.info(f"Initialized world '{world_name}' at {world_path}")
        return cls(str(path / cls.DB_FILENAME), name=world_name)

    def close(self) -> None:
        self.storage.close()

    # ========== Documents ==========

    def create_actor(self, name: str, data: Optional[Dict[str, Any]] = None) -> ActorDocument:
        actor_data = dict(data or {})
        actor_data['_id'] = generate_id()
        actor_data['name'] = name
        actor_data.setdefault('type', 'character')
        actor_data['_stats'] = {'createdTime': timestamp_ms()}
        self.storage.create_actor(actor_data['_id'], name, actor_data)
        return ActorDocument(self.storage, actor_data)

    def create_item(self, data: Dict[str, Any],
                    actor: Optional[ActorDocument] = None) -> ItemDocument:
        """
        Create an item, owned by actor or at world level.

        Args:
            data: Item data (name, type, img, system, flags, effects...)
            actor: Owner, or None
        """
        return create_item_documents(self.storage, actor.id if actor else None, [data])[0]

    def get_actor(self, actor_id: str) -> Optional[ActorDocument]:
        data = self.storage.get_actor(actor_id)
        return ActorDocument(self.storage, data) if data else None

    def get_item(self, item_id: str) -> Optional[ItemDocument]:
        row = self.storage.get_item(item_id)
        if row is None:
            return None
        return ItemDocument(self.storage, row['data'], row['actor_id'])

    def list_actors(self) -> List[ActorDocument]:
        return [ActorDocument(self.storage, data) for data in self.storage.list_actors()]

    def list_world_items(self) -> List[ItemDocument]:
        return [ItemDocument(self.storage, row['data'], row['actor_id'])
                for row in self.storage.list_items(None)]

    # ========== Resolution ==========

    def from_uuid(self, uuid: Any) -> Optional[Document]:
        """
        Resolve a document uuid.

        Supported forms:
            Actor.<id>
            Item.<id>
            Actor.<id>.Item.<id>
            <item uuid>.ActiveEffect.<id>

        Returns:
            The document, or None if the uuid is malformed or unknown
        """
        if not isinstance(uuid, str):
            return None
        parts = uuid.strip().split('.')
        if len(parts) < 2 or len(parts) % 2:
            return None

        pairs = list(zip(parts[0::2], parts[1::2]))
        kind, doc_id = pairs[0]
        if kind == 'Actor':
            actor = self.get_actor(doc_id)
            if actor is None or len(pairs) == 1:
                return actor
            kind, doc_id = pairs[1]
            if kind != 'Item':
                return None
            item = actor.get_item(doc_id)
            rest = pairs[2:]
        elif kind == 'Item':
            item = self.get_item(doc_id)
            if item is not None and item.actor_id is not None:
                return None
            rest = pairs[1:]
        else:
            return None

        if item is None or not rest:
            return item
        if len(rest) == 1 and rest[0][0] == 'ActiveEffect':
            return item.get_effect(rest[0][1])
        return None

    # ========== Events ==========

    def get_events(self, document_uuid: Optional[str] = None,
                   event_type: Optional[str] = None, limit: int = 100) -> List[Event]:
        return self.storage.get_events(document_uuid, event_type, limit)


__all__ = ['World', 'Document']
