"""
Storage layer for Socket Smith.

DocumentStorage persists actors, items, embedded effects and the event log
in SQLite. Document bodies are stored as JSON text; every write commits
immediately, there are no multi-statement transactions.
"""

import sqlite3
import json
from datetime import datetime
from typing import List, Optional, Dict, Any

from .models import Event, now

SCHEMA = """
CREATE TABLE IF NOT EXISTS actors (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS items (
    id TEXT PRIMARY KEY,
    actor_id TEXT REFERENCES actors(id),
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL,
    modified_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_items_actor ON items(actor_id);

CREATE TABLE IF NOT EXISTS effects (
    id TEXT PRIMARY KEY,
    item_id TEXT NOT NULL REFERENCES items(id),
    data TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_effects_item ON effects(item_id);

CREATE TABLE IF NOT EXISTS events (
    event_id TEXT PRIMARY KEY,
    timestamp TIMESTAMP NOT NULL,
    event_type TEXT NOT NULL,
    document_uuid TEXT,
    data TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_events_document ON events(document_uuid);
"""


class DocumentStorage:
    """
    Manages the SQLite database for a world.

    Attributes:
        db_path: Path to SQLite database file
        conn: Database connection (None until initialize() is called)
    """

    def __init__(self, db_path: str):
        """
        Initialize storage for a world database.

        Args:
            db_path: Path to SQLite database file
                    Use ':memory:' for in-memory testing database
        """
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None

    def initialize(self) -> None:
        """Open the connection and create tables if they don't exist."""
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    # ========== Actors ==========

    def create_actor(self, actor_id: str, name: str, data: Dict[str, Any]) -> None:
        self.conn.execute(
            "INSERT INTO actors (id, name, data, created_at) VALUES (?, ?, ?, ?)",
            (actor_id, name, json.dumps(data), now().isoformat())
        )
        self.conn.commit()

    def get_actor(self, actor_id: str) -> Optional[Dict[str, Any]]:
        """
        Get an actor's document data.

        Returns:
            Actor data dict, or None if not found
        """
        row = self.conn.execute(
            "SELECT data FROM actors WHERE id = ?", (actor_id,)
        ).fetchone()
        return json.loads(row['data']) if row else None

    def list_actors(self) -> List[Dict[str, Any]]:
        cursor = self.conn.execute("SELECT data FROM actors ORDER BY created_at, id")
        return [json.loads(row['data']) for row in cursor.fetchall()]

    # ========== Items ==========

    def create_item(self, item_id: str, actor_id: Optional[str], data: Dict[str, Any]) -> None:
        """
        Insert a new item document.

        Args:
            item_id: Document ID (also stored as data['_id'])
            actor_id: Owning actor, or None for a world-level item
            data: Item document data without embedded effects
        """
        timestamp = now().isoformat()
        self.conn.execute("""
            INSERT INTO items (id, actor_id, name, type, data, created_at, modified_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (item_id, actor_id, data.get('name', ''), data.get('type', ''),
              json.dumps(data), timestamp, timestamp))
        self.conn.commit()

    def get_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        """
        Get an item row.

        Returns:
            Dict with 'actor_id' and 'data' keys, or None if not found
        """
        row = self.conn.execute(
            "SELECT actor_id, data FROM items WHERE id = ?", (item_id,)
        ).fetchone()
        if row is None:
            return None
        return {'actor_id': row['actor_id'], 'data': json.loads(row['data'])}

    def update_item(self, item_id: str, data: Dict[str, Any]) -> None:
        """Replace an item's stored data."""
        cursor = self.conn.execute("""
            UPDATE items SET name = ?, type = ?, data = ?, modified_at = ?
            WHERE id = ?
        """, (data.get('name', ''), data.get('type', ''), json.dumps(data),
              now().isoformat(), item_id))
        if cursor.rowcount == 0:
            raise KeyError(f"Item {item_id} does not exist")
        self.conn.commit()

    def delete_items(self, item_ids: List[str]) -> None:
        """Delete items and their embedded effects."""
        if not item_ids:
            return
        placeholders = ','.join('?' for _ in item_ids)
        self.conn.execute(f"DELETE FROM effects WHERE item_id IN ({placeholders})", item_ids)
        self.conn.execute(f"DELETE FROM items WHERE id IN ({placeholders})", item_ids)
        self.conn.commit()

    def list_items(self, actor_id: Optional[str]) -> List[Dict[str, Any]]:
        """
        List items owned by an actor, or world-level items when actor_id is None.

        Returns:
            List of dicts with 'actor_id' and 'data' keys, in creation order
        """
        if actor_id is None:
            cursor = self.conn.execute(
                "SELECT actor_id, data FROM items WHERE actor_id IS NULL ORDER BY rowid"
            )
        else:
            cursor = self.conn.execute(
                "SELECT actor_id, data FROM items WHERE actor_id = ? ORDER BY rowid",
                (actor_id,)
            )
        return [
            {'actor_id': row['actor_id'], 'data': json.loads(row['data'])}
            for row in cursor.fetchall()
        ]

    # ========== Effects ==========

    def create_effects(self, item_id: str, effects: List[Dict[str, Any]]) -> None:
        """Insert embedded effects; each dict must carry its own '_id'."""
        timestamp = now().isoformat()
        self.conn.executemany(
            "INSERT INTO effects (id, item_id, data, created_at) VALUES (?, ?, ?, ?)",
            [(effect['_id'], item_id, json.dumps(effect), timestamp) for effect in effects]
        )
        self.conn.commit()

    def list_effects(self, item_id: str) -> List[Dict[str, Any]]:
        cursor = self.conn.execute(
            "SELECT data FROM effects WHERE item_id = ? ORDER BY rowid", (item_id,)
        )
        return [json.loads(row['data']) for row in cursor.fetchall()]

    def update_effect(self, effect_id: str, data: Dict[str, Any]) -> None:
        self.conn.execute(
            "UPDATE effects SET data = ? WHERE id = ?", (json.dumps(data), effect_id)
        )
        self.conn.commit()

    def delete_effects(self, item_id: str, effect_ids: List[str]) -> int:
        """
        Delete effects of one item.

        Returns:
            Number of rows deleted
        """
        if not effect_ids:
            return 0
        placeholders = ','.join('?' for _ in effect_ids)
        cursor = self.conn.execute(
            f"DELETE FROM effects WHERE item_id = ? AND id IN ({placeholders})",
            [item_id, *effect_ids]
        )
        self.conn.commit()
        return cursor.rowcount

    # ========== Events ==========

    def log_event(self, event: Event) -> None:
        self.conn.execute("""
            INSERT INTO events (event_id, timestamp, event_type, document_uuid, data)
            VALUES (?, ?, ?, ?, ?)
        """, (event.event_id, event.timestamp.isoformat(), event.event_type,
              event.document_uuid, json.dumps(event.data)))
        self.conn.commit()

    def get_events(self, document_uuid: Optional[str] = None,
                   event_type: Optional[str] = None,
                   limit: int = 100) -> List[Event]:
        """
        Query the event log, newest first.

        Args:
            document_uuid: Filter by host item
            event_type: Filter by event type
            limit: Maximum number of events to return
        """
        query = "SELECT * FROM events WHERE 1=1"
        params: List[Any] = []
        if document_uuid:
            query += " AND document_uuid = ?"
            params.append(document_uuid)
        if event_type:
            query += " AND event_type = ?"
            params.append(event_type)
        query += " ORDER BY timestamp DESC, rowid DESC LIMIT ?"
        params.append(limit)

        events = []
        for row in self.conn.execute(query, params).fetchall():
            timestamp = row['timestamp']
            if isinstance(timestamp, str):
                timestamp = datetime.fromisoformat(timestamp)
            events.append(Event(
                event_id=row['event_id'],
                timestamp=timestamp,
                event_type=row['event_type'],
                document_uuid=row['document_uuid'],
                data=json.loads(row['data'])
            ))
        return events


__all__ = ['DocumentStorage', 'SCHEMA']
