"""
Core data models for Socket Smith.

- User / UserRole: who is acting, used for permission checks
- Event: Immutable record of a socket state change
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional, Dict, Any
import uuid


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique 16 character document ID.

    Args:
        prefix: Optional prefix (e.g., 'evt')

    Returns:
        String like 'a1b2c3d4e5f6a7b8' or 'evt_a1b2c3d4e5f6a7b8'
    """
    token = uuid.uuid4().hex[:16]
    return f"{prefix}_{token}" if prefix else token


def now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def timestamp_ms() -> int:
    """Current UTC time in epoch milliseconds, as stored in document stats."""
    return int(now().timestamp() * 1000)


class UserRole(IntEnum):
    """Permission levels, lowest to highest."""

    NONE = 0
    PLAYER = 1
    TRUSTED = 2
    ASSISTANT = 3
    GAMEMASTER = 4

    @classmethod
    def parse(cls, value: Any) -> 'UserRole':
        """
        Parse a role from its name or numeric level.

        Args:
            value: 'GAMEMASTER', 'player', 4, '2', or a UserRole

        Returns:
            Matching UserRole

        Raises:
            ValueError: If the value names no role
        """
        if isinstance(value, UserRole):
            return value
        text = str(value).strip()
        if text.lstrip('-').isdigit():
            return cls(int(text))
        try:
            return cls[text.upper()]
        except KeyError:
            raise ValueError(f"Unknown role: {value}") from None


@dataclass
class User:
    """
    The actor performing an operation.

    Attributes:
        id: User identifier
        name: Display name
        role: Permission level
    """
    id: str
    name: str
    role: UserRole = UserRole.PLAYER

    @property
    def is_gm(self) -> bool:
        return self.role >= UserRole.GAMEMASTER

    def has_role(self, role: UserRole) -> bool:
        """Check if this user's role meets the given minimum."""
        return self.role >= role


@dataclass
class Event:
    """
    An immutable record of a socket state change.

    Attributes:
        event_id: Unique identifier
        timestamp: When this event occurred
        event_type: Type of event (e.g., 'socket.gem_added')
        document_uuid: Host item the event concerns (if any)
        data: Event-specific payload

    Examples:
        Gem socketed: type='socket.gem_added', document_uuid='Actor.x.Item.y',
                      data={'slotIndex': 0, 'gemName': 'Ruby'}
    """
    event_id: str
    timestamp: datetime
    event_type: str
    document_uuid: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def create(event_type: str, data: Dict[str, Any],
               document_uuid: Optional[str] = None,
               event_id: Optional[str] = None) -> 'Event':
        """
        Create a new event.

        Args:
            event_type: Type of event
            data: Event data
            document_uuid: Related host item (optional)
            event_id: Optional specific ID

        Returns:
            New Event instance
        """
        return Event(
            event_id=event_id or generate_id('evt'),
            timestamp=now(),
            event_type=event_type,
            document_uuid=document_uuid,
            data=data
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'event_id': self.event_id,
            'timestamp': self.timestamp.isoformat(),
            'event_type': self.event_type,
            'document_uuid': self.document_uuid,
            'data': self.data
        }
