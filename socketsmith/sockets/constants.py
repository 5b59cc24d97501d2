"""Flag keys, document paths and event names shared by the socket services."""

MODULE_ID = 'socketsmith'

# Item flags under flags.socketsmith
FLAG_SOCKETS = 'sockets'
FLAG_SOURCE_GEM = 'sourceGem'
FLAG_SOCKET_ACTIVITIES = 'socketActivities'
FLAG_GEM_ALLOWED_TYPES = 'allowedTypes'

GEM_ALLOWED_TYPES_ALL = 'all'

# Document paths
SUBTYPE_PATH = 'system.type.value'
SUBTYPE_ALT_PATH = 'system.type.subtype'
QUANTITY_PATH = 'system.quantity'
ACTIVITIES_PATH = 'system.activities'
SOURCE_ID_PATH = 'flags.core.sourceId'
COMPENDIUM_SOURCE_PATH = '_stats.compendiumSource'

DEFAULT_GEM_SUBTYPE = 'gem'
DEFAULT_SLOT_NAME = 'Empty'
DEFAULT_SLOT_IMG = 'assets/imgs/socket-slot.webp'

# Events published on the world event bus
EVENT_SLOT_ADDED = 'socket.slot_added'
EVENT_SLOT_REMOVED = 'socket.slot_removed'
EVENT_SLOT_VISIBILITY_CHANGED = 'socket.slot_visibility_changed'
EVENT_GEM_ADDED = 'socket.gem_added'
EVENT_GEM_REMOVED = 'socket.gem_removed'
