"""
Gem classification and gem/host compatibility.

A gem is a loot item whose subtype (system.type.value) is one of the
configured gem subtypes. The classifier accepts live ItemDocuments and raw
item data dicts (such as slot snapshots) alike.
"""

from typing import Any, Dict, List, Optional

from socketsmith.core.documents import get_property
from .constants import (
    FLAG_GEM_ALLOWED_TYPES,
    GEM_ALLOWED_TYPES_ALL,
    MODULE_ID,
    SUBTYPE_ALT_PATH,
    SUBTYPE_PATH,
)
from .settings import SocketSettings


def item_data(doc: Any) -> Optional[Dict[str, Any]]:
    """
    Return the raw data of an item-like document, or None.

    ItemDocuments are unwrapped; dicts are taken as item data. Other
    documents (actors, effects) are not item-like.
    """
    if doc is None:
        return None
    document_name = getattr(doc, 'document_name', None)
    if document_name is not None:
        return doc.source if document_name == 'Item' else None
    return doc if isinstance(doc, dict) else None


class GemClassifier:
    """
    Decides whether a document is a gem.

    Usage:
        classifier = GemClassifier(SocketSettings(gem_subtypes=('gem', 'rune')))
        classifier.matches(ruby)  # True
    """

    def __init__(self, settings: SocketSettings):
        self.settings = settings

    def matches(self, doc: Any) -> bool:
        data = item_data(doc)
        if data is None:
            return False
        if str(data.get('type') or '').strip().lower() != self.settings.loot_type:
            return False
        subtype = get_property(data, SUBTYPE_PATH)
        if not isinstance(subtype, str):
            return False
        return subtype.strip().lower() in self.settings.gem_subtypes

    __call__ = matches

    def is_socketable(self, doc: Any) -> bool:
        """Whether an item's type may carry socket slots."""
        data = item_data(doc)
        if data is None:
            return False
        return str(data.get('type', '')).lower() in self.settings.socketable_types


def host_type_keys(host: Any) -> List[str]:
    """
    Keys a gem's allowed-types list is matched against.

    Returns 'type:subtype' for each subtype path that is set, then 'type'.
    """
    data = item_data(host) or {}
    item_type = str(data.get('type') or '')
    keys = []
    for path in (SUBTYPE_PATH, SUBTYPE_ALT_PATH):
        value = get_property(data, path)
        if value:
            key = f"{item_type}:{value}"
            if key not in keys:
                keys.append(key)
    if item_type:
        keys.append(item_type)
    return keys


def gem_fits_host(gem: Any, host: Any) -> bool:
    """
    Check a gem's optional host restriction.

    A gem with no allowed-types flag (or one listing 'all') fits any host.
    """
    if item_data(gem) is None or item_data(host) is None:
        return False
    allowed = get_property(item_data(gem), f"flags.{MODULE_ID}.{FLAG_GEM_ALLOWED_TYPES}")
    if not isinstance(allowed, list) or not allowed:
        return True
    if GEM_ALLOWED_TYPES_ALL in allowed:
        return True
    return any(key in allowed for key in host_type_keys(host))


__all__ = ['GemClassifier', 'gem_fits_host', 'host_type_keys', 'item_data']
