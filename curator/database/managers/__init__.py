"""
Entity Managers
---------------

Modular managers for each catalog entity, all built on BaseManager.

Managers:
    - TagManager: Tags (classifiers)
    - ThingManager: Things and their secondary tags
    - CollectionManager: Collections and their membership
    - PackageManager: Content-addressed descriptors
    - ChangelogManager: Change journal

Usage:
    with db.session_scope() as session:
        db.tags.upsert({"id": "tools"})
        db.things.upsert({"url": "https://x", "name": "X", "category_id": "tools"})
"""
from .base_manager import BaseManager
from .changelog_manager import ChangelogManager
from .collection_manager import CollectionManager
from .package_manager import PackageManager
from .tag_manager import TagManager
from .thing_manager import ThingManager

__all__ = [
    "BaseManager",
    "TagManager",
    "ThingManager",
    "CollectionManager",
    "PackageManager",
    "ChangelogManager",
]
