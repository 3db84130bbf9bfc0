"""
Tag resolution for CATEGORIES received from the server.
"""

from __future__ import annotations

import logging

from tasksync.models import generate_tag_color, parse_categories
from tasksync.store import LocalStore

logger = logging.getLogger(__name__)


class TagResolver:
    """
    Maps tag names to local tag ids, creating tags on first sight.

    Lookup is case-insensitive and always runs against the store's current
    tag set, so resolving the same name repeatedly within a pass never
    creates a duplicate.
    """

    def __init__(self, store: LocalStore) -> None:
        self._store = store

    def resolve(self, name: str) -> str:
        """Get the id of the tag called ``name``, creating it if absent."""
        wanted = name.strip()
        for tag in self._store.get_all_tags():
            if tag.matches(wanted):
                return tag.id

        logger.info("Creating tag: %s", wanted)
        tag = self._store.create_tag(name=wanted, color=generate_tag_color(wanted))
        return tag.id

    def resolve_categories(self, categories: str | None) -> list[str]:
        """Resolve a comma-separated CATEGORIES string into unique tag ids, in order."""
        tag_ids = [self.resolve(name) for name in parse_categories(categories)]
        return list(dict.fromkeys(tag_ids))
