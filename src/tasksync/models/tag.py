"""
Tag model.

Tags are identified locally by ``id``; ``name`` is the case-insensitive
de-duplication key used when resolving CATEGORIES strings from the server.
"""

from __future__ import annotations

import hashlib
import uuid

from pydantic import BaseModel, Field

from tasksync.constants import TAG_COLOR_PALETTE


def generate_tag_color(name: str) -> str:
    """
    Derive a color for a tag from its name.

    The digest is computed over the lower-cased, trimmed name so the same
    tag gets the same color on every device and run.
    """
    digest = hashlib.sha1(name.strip().lower().encode("utf-8")).digest()
    return TAG_COLOR_PALETTE[int.from_bytes(digest[:4], "big") % len(TAG_COLOR_PALETTE)]


class Tag(BaseModel):
    """A local tag."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    color: str

    @classmethod
    def create(cls, name: str, color: str | None = None) -> Tag:
        """Create a tag, deriving its color from the name when not given."""
        return cls(name=name, color=color or generate_tag_color(name))

    def matches(self, name: str) -> bool:
        """Case-insensitive name comparison."""
        return self.name.lower() == name.lower()
