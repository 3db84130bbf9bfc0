"""
Account and Calendar models.

An Account owns an ordered list of Calendars. ``ctag`` and ``sync_token``
are opaque server change markers; they are stored verbatim and compared
only for equality.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Calendar(BaseModel):
    """A calendar collection as stored locally."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    account_id: str
    display_name: str
    url: str = ""
    color: str | None = None
    ctag: str | None = None
    sync_token: str | None = None

    def with_remote_properties(self, remote: RemoteCalendar) -> Calendar:
        """Return a copy carrying the remote's mutable properties (id is stable)."""
        return self.model_copy(
            update={
                "display_name": remote.display_name,
                "color": remote.color,
                "ctag": remote.ctag,
                "sync_token": remote.sync_token,
            }
        )

    def differs_from(self, remote: RemoteCalendar) -> bool:
        """Check whether any mutable property differs from the server's."""
        return (
            self.display_name != remote.display_name
            or self.color != remote.color
            or self.ctag != remote.ctag
            or self.sync_token != remote.sync_token
        )


class RemoteCalendar(BaseModel):
    """A calendar collection as reported by the server."""

    id: str
    display_name: str
    url: str = ""
    color: str | None = None
    ctag: str | None = None
    sync_token: str | None = None

    def to_calendar(self, account_id: str) -> Calendar:
        """Create the local record for a calendar discovered on the server."""
        return Calendar(
            id=self.id,
            account_id=account_id,
            display_name=self.display_name,
            url=self.url,
            color=self.color,
            ctag=self.ctag,
            sync_token=self.sync_token,
        )


class Account(BaseModel):
    """A configured remote account."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    name: str
    server_url: str = ""
    username: str = ""
    calendars: list[Calendar] = Field(default_factory=list)

    def find_calendar(self, calendar_id: str) -> Calendar | None:
        """Get one of this account's calendars by id."""
        for calendar in self.calendars:
            if calendar.id == calendar_id:
                return calendar
        return None


def _calendar_key(calendar: Calendar) -> tuple:
    return (
        calendar.id,
        calendar.account_id,
        calendar.display_name,
        calendar.url,
        calendar.color,
        calendar.ctag,
        calendar.sync_token,
    )


def calendar_lists_equal(a: list[Calendar], b: list[Calendar]) -> bool:
    """Structural, order-sensitive equality of two calendar lists."""
    if len(a) != len(b):
        return False
    return all(_calendar_key(x) == _calendar_key(y) for x, y in zip(a, b))
