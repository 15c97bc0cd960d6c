"""Entry repository interface and implementations."""

import uuid
from datetime import date
from typing import Protocol

from gutcheck.clients.postgrest import PostgrestClient
from gutcheck.models.entries import Entry, UserProfile


class EntryRepository(Protocol):
    """Interface for the row-store holding users and their logged entries."""

    async def list_entries(self, user_id: str, start: date, end: date) -> list[Entry]:
        """Get a user's entries dated within [start, end], newest first.

        Args:
            user_id: The user's unique identifier
            start: First date included
            end: Last date included

        Returns:
            Entries ordered by entry date, descending
        """
        ...

    async def recent_entries(self, user_id: str, limit: int) -> list[Entry]:
        """Get a user's most recent entries regardless of date, newest first."""
        ...

    async def get_user(self, user_id: str) -> UserProfile | None:
        """Look up a user profile by id."""
        ...

    async def create_entry(self, entry: Entry) -> Entry:
        """Store a new entry and return it with its id assigned."""
        ...


class InMemoryEntryRepository:
    """In-memory repository for tests and local development."""

    def __init__(self, entries: list[Entry] | None = None, users: list[UserProfile] | None = None):
        """Initialize with optional seed data."""
        self.entries: list[Entry] = list(entries or [])
        self.users: dict[str, UserProfile] = {user.id: user for user in users or []}

    async def list_entries(self, user_id: str, start: date, end: date) -> list[Entry]:
        """Get a user's entries dated within [start, end], newest first."""
        matching = [e for e in self.entries if e.user_id == user_id and start <= e.entry_date <= end]
        return self._newest_first(matching)

    async def recent_entries(self, user_id: str, limit: int) -> list[Entry]:
        """Get a user's most recent entries regardless of date."""
        return self._newest_first([e for e in self.entries if e.user_id == user_id])[:limit]

    async def get_user(self, user_id: str) -> UserProfile | None:
        """Look up a user profile by id."""
        return self.users.get(user_id)

    async def create_entry(self, entry: Entry) -> Entry:
        """Store a new entry."""
        stored = entry.model_copy(update={"id": entry.id or str(uuid.uuid4())})
        self.entries.append(stored)
        return stored

    @staticmethod
    def _newest_first(entries: list[Entry]) -> list[Entry]:
        return sorted(entries, key=lambda e: (e.entry_date, e.created_at), reverse=True)


class PostgrestEntryRepository:
    """Repository backed by the Supabase tables ``poop_entries`` and ``users``."""

    ENTRIES_TABLE = "poop_entries"
    USERS_TABLE = "users"

    def __init__(self, client: PostgrestClient):
        """Initialize with a PostgREST client."""
        self.client = client

    async def list_entries(self, user_id: str, start: date, end: date) -> list[Entry]:
        """Get a user's entries dated within [start, end], newest first."""
        rows = await self.client.select(
            self.ENTRIES_TABLE,
            filters=[
                ("user_id", "eq", user_id),
                ("entry_date", "gte", start.isoformat()),
                ("entry_date", "lte", end.isoformat()),
            ],
            order="entry_date.desc",
        )
        return [Entry.model_validate(row) for row in rows]

    async def recent_entries(self, user_id: str, limit: int) -> list[Entry]:
        """Get a user's most recent entries regardless of date."""
        rows = await self.client.select(
            self.ENTRIES_TABLE,
            filters=[("user_id", "eq", user_id)],
            order="entry_date.desc",
            limit=limit,
        )
        return [Entry.model_validate(row) for row in rows]

    async def get_user(self, user_id: str) -> UserProfile | None:
        """Look up a user profile by id."""
        rows = await self.client.select(self.USERS_TABLE, filters=[("id", "eq", user_id)], limit=1)
        return UserProfile.model_validate(rows[0]) if rows else None

    async def create_entry(self, entry: Entry) -> Entry:
        """Insert a new entry row."""
        row = entry.model_dump(mode="json", exclude_none=True)
        stored = await self.client.insert(self.ENTRIES_TABLE, row)
        return Entry.model_validate(stored)
