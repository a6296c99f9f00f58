"""Preferences persistence with migration from the legacy stored shape."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from songvault.data.codec import assign_missing_ids, stored_project_ids
from songvault.models.preferences import (
    LegacyStoredPreferences,
    PreferencesRecord,
    StoredPreferences,
)

if TYPE_CHECKING:
    from songvault.data.protocols import KeyValueStoreProtocol

logger = logging.getLogger(__name__)

PREFERENCES_KEY = "appPreferences"
PROJECTS_KEY = "savedProjects"


def decode_preferences(raw: bytes) -> PreferencesRecord | None:
    """Decode the current schema, then the legacy one. None if neither fits."""
    try:
        return StoredPreferences.model_validate_json(raw).to_record()
    except ValidationError:
        pass
    try:
        record = LegacyStoredPreferences.model_validate_json(raw).to_record()
    except ValidationError:
        return None
    logger.info("Migrated legacy preferences record")
    return record


def encode_preferences(record: PreferencesRecord) -> bytes:
    stored = StoredPreferences.from_record(record)
    return stored.model_dump_json(by_alias=True).encode("utf-8")


class PreferencesStore:
    """Loads and saves the single preferences record."""

    def __init__(self, store: KeyValueStoreProtocol) -> None:
        self._store = store

    async def load(self) -> PreferencesRecord:
        """Load preferences, never raising.

        Missing or unreadable blobs yield defaults. After a successful load an
        empty project order is backfilled once from the stored projects.
        """
        raw = await self._store.get(PREFERENCES_KEY)
        if raw is None:
            return PreferencesRecord()
        record = decode_preferences(raw)
        if record is None:
            logger.warning("Stored preferences are unreadable; using defaults")
            return PreferencesRecord()
        return await self._migrate(record)

    async def save(self, record: PreferencesRecord) -> None:
        await self._store.set(PREFERENCES_KEY, encode_preferences(record))

    async def _migrate(self, record: PreferencesRecord) -> PreferencesRecord:
        if record.project_order:
            return record
        # Read the project blob directly: going through the repository would
        # load preferences again.
        raw = await self._store.get(PROJECTS_KEY)
        if raw is not None:
            with_ids = assign_missing_ids(raw)
            if with_ids is not None:
                await self._store.set(PROJECTS_KEY, with_ids)
                raw = with_ids
        ids = stored_project_ids(raw)
        if not ids:
            return record
        migrated = record.model_copy(update={"project_order": ids})
        await self.save(migrated)
        logger.info("Backfilled project order with %d ids", len(ids))
        return migrated
