"""Archive models: timestamped snapshots of supplanted project artifacts."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from pathlib import Path
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

LABEL_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class ArchiveEntryType(StrEnum):
    """Kind of artifact an archive entry holds."""

    LYRICS = "lyrics"
    AUDIO = "audio"
    ARTWORK = "artwork"
    CONVERSATION = "conversation"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def file_extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def label_verb(self) -> str:
        return _LABEL_PREFIXES[self]


_DISPLAY_NAMES = {
    ArchiveEntryType.LYRICS: "Lyrics",
    ArchiveEntryType.AUDIO: "Audio",
    ArchiveEntryType.ARTWORK: "Artwork",
    ArchiveEntryType.CONVERSATION: "Chat",
}
_EXTENSIONS = {
    ArchiveEntryType.LYRICS: "txt",
    ArchiveEntryType.AUDIO: "mp3",
    ArchiveEntryType.ARTWORK: "png",
    ArchiveEntryType.CONVERSATION: "txt",
}
_LABEL_PREFIXES = {
    ArchiveEntryType.LYRICS: "Lyrics updated",
    ArchiveEntryType.AUDIO: "Audio swapped",
    ArchiveEntryType.ARTWORK: "Artwork changed",
    ArchiveEntryType.CONVERSATION: "Chat archived",
}
# Older stores wrote chat transcripts under this kind name.
_LEGACY_ENTRY_TYPES = {"maxnet_conversation": ArchiveEntryType.CONVERSATION.value}


def default_label(entry_type: ArchiveEntryType, timestamp: datetime) -> str:
    """Build the auto-generated label for an entry."""
    return f"{entry_type.label_verb} {timestamp.strftime(LABEL_TIMESTAMP_FORMAT)}"


class ArchiveEntry(BaseModel):
    """A single archived artifact. Immutable once created."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime
    entry_type: ArchiveEntryType
    label: str
    file_path: Path

    @field_validator("entry_type", mode="before")
    @classmethod
    def _accept_legacy_type(cls, value: object) -> object:
        if isinstance(value, str):
            return _LEGACY_ENTRY_TYPES.get(value, value)
        return value

    @classmethod
    def create(
        cls,
        entry_type: ArchiveEntryType,
        file_path: Path,
        *,
        timestamp: datetime | None = None,
        label: str | None = None,
    ) -> ArchiveEntry:
        """Create an entry, generating the label from kind and timestamp if not given."""
        ts = timestamp or datetime.now()
        return cls(
            timestamp=ts,
            entry_type=entry_type,
            label=label if label is not None else default_label(entry_type, ts),
            file_path=file_path,
        )

    @property
    def file_exists(self) -> bool:
        return self.file_path.is_file()

    @property
    def file_size(self) -> int | None:
        try:
            return self.file_path.stat().st_size
        except OSError:
            return None


class ProjectArchive(BaseModel):
    """Archive entries for one project, kept newest first."""

    entries: list[ArchiveEntry] = Field(default_factory=list)

    @field_validator("entries")
    @classmethod
    def _sort_newest_first(cls, value: list[ArchiveEntry]) -> list[ArchiveEntry]:
        return sorted(value, key=lambda e: e.timestamp, reverse=True)

    def add_entry(self, entry: ArchiveEntry) -> None:
        self.entries.append(entry)
        self.entries.sort(key=lambda e: e.timestamp, reverse=True)

    def remove_entry(self, entry_id: str) -> ArchiveEntry | None:
        """Drop an entry from the list and return it, or None if unknown."""
        for index, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return self.entries.pop(index)
        return None

    def get(self, entry_id: str) -> ArchiveEntry | None:
        return next((e for e in self.entries if e.id == entry_id), None)

    def entries_of_type(self, entry_type: ArchiveEntryType) -> list[ArchiveEntry]:
        return [e for e in self.entries if e.entry_type == entry_type]

    def entries_older_than(self, cutoff: datetime) -> list[ArchiveEntry]:
        return [e for e in self.entries if e.timestamp < cutoff]

    def missing_entries(self) -> list[ArchiveEntry]:
        """Entries whose backing file no longer exists."""
        return [e for e in self.entries if not e.file_exists]

    @property
    def newest(self) -> ArchiveEntry | None:
        return self.entries[0] if self.entries else None

    @property
    def referenced_paths(self) -> set[Path]:
        return {e.file_path for e in self.entries}

    @property
    def total_archive_size(self) -> int:
        """Sum of on-disk sizes; entries with missing files are skipped."""
        total = 0
        for entry in self.entries:
            size = entry.file_size
            if size is not None:
                total += size
        return total

    @property
    def formatted_archive_size(self) -> str:
        return format_byte_count(self.total_archive_size)


def format_byte_count(size: int) -> str:
    """Format a byte count with decimal units, e.g. ``"1.5 MB"``."""
    if size < 1000:
        return f"{size} bytes"
    value = float(size)
    for unit in ("KB", "MB", "GB", "TB"):
        value /= 1000
        if value < 1000 or unit == "TB":
            return f"{value:.1f} {unit}"
    return f"{size} bytes"
