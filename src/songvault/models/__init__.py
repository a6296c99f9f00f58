"""Pydantic models for songvault."""

from songvault.models.archive import (
    ArchiveEntry,
    ArchiveEntryType,
    ProjectArchive,
    default_label,
    format_byte_count,
)
from songvault.models.messages import ArchivableMessage, ChatMessage
from songvault.models.preferences import (
    DEFAULT_HOME_TITLE,
    GradientMode,
    LegacyStoredPreferences,
    PreferencesRecord,
    StoredPreferences,
)
from songvault.models.projects import (
    DEFAULT_FONT_NAME,
    Project,
    StoredProjectRecord,
    new_project_id,
)

__all__ = [
    "ArchivableMessage",
    "ArchiveEntry",
    "ArchiveEntryType",
    "ChatMessage",
    "GradientMode",
    "LegacyStoredPreferences",
    "PreferencesRecord",
    "Project",
    "ProjectArchive",
    "StoredPreferences",
    "StoredProjectRecord",
    "DEFAULT_FONT_NAME",
    "DEFAULT_HOME_TITLE",
    "default_label",
    "format_byte_count",
    "new_project_id",
]
