"""Protocol definitions for services and external collaborators."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Protocol

from result import Result

from songvault.models.archive import ArchiveEntry
from songvault.models.messages import ArchivableMessage, ChatMessage
from songvault.models.preferences import PreferencesRecord
from songvault.models.projects import Project


class ChatClientProtocol(Protocol):
    """Remote chat-completion client: send a conversation, get the reply."""

    async def send(self, conversation: Sequence[ChatMessage]) -> Result[ChatMessage, str]: ...


class ProjectServiceProtocol(Protocol):
    """Interface for project operations."""

    async def list_projects(
        self, preferences: PreferencesRecord | None = None
    ) -> Result[list[Project], str]: ...

    async def save_projects(
        self,
        projects: Sequence[Project],
        preferences: PreferencesRecord | None = None,
    ) -> Result[PreferencesRecord, str]: ...

    def update_lyrics(self, project: Project, text: str) -> Result[ArchiveEntry | None, str]: ...

    def replace_artwork(
        self, project: Project, artwork: bytes
    ) -> Result[ArchiveEntry | None, str]: ...

    def replace_audio(
        self, project: Project, audio_file: Path
    ) -> Result[ArchiveEntry | None, str]: ...

    def record_conversation(
        self, project: Project, messages: Iterable[ArchivableMessage]
    ) -> Result[ArchiveEntry | None, str]: ...


class ExportServiceProtocol(Protocol):
    """Interface for project export."""

    async def export_project(self, project: Project) -> Result[Path, str]: ...
