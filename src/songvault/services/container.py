"""Service container with DI wiring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from songvault.data.archive import ArchiveManager
from songvault.data.db import Database
from songvault.data.lyrics import LyricsFileManager
from songvault.data.preferences import PreferencesStore
from songvault.data.repositories import ProjectRepository
from songvault.services.export_service import ExportService
from songvault.services.project_service import ProjectService

if TYPE_CHECKING:
    from songvault.config import Config


@dataclass
class ServiceContainer:
    """Holds all application services. Built once at startup, immutable."""

    db: Database
    preferences: PreferencesStore
    lyrics: LyricsFileManager
    archives: ArchiveManager
    repository: ProjectRepository
    project_service: ProjectService
    export_service: ExportService

    @classmethod
    async def create(cls, config: Config) -> ServiceContainer:
        """Async factory that wires all dependencies."""
        db = Database(config.db_path)
        await db.__aenter__()

        preferences = PreferencesStore(db)
        lyrics = LyricsFileManager(config.documents_root)
        archives = ArchiveManager(config.documents_root, lyrics)
        repository = ProjectRepository(db, preferences, archives)

        return cls(
            db=db,
            preferences=preferences,
            lyrics=lyrics,
            archives=archives,
            repository=repository,
            project_service=ProjectService(repository, preferences, lyrics, archives),
            export_service=ExportService(config.documents_root, lyrics),
        )

    async def close(self) -> None:
        """Shut down all services."""
        await self.db.__aexit__(None, None, None)
