"""Project service: edit flows that archive the outgoing version first."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from songvault.data.codec import normalize_artwork
from songvault.models.projects import AUDIO_EXTENSIONS, LYRICS_EXTENSION, Project

if TYPE_CHECKING:
    from songvault.data.archive import ArchiveManager, ArchiveResult
    from songvault.data.lyrics import LyricsFileManager
    from songvault.data.preferences import PreferencesStore
    from songvault.data.repositories import ProjectRepository
    from songvault.models.archive import ArchiveEntry
    from songvault.models.messages import ArchivableMessage
    from songvault.models.preferences import PreferencesRecord

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for project creation, edits and persistence."""

    def __init__(
        self,
        repository: ProjectRepository,
        preferences: PreferencesStore,
        lyrics: LyricsFileManager,
        archives: ArchiveManager,
    ) -> None:
        self._repo = repository
        self._prefs = preferences
        self._lyrics = lyrics
        self._archives = archives

    async def list_projects(
        self, preferences: PreferencesRecord | None = None
    ) -> Result[list[Project], str]:
        """Load all projects in display order."""
        return Ok(await self._repo.load(preferences))

    async def get_project(self, project_id: str) -> Result[Project, str]:
        projects = await self._repo.load()
        project = next((p for p in projects if p.id == project_id), None)
        if project is None:
            return Err(f"Project {project_id} not found")
        return Ok(project)

    async def save_projects(
        self,
        projects: Sequence[Project],
        preferences: PreferencesRecord | None = None,
    ) -> Result[PreferencesRecord, str]:
        try:
            return Ok(await self._repo.save(projects, preferences))
        except Exception as exc:
            logger.exception("Failed to save projects")
            return Err(f"Save failed: {exc}")

    async def load_preferences(self) -> PreferencesRecord:
        return await self._prefs.load()

    async def save_preferences(self, record: PreferencesRecord) -> Result[PreferencesRecord, str]:
        try:
            await self._prefs.save(record)
        except Exception as exc:
            logger.exception("Failed to save preferences")
            return Err(f"Save failed: {exc}")
        return Ok(record)

    def create_project(
        self,
        title: str,
        *,
        artwork: bytes | None = None,
        files: Iterable[Path] = (),
    ) -> Project:
        """Create a project; it always gets a lyrics file when the disk allows."""
        project = Project(title=title, artwork=normalize_artwork(artwork), files=list(files))
        if not self._lyrics.ensure_lyrics_file(project):
            logger.warning("Project %s created without a usable lyrics file", project.id)
        return project

    def update_lyrics(self, project: Project, text: str) -> ArchiveResult:
        """Archive the current lyrics, then write ``text``.

        If archiving fails the lyrics file is left as it was.
        """
        self._lyrics.ensure_lyrics_file(project)
        if self._lyrics.load_lyrics(project) == text:
            return Ok(None)
        archived = self._archives.archive_lyrics(project)
        if isinstance(archived, Err):
            return archived
        if not self._lyrics.save_lyrics(text, project):
            return Err("Could not save lyrics")
        return archived

    def replace_artwork(self, project: Project, artwork: bytes) -> ArchiveResult:
        """Archive the current artwork, then set the new one."""
        png = normalize_artwork(artwork)
        if png is None:
            return Err("New artwork is not a readable image")
        archived = self._archives.archive_artwork(project)
        if isinstance(archived, Err):
            return archived
        project.artwork = png
        return archived

    def replace_audio(self, project: Project, audio_file: Path) -> ArchiveResult:
        """Archive the current audio, then swap in ``audio_file``."""
        if audio_file.suffix.lower() not in AUDIO_EXTENSIONS:
            return Err(f"Unsupported audio file: {audio_file.name}")
        archived = self._archives.archive_audio(project)
        if isinstance(archived, Err):
            return archived
        project.files = [p for p in project.files if p.suffix.lower() not in AUDIO_EXTENSIONS]
        project.files.append(audio_file)
        return archived

    def add_files(self, project: Project, files: Iterable[Path]) -> ArchiveResult:
        """Append picked files; a new audio file replaces the current one.

        A project has one lyrics file, so picked ``.txt`` files are skipped
        once it has one.
        """
        picked = list(files)
        audio = [p for p in picked if p.suffix.lower() in AUDIO_EXTENSIONS]
        archived: ArchiveResult = Ok(None)
        if audio:
            archived = self.replace_audio(project, audio[-1])
            if isinstance(archived, Err):
                return archived
        for path in picked:
            suffix = path.suffix.lower()
            if suffix in AUDIO_EXTENSIONS or path in project.files:
                continue
            if suffix == LYRICS_EXTENSION and project.lyrics_files:
                logger.warning(
                    "Project %s already has a lyrics file; skipping %s", project.id, path
                )
                continue
            project.files.append(path)
        return archived

    def record_conversation(
        self,
        project: Project,
        messages: Iterable[ArchivableMessage],
    ) -> ArchiveResult:
        """Archive a finished chat. Nothing is stored for an empty chat."""
        return self._archives.archive_conversation(messages, project)

    @staticmethod
    def update_title(
        project: Project,
        title: str,
        *,
        font_name: str | None = None,
        use_bold: bool | None = None,
        use_italic: bool | None = None,
    ) -> None:
        project.title = title
        if font_name is not None:
            project.font_name = font_name
        if use_bold is not None:
            project.use_bold = use_bold
        if use_italic is not None:
            project.use_italic = use_italic

    async def move_project(
        self,
        projects: Sequence[Project],
        source: int,
        destination: int,
        preferences: PreferencesRecord | None = None,
    ) -> Result[tuple[list[Project], PreferencesRecord], str]:
        try:
            return Ok(await self._repo.move_project(projects, source, destination, preferences))
        except IndexError as exc:
            return Err(str(exc))

    async def delete_project(
        self,
        projects: Sequence[Project],
        project_id: str,
        *,
        with_archive: bool = False,
        preferences: PreferencesRecord | None = None,
    ) -> Result[tuple[list[Project], PreferencesRecord], str]:
        return await self._repo.delete_project(
            projects, project_id, with_archive=with_archive, preferences=preferences
        )

    def prune_archive(self, project: Project, days: int, *, delete_files: bool = True) -> list[ArchiveEntry]:
        return self._archives.remove_entries_older_than(project, days, delete_files=delete_files)

    def tidy_archive(self, project: Project) -> tuple[int, int]:
        """Drop entries whose files vanished and delete unreferenced files.

        Returns:
            (entries purged, files removed)
        """
        purged = self._archives.purge_missing(project)
        removed = self._archives.cleanup_orphaned_files(project)
        return len(purged), removed
