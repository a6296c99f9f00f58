"""Per-project archive of supplanted lyrics, audio, artwork and chat transcripts.

Snapshots live under ``<documents root>/Archives/<project id>/`` and are named
``<kind>_<YYYY-MM-DD_HH-mm-ss>.<ext>``. Every archiver reads the live artifact,
writes a copy, and records an :class:`ArchiveEntry` on the project. The live
artifact itself is never modified here; callers archive first and overwrite
afterwards.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from pathlib import Path
from typing import TypeAlias

from result import Err, Ok, Result

from songvault.data.codec import normalize_artwork
from songvault.data.lyrics import LyricsFileManager, write_text_atomic
from songvault.models.archive import LABEL_TIMESTAMP_FORMAT, ArchiveEntry, ArchiveEntryType
from songvault.models.messages import SYSTEM_ROLE, ArchivableMessage
from songvault.models.projects import Project

logger = logging.getLogger(__name__)

ARCHIVES_DIRNAME = "Archives"
FILENAME_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

Clock: TypeAlias = Callable[[], datetime]
ArchiveResult: TypeAlias = Result[ArchiveEntry | None, str]


def format_transcript(
    messages: Iterable[ArchivableMessage],
    *,
    title: str = "",
    archived_at: datetime | None = None,
) -> str:
    """Render a chat as plain text, leaving out system messages."""
    visible = [m for m in messages if m.role != SYSTEM_ROLE]
    if not visible:
        return ""
    lines: list[str] = []
    lines.append(f"Chat transcript: {title}" if title else "Chat transcript")
    if archived_at is not None:
        lines.append(f"Archived: {archived_at.strftime(LABEL_TIMESTAMP_FORMAT)}")
    lines.append("")
    for message in visible:
        lines.append(f"{message.role.capitalize()}:")
        lines.append(message.content)
        lines.append("")
    return "\n".join(lines)


class ArchiveManager:
    """Creates, prunes and measures project archives."""

    def __init__(
        self,
        documents_root: Path,
        lyrics: LyricsFileManager,
        *,
        now: Clock | None = None,
    ) -> None:
        self._root = documents_root / ARCHIVES_DIRNAME
        self._lyrics = lyrics
        self._now = now or datetime.now

    @property
    def archives_root(self) -> Path:
        return self._root

    def directory_for(self, project_id: str) -> Path:
        """Archive directory path for a project, without creating it."""
        return self._root / project_id

    def archive_directory(self, project_id: str) -> Path:
        """Archive directory for a project, created if needed.

        Raises:
            OSError: If the directory cannot be created.
        """
        directory = self.directory_for(project_id)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    # -- archivers -----------------------------------------------------------

    def archive_lyrics(self, project: Project) -> ArchiveResult:
        """Snapshot the current lyrics. ``Ok(None)`` when they are empty."""
        text = self._lyrics.load_lyrics(project)
        if not text:
            return Ok(None)
        return self._store(project, ArchiveEntryType.LYRICS, lambda path: write_text_atomic(path, text))

    def archive_audio(self, project: Project) -> ArchiveResult:
        """Copy the current (most recently added) audio file."""
        audio = project.audio_files
        if not audio:
            return Ok(None)
        source = audio[-1]
        if not source.is_file():
            logger.warning("Audio file %s for project %s is missing", source, project.id)
            return Err(f"Audio file not found: {source}")
        return self._store(project, ArchiveEntryType.AUDIO, lambda path: shutil.copy2(source, path))

    def archive_artwork(self, project: Project) -> ArchiveResult:
        """Save the current artwork as PNG."""
        if project.artwork is None:
            return Ok(None)
        png = normalize_artwork(project.artwork)
        if png is None:
            return Err("Current artwork is not a readable image")
        return self._store(project, ArchiveEntryType.ARTWORK, lambda path: path.write_bytes(png))

    def archive_conversation(
        self,
        messages: Iterable[ArchivableMessage],
        project: Project,
    ) -> ArchiveResult:
        """Save a chat transcript. ``Ok(None)`` when only system messages exist."""
        timestamp = self._next_timestamp(project)
        transcript = format_transcript(messages, title=project.title, archived_at=timestamp)
        if not transcript:
            return Ok(None)
        return self._store(
            project,
            ArchiveEntryType.CONVERSATION,
            lambda path: write_text_atomic(path, transcript),
            timestamp=timestamp,
        )

    def _store(
        self,
        project: Project,
        entry_type: ArchiveEntryType,
        write: Callable[[Path], object],
        *,
        timestamp: datetime | None = None,
    ) -> ArchiveResult:
        try:
            directory = self.archive_directory(project.id)
        except OSError as exc:
            logger.exception("Failed to create archive directory for project %s", project.id)
            return Err(f"Could not create archive directory: {exc}")

        ts = timestamp or self._next_timestamp(project)
        path = _snapshot_path(directory, entry_type, ts)
        try:
            write(path)
        except OSError as exc:
            logger.exception("Failed to write %s snapshot to %s", entry_type.value, path)
            return Err(f"Could not write {entry_type.value} snapshot: {exc}")

        entry = ArchiveEntry.create(entry_type, path, timestamp=ts)
        project.archive.add_entry(entry)
        logger.info("Archived %s for project %s at %s", entry_type.value, project.id, path)
        return Ok(entry)

    def _next_timestamp(self, project: Project) -> datetime:
        """Current time, nudged past the newest existing entry if needed."""
        now = self._now()
        newest = project.archive.newest
        if newest is not None and now <= newest.timestamp:
            return newest.timestamp + timedelta(microseconds=1)
        return now

    # -- retention -----------------------------------------------------------

    def remove_entry(
        self,
        project: Project,
        entry_id: str,
        *,
        delete_file: bool = False,
    ) -> ArchiveEntry | None:
        entry = project.archive.remove_entry(entry_id)
        if entry is not None and delete_file:
            _unlink_quietly(entry.file_path)
        return entry

    def remove_entries_older_than(
        self,
        project: Project,
        days: int,
        *,
        delete_files: bool = True,
    ) -> list[ArchiveEntry]:
        """Drop entries strictly older than ``now - days``."""
        cutoff = self._now() - timedelta(days=days)
        removed = project.archive.entries_older_than(cutoff)
        for entry in removed:
            project.archive.remove_entry(entry.id)
            if delete_files:
                _unlink_quietly(entry.file_path)
        if removed:
            logger.info("Pruned %d archive entries from project %s", len(removed), project.id)
        return removed

    def purge_missing(self, project: Project) -> list[ArchiveEntry]:
        """Drop entries whose backing file has vanished."""
        missing = project.archive.missing_entries()
        for entry in missing:
            project.archive.remove_entry(entry.id)
        return missing

    def cleanup_orphaned_files(self, project: Project, directory: Path | None = None) -> int:
        """Delete files in the archive directory that no entry references.

        Returns:
            Count of files removed.
        """
        root = directory or self.directory_for(project.id)
        if not root.is_dir():
            return 0
        referenced = {_resolved(p) for p in project.archive.referenced_paths}
        removed = 0
        for path in sorted(root.rglob("*")):
            if not path.is_file() or _resolved(path) in referenced:
                continue
            try:
                path.unlink()
                removed += 1
            except OSError:
                logger.warning("Failed removing orphaned archive file %s", path, exc_info=True)
        return removed

    def total_archive_size(self, project: Project) -> int:
        return project.archive.total_archive_size

    def delete_archive(self, project_id: str) -> Result[None, str]:
        """Remove a project's whole archive directory."""
        directory = self.directory_for(project_id)
        if not directory.exists():
            return Ok(None)
        try:
            shutil.rmtree(directory)
        except OSError as exc:
            logger.exception("Failed to delete archive directory %s", directory)
            return Err(f"Could not delete archive directory: {exc}")
        return Ok(None)


def _snapshot_path(directory: Path, entry_type: ArchiveEntryType, timestamp: datetime) -> Path:
    stem = f"{entry_type.value}_{timestamp.strftime(FILENAME_TIMESTAMP_FORMAT)}"
    ext = entry_type.file_extension
    candidate = directory / f"{stem}.{ext}"
    suffix = 1
    while candidate.exists():
        candidate = directory / f"{stem}_{suffix}.{ext}"
        suffix += 1
    return candidate


def _resolved(path: Path) -> Path:
    try:
        return path.resolve()
    except OSError:
        return path


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Failed removing archive file %s", path, exc_info=True)
