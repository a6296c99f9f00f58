"""Lyrics text files: one per project, referenced from its file list."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from uuid import uuid4

from songvault.models.projects import Project

logger = logging.getLogger(__name__)


def sanitize_title(title: str) -> str:
    """Make a title safe to embed in a file name."""
    return title.replace(" ", "_").replace("/", "-").replace("\\", "-")


def lyrics_file_name(title: str) -> str:
    return f"Lyrics_{sanitize_title(title)}_{uuid4().hex[:6].upper()}.txt"


def write_text_atomic(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` via a temp file in the same directory."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class LyricsFileManager:
    """Creates, repairs, reads and writes project lyrics files."""

    def __init__(self, documents_root: Path) -> None:
        self._root = documents_root

    @staticmethod
    def lyrics_path(project: Project) -> Path | None:
        """The project's lyrics file (its first ``.txt`` reference), if any."""
        lyrics = project.lyrics_files
        return lyrics[0] if lyrics else None

    def ensure_lyrics_file(self, project: Project) -> bool:
        """Make sure the project references an existing lyrics file.

        A referenced but missing file is recreated empty at the same path;
        otherwise a new file is created in the documents root and appended to
        ``project.files``. Returns False if the file could not be written.
        """
        existing = self.lyrics_path(project)
        if existing is not None:
            if existing.exists():
                return True
            try:
                existing.parent.mkdir(parents=True, exist_ok=True)
                write_text_atomic(existing, "")
            except OSError:
                logger.exception("Failed to recreate missing lyrics file %s", existing)
                return False
            logger.info("Recreated missing lyrics file %s", existing)
            return True

        path = self._root / lyrics_file_name(project.title)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            write_text_atomic(path, "")
        except OSError:
            logger.exception("Failed to create lyrics file for project %s", project.id)
            return False
        project.files.append(path)
        return True

    def load_lyrics(self, project: Project) -> str:
        path = self.lyrics_path(project)
        if path is None:
            return ""
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.warning("Failed to load lyrics from %s", path, exc_info=True)
            return ""

    def save_lyrics(self, text: str, project: Project) -> bool:
        """Overwrite the lyrics file. Returns False if nothing was written."""
        path = self.lyrics_path(project)
        if path is None:
            logger.warning("No lyrics file referenced by project %s", project.id)
            return False
        try:
            write_text_atomic(path, text)
        except OSError:
            logger.exception("Failed to save lyrics to %s", path)
            return False
        return True
