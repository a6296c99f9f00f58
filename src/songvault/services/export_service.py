"""Export service: zip a project's current files, artwork and archive."""

from __future__ import annotations

import asyncio
import io
import logging
import re
import zipfile
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError
from result import Err, Ok, Result

from songvault.data.archive import FILENAME_TIMESTAMP_FORMAT
from songvault.services.gradient import dominant_color

if TYPE_CHECKING:
    from songvault.data.lyrics import LyricsFileManager
    from songvault.models.projects import Project

logger = logging.getLogger(__name__)

_INVALID_FILENAME_CHARS = re.compile(r'[/<>:"|?*]')


def sanitize_file_name(name: str) -> str:
    """Replace characters that are invalid on common filesystems."""
    return _INVALID_FILENAME_CHARS.sub("_", name).strip()


def artwork_with_title(artwork: bytes, project: Project) -> bytes | None:
    """Render the project title centered over its artwork, as PNG."""
    try:
        with Image.open(io.BytesIO(artwork)) as source:
            image = source.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        return None
    color = dominant_color(artwork)
    is_light = color is not None and color[0] / 255 > 0.7
    fill = (0, 0, 0, 255) if is_light else (255, 255, 255, 255)

    font_size = max(int(min(image.size) * 0.1), 1)
    font = ImageFont.load_default(size=font_size)
    draw = ImageDraw.Draw(image)
    left, top, right, bottom = draw.textbbox((0, 0), project.title, font=font)
    position = ((image.width - (right - left)) / 2, (image.height - (bottom - top)) / 2)
    draw.text(position, project.title, font=font, fill=fill)

    out = io.BytesIO()
    image.save(out, format="PNG")
    return out.getvalue()


def project_info(project: Project, exported_at: datetime) -> str:
    lines = [
        "Project Export Information",
        "========================",
        "",
        f"Project Title: {project.title}",
        f"Export Date: {exported_at.strftime('%A, %B %d, %Y at %H:%M')}",
        f"Files Included: {len(project.files)}",
        f"Archive Entries: {len(project.archive.entries)}",
        "",
        "Font Settings:",
        f"- Font: {project.font_name}",
        f"- Bold: {'Yes' if project.use_bold else 'No'}",
        f"- Italic: {'Yes' if project.use_italic else 'No'}",
        "",
    ]
    if project.archive.entries:
        lines.append("Archive Contents:")
        lines.extend(
            f"- {entry.label} ({entry.entry_type.display_name})" for entry in project.archive.entries
        )
    return "\n".join(lines) + "\n"


class ExportService:
    """Service for exporting projects as zip files."""

    def __init__(self, documents_root: Path, lyrics: LyricsFileManager) -> None:
        self._root = documents_root
        self._lyrics = lyrics

    def export_path(self, project: Project) -> Path:
        return self._root / f"{sanitize_file_name(project.title)}_Export.zip"

    async def export_project(self, project: Project) -> Result[Path, str]:
        """Build the export zip in a worker thread."""
        try:
            path = await asyncio.to_thread(self._build_zip, project)
        except (OSError, zipfile.BadZipFile) as exc:
            logger.exception("Failed to export project %s", project.id)
            return Err(f"Export failed: {exc}")
        logger.info("Exported project %s to %s", project.id, path)
        return Ok(path)

    def _build_zip(self, project: Project) -> Path:
        target = self.export_path(project)
        self._root.mkdir(parents=True, exist_ok=True)
        target.unlink(missing_ok=True)
        base = sanitize_file_name(project.title) or project.id

        with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            lyrics = self._lyrics.load_lyrics(project)
            if lyrics:
                zf.writestr(f"{base}/Current_Lyrics.txt", lyrics)

            for audio in project.audio_files:
                if audio.is_file():
                    zf.write(audio, f"{base}/Current_{audio.name}")

            if project.artwork is not None:
                zf.writestr(f"{base}/Current_Artwork_Original.png", project.artwork)
                overlaid = artwork_with_title(project.artwork, project)
                if overlaid is not None:
                    zf.writestr(f"{base}/Current_Artwork_With_Title.png", overlaid)

            used: set[str] = set()
            for entry in project.archive.entries:
                if not entry.file_exists:
                    continue
                stamp = entry.timestamp.strftime(FILENAME_TIMESTAMP_FORMAT)
                stem = f"{entry.entry_type.display_name}_{stamp}"
                name = f"{stem}.{entry.entry_type.file_extension}"
                counter = 1
                while name in used:
                    name = f"{stem}_{counter}.{entry.entry_type.file_extension}"
                    counter += 1
                used.add(name)
                zf.write(entry.file_path, f"{base}/Archive/{name}")

            zf.writestr(f"{base}/Project_Info.txt", project_info(project, datetime.now()))
        return target
