"""Project-level models."""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from songvault.models.archive import ProjectArchive

logger = logging.getLogger(__name__)

DEFAULT_FONT_NAME = "System"
LYRICS_EXTENSION = ".txt"
AUDIO_EXTENSIONS = frozenset({".mp3", ".m4a", ".wav", ".aac"})


def new_project_id() -> str:
    return str(uuid4())


class Project(BaseModel):
    """A songwriting project with its files, artwork and archive."""

    id: str = Field(default_factory=new_project_id, frozen=True)
    title: str
    artwork: bytes | None = None
    files: list[Path] = Field(default_factory=list)
    font_name: str = DEFAULT_FONT_NAME
    use_bold: bool = False
    use_italic: bool = False
    archive: ProjectArchive = Field(default_factory=ProjectArchive)

    @property
    def lyrics_files(self) -> list[Path]:
        return [p for p in self.files if p.suffix.lower() == LYRICS_EXTENSION]

    @property
    def audio_files(self) -> list[Path]:
        return [p for p in self.files if p.suffix.lower() in AUDIO_EXTENSIONS]


class StoredProjectRecord(BaseModel):
    """Wire form of a project inside the metadata blob.

    Only metadata and file paths are stored; lyrics live in their own text file
    and the archive is persisted separately.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    title: str
    files: list[str] = Field(default_factory=list)
    artwork_data: bytes | None = Field(default=None, alias="artworkData")
    font_name: str | None = Field(default=None, alias="fontName")
    use_bold: bool | None = Field(default=None, alias="useBold")
    use_italic: bool | None = Field(default=None, alias="useItalic")

    @field_validator("artwork_data", mode="before")
    @classmethod
    def _decode_base64(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error:
            logger.warning("Dropping artwork with invalid base64 payload")
            return None

    @field_serializer("artwork_data", when_used="json")
    def _encode_base64(self, value: bytes | None) -> str | None:
        if value is None:
            return None
        return base64.b64encode(value).decode("ascii")
