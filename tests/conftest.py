"""Shared fixtures for songvault tests."""

from __future__ import annotations

import io
import struct
import zlib
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from PIL import Image

from songvault.config import Config
from songvault.data.archive import ArchiveManager
from songvault.data.db import Database, MemoryStore
from songvault.data.lyrics import LyricsFileManager
from songvault.data.preferences import PreferencesStore
from songvault.data.repositories import ProjectRepository
from songvault.services.project_service import ProjectService


class FakeClock:
    """Manually advanced clock for archive timestamps."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 10, 18, 14, 3, 22)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


def make_png(color: tuple[int, int, int] = (200, 40, 40), size: tuple[int, int] = (8, 8)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", size, color).save(out, format="PNG")
    return out.getvalue()


def png_header(width: int, height: int) -> bytes:
    """A PNG whose header declares ``width`` x ``height`` but carries almost no pixel data."""

    def chunk(tag: bytes, data: bytes) -> bytes:
        crc = zlib.crc32(tag + data) & 0xFFFFFFFF
        return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", crc)

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    idat = chunk(b"IDAT", zlib.compress(b"\x00"))
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + idat + chunk(b"IEND", b"")


@pytest.fixture
def documents_root(tmp_path: Path) -> Path:
    root = tmp_path / "Documents"
    root.mkdir()
    return root


@pytest.fixture
def test_config(documents_root: Path, tmp_path: Path) -> Config:
    return Config(documents_root=documents_root, cache_dir=tmp_path / "cache")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def lyrics(documents_root: Path) -> LyricsFileManager:
    return LyricsFileManager(documents_root)


@pytest.fixture
def archives(documents_root: Path, lyrics: LyricsFileManager, clock: FakeClock) -> ArchiveManager:
    return ArchiveManager(documents_root, lyrics, now=clock)


@pytest.fixture
def preferences_store(store: MemoryStore) -> PreferencesStore:
    return PreferencesStore(store)


@pytest.fixture
def repository(
    store: MemoryStore, preferences_store: PreferencesStore, archives: ArchiveManager
) -> ProjectRepository:
    return ProjectRepository(store, preferences_store, archives)


@pytest.fixture
def project_service(
    repository: ProjectRepository,
    preferences_store: PreferencesStore,
    lyrics: LyricsFileManager,
    archives: ArchiveManager,
) -> ProjectService:
    return ProjectService(repository, preferences_store, lyrics, archives)


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
async def test_db(tmp_path: Path) -> AsyncGenerator[Database]:
    """A fresh on-disk SQLite store."""
    db = Database(tmp_path / "store.db")
    await db.__aenter__()
    yield db  # type: ignore[misc]
    await db.__aexit__(None, None, None)
