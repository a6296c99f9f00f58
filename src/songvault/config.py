"""Configuration for songvault."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    documents_root: Path = field(default_factory=lambda: Path.home() / ".songvault")
    cache_dir: Path | None = None

    @property
    def archives_dir(self) -> Path:
        return self.documents_root / "Archives"

    @property
    def db_path(self) -> Path:
        return (self.cache_dir or self.documents_root) / "store.db"
