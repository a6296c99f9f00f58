"""Repository layer for the ordered project collection."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError
from result import Err, Ok, Result

from songvault.data import codec
from songvault.data.preferences import PROJECTS_KEY
from songvault.models.archive import ArchiveEntry, ProjectArchive

if TYPE_CHECKING:
    from songvault.data.archive import ArchiveManager
    from songvault.data.preferences import PreferencesStore
    from songvault.data.protocols import KeyValueStoreProtocol
    from songvault.models.preferences import PreferencesRecord
    from songvault.models.projects import Project

logger = logging.getLogger(__name__)

ARCHIVES_KEY = "projectArchives"

_archives_adapter = TypeAdapter(dict[str, list[ArchiveEntry]])


def apply_order(projects: Sequence[Project], order: Sequence[str]) -> list[Project]:
    """Arrange projects by ``order``.

    Ordered ids come first in order-list sequence; ids with no stored project
    are ignored; projects missing from the order keep their relative storage
    order at the end.
    """
    by_id = {p.id: p for p in projects}
    ordered: list[Project] = []
    seen: set[str] = set()
    for project_id in order:
        project = by_id.get(project_id)
        if project is None or project_id in seen:
            continue
        ordered.append(project)
        seen.add(project_id)
    ordered.extend(p for p in projects if p.id not in seen)
    return ordered


class ProjectRepository:
    """Persists the ordered project list in the blob store."""

    def __init__(
        self,
        store: KeyValueStoreProtocol,
        preferences: PreferencesStore,
        archives: ArchiveManager | None = None,
    ) -> None:
        self._store = store
        self._preferences = preferences
        self._archives = archives

    async def load(self, preferences: PreferencesRecord | None = None) -> list[Project]:
        """Load projects in display order; an unreadable store yields ``[]``."""
        raw = await self._store.get(PROJECTS_KEY)
        if raw is None:
            return []
        with_ids = codec.assign_missing_ids(raw)
        if with_ids is not None:
            await self._store.set(PROJECTS_KEY, with_ids)
            logger.info("Assigned permanent ids to stored projects that had none")
            raw = with_ids
        records = codec.decode_records(raw)
        if records is None:
            return []

        projects = [codec.decode(record) for record in records]
        archives = await self._load_archives()
        for project in projects:
            entries = archives.get(project.id)
            if entries:
                project.archive = ProjectArchive(entries=entries)

        prefs = preferences if preferences is not None else await self._preferences.load()
        return apply_order(projects, prefs.project_order)

    async def save(
        self,
        projects: Sequence[Project],
        preferences: PreferencesRecord | None = None,
    ) -> PreferencesRecord:
        """Persist projects and record their order in preferences.

        Returns:
            The preferences record with the refreshed project order.
        """
        records = [codec.encode(project) for project in projects]
        await self._store.set(PROJECTS_KEY, codec.dump_records(records))
        await self._save_archives(projects)

        prefs = preferences if preferences is not None else await self._preferences.load()
        updated = prefs.model_copy(update={"project_order": [p.id for p in projects]})
        await self._preferences.save(updated)
        return updated

    async def move_project(
        self,
        projects: Sequence[Project],
        source: int,
        destination: int,
        preferences: PreferencesRecord | None = None,
    ) -> tuple[list[Project], PreferencesRecord]:
        """Move the project at ``source`` to index ``destination`` and persist."""
        reordered = list(projects)
        if not 0 <= source < len(reordered):
            msg = f"source index {source} out of range"
            raise IndexError(msg)
        project = reordered.pop(source)
        reordered.insert(max(0, min(destination, len(reordered))), project)
        updated = await self.save(reordered, preferences)
        return reordered, updated

    async def delete_project(
        self,
        projects: Sequence[Project],
        project_id: str,
        *,
        with_archive: bool,
        preferences: PreferencesRecord | None = None,
    ) -> Result[tuple[list[Project], PreferencesRecord], str]:
        """Remove a project from the collection and persist.

        With ``with_archive`` the project's archive directory and its
        referenced files are deleted too, along with its archive index.
        Otherwise they stay on disk and the index stays readable through
        :meth:`load_archive`.
        """
        target = next((p for p in projects if p.id == project_id), None)
        if target is None:
            return Err(f"Project {project_id} not found")

        if with_archive:
            if self._archives is not None:
                deleted = self._archives.delete_archive(project_id)
                if isinstance(deleted, Err):
                    return deleted
            await self._forget_archive(project_id)
            for path in target.files:
                try:
                    path.unlink(missing_ok=True)
                except OSError:
                    logger.warning("Failed removing project file %s", path, exc_info=True)

        remaining = [p for p in projects if p.id != project_id]
        prefs = preferences if preferences is not None else await self._preferences.load()
        if project_id in prefs.selected_project_ids:
            prefs = prefs.model_copy(
                update={
                    "selected_project_ids": [
                        pid for pid in prefs.selected_project_ids if pid != project_id
                    ]
                }
            )
        updated = await self.save(remaining, prefs)
        return Ok((remaining, updated))

    async def _load_archives(self) -> dict[str, list[ArchiveEntry]]:
        raw = await self._store.get(ARCHIVES_KEY)
        if raw is None:
            return {}
        try:
            return _archives_adapter.validate_json(raw)
        except ValidationError:
            logger.warning("Stored archive index is unreadable; ignoring it")
            return {}

    async def load_archive(self, project_id: str) -> ProjectArchive:
        """Archive index for a project id, including projects deleted with their archive kept."""
        entries = (await self._load_archives()).get(project_id, [])
        return ProjectArchive(entries=entries)

    async def _save_archives(self, projects: Sequence[Project]) -> None:
        # Ids absent from ``projects`` keep their entries; only _forget_archive drops them.
        index = await self._load_archives()
        for project in projects:
            if project.archive.entries:
                index[project.id] = list(project.archive.entries)
            else:
                index.pop(project.id, None)
        await self._store.set(ARCHIVES_KEY, _archives_adapter.dump_json(index, by_alias=True))

    async def _forget_archive(self, project_id: str) -> None:
        index = await self._load_archives()
        if index.pop(project_id, None) is not None:
            await self._store.set(ARCHIVES_KEY, _archives_adapter.dump_json(index, by_alias=True))
