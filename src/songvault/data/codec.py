"""Metadata codec: Project <-> StoredProjectRecord, and the metadata blob."""

from __future__ import annotations

import io
import json
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError

from songvault.models.projects import DEFAULT_FONT_NAME, Project, StoredProjectRecord, new_project_id

logger = logging.getLogger(__name__)


def normalize_artwork(data: bytes | None) -> bytes | None:
    """Return PNG bytes for ``data``, or None if it is not a readable image.

    PNG input is returned unchanged; other formats are re-encoded as PNG.
    """
    if not data:
        return None
    try:
        with Image.open(io.BytesIO(data)) as image:
            if image.format == "PNG":
                image.verify()
                return data
            image.load()
            out = io.BytesIO()
            image.save(out, format="PNG")
            return out.getvalue()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
        SyntaxError,
    ):
        logger.warning("Artwork could not be decoded as an image; dropping it")
        return None


def encode(project: Project) -> StoredProjectRecord:
    """Capture every project field except the archive."""
    return StoredProjectRecord(
        id=project.id,
        title=project.title,
        files=[str(path) for path in project.files],
        artwork_data=normalize_artwork(project.artwork),
        font_name=project.font_name,
        use_bold=project.use_bold,
        use_italic=project.use_italic,
    )


def decode(record: StoredProjectRecord) -> Project:
    """Build a project from its stored record, defaulting absent fields."""
    return Project(
        id=record.id or new_project_id(),
        title=record.title,
        artwork=normalize_artwork(record.artwork_data),
        files=[Path(path) for path in record.files],
        font_name=record.font_name or DEFAULT_FONT_NAME,
        use_bold=bool(record.use_bold),
        use_italic=bool(record.use_italic),
    )


def dump_records(records: list[StoredProjectRecord]) -> bytes:
    """Serialize records as the JSON array stored in the metadata blob."""
    payload = [r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in records]
    return json.dumps(payload).encode("utf-8")


def decode_records(raw: bytes) -> list[StoredProjectRecord] | None:
    """Parse the metadata blob.

    Returns None when the top-level container is unreadable. A malformed record
    is skipped without affecting the others.
    """
    items = _load_array(raw)
    if items is None:
        return None

    records: list[StoredProjectRecord] = []
    for index, item in enumerate(items):
        try:
            records.append(StoredProjectRecord.model_validate(item))
        except ValidationError:
            logger.warning("Skipping malformed project record at index %d", index)
    return records


def stored_project_ids(raw: bytes | None) -> list[str]:
    """Ids of stored records in storage order; records without an id are ignored."""
    if raw is None:
        return []
    records = decode_records(raw)
    if not records:
        return []
    return [r.id for r in records if r.id]


def assign_missing_ids(raw: bytes) -> bytes | None:
    """Give every stored record without an id a permanent one.

    Records that fail validation are left in place untouched.

    Returns:
        The rewritten blob, or None when nothing needed an id.
    """
    items = _load_array(raw)
    if items is None:
        return None
    changed = False
    for item in items:
        if isinstance(item, dict) and not item.get("id"):
            item["id"] = new_project_id()
            changed = True
    if not changed:
        return None
    return json.dumps(items).encode("utf-8")


def _load_array(raw: bytes) -> list[object] | None:
    try:
        items = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError):
        logger.warning("Project metadata blob is not valid JSON")
        return None
    if not isinstance(items, list):
        logger.warning("Project metadata blob is not a JSON array")
        return None
    return items
