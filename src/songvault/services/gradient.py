"""Home gradient colors derived from project artwork."""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, TypeAlias

from PIL import Image, UnidentifiedImageError

if TYPE_CHECKING:
    from songvault.models.preferences import PreferencesRecord
    from songvault.models.projects import Project

logger = logging.getLogger(__name__)

RGB: TypeAlias = tuple[int, int, int]
RGBA: TypeAlias = tuple[int, int, int, float]

DEFAULT_GRADIENT: list[RGBA] = [(128, 128, 128, 0.2), (0, 0, 0, 0.3)]


def dominant_color(image_bytes: bytes) -> RGB | None:
    """Area-average color of an image, or None if it cannot be read."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            pixel = image.convert("RGB").resize((1, 1), Image.Resampling.BOX).getpixel((0, 0))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        logger.debug("Could not extract color from artwork", exc_info=True)
        return None
    r, g, b = pixel  # type: ignore[misc]
    return (int(r), int(g), int(b))


def gradient_sources(projects: Sequence[Project], preferences: PreferencesRecord) -> list[Project]:
    """Projects whose artwork feeds the gradient, honoring the selection fallback."""
    wanted = set(preferences.effective_project_ids(p.id for p in projects))
    return [p for p in projects if p.id in wanted]


def gradient_colors(projects: Sequence[Project], preferences: PreferencesRecord) -> list[RGBA]:
    """Two gradient stops from the relevant projects' artwork."""
    colors = [
        color
        for project in gradient_sources(projects, preferences)
        if project.artwork is not None
        and (color := dominant_color(project.artwork)) is not None
    ]
    match len(colors):
        case 0:
            return list(DEFAULT_GRADIENT)
        case 1:
            return [(*colors[0], 1.0), (*colors[0], 0.6)]
        case 2:
            return [(*colors[0], 1.0), (*colors[1], 0.8)]
        case _:
            return [(*colors[0], 1.0), (*colors[-1], 0.7)]
