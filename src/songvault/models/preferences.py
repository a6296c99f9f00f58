"""User preference models and their stored shapes."""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_HOME_TITLE = "Home"


class GradientMode(StrEnum):
    """Which projects feed the home gradient."""

    ALL = "all"
    SELECTED = "selected"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


def _unique(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


class PreferencesRecord(BaseModel):
    """Process-wide user preferences."""

    home_title: str = DEFAULT_HOME_TITLE
    gradient_mode: GradientMode = GradientMode.ALL
    selected_project_ids: list[str] = Field(default_factory=list)
    project_order: list[str] = Field(default_factory=list)

    @field_validator("selected_project_ids", "project_order")
    @classmethod
    def _dedupe(cls, value: list[str]) -> list[str]:
        return _unique(value)

    def with_title(self, title: str) -> PreferencesRecord:
        """Copy with a new home title; blank titles fall back to the default."""
        cleaned = title.strip()
        return self.model_copy(update={"home_title": cleaned or DEFAULT_HOME_TITLE})

    def effective_mode(self, live_project_ids: Iterable[str]) -> GradientMode:
        """Mode to actually apply given the projects that exist right now.

        A ``selected`` mode whose selection matches no live project behaves as
        ``all`` so the gradient never ends up with an empty source set.
        """
        if self.gradient_mode is GradientMode.ALL:
            return GradientMode.ALL
        live = set(live_project_ids)
        if any(pid in live for pid in self.selected_project_ids):
            return GradientMode.SELECTED
        return GradientMode.ALL

    def effective_project_ids(self, live_project_ids: Iterable[str]) -> list[str]:
        """Live project ids that should feed the gradient, in live order."""
        live = list(live_project_ids)
        if self.effective_mode(live) is GradientMode.ALL:
            return live
        selected = set(self.selected_project_ids)
        return [pid for pid in live if pid in selected]


class StoredPreferences(BaseModel):
    """Current wire schema.

    The home title is written under ``username``, the key older releases used,
    so those readers still find it.
    """

    model_config = ConfigDict(populate_by_name=True)

    username: str = DEFAULT_HOME_TITLE
    gradient_mode: GradientMode = Field(alias="gradientMode")
    selected_project_ids: list[str] = Field(default_factory=list, alias="selectedProjectIds")
    project_order: list[str] = Field(default_factory=list, alias="projectOrder")

    @classmethod
    def from_record(cls, record: PreferencesRecord) -> StoredPreferences:
        return cls(
            username=record.home_title,
            gradient_mode=record.gradient_mode,
            selected_project_ids=record.selected_project_ids,
            project_order=record.project_order,
        )

    def to_record(self) -> PreferencesRecord:
        return PreferencesRecord(
            home_title=self.username,
            gradient_mode=self.gradient_mode,
            selected_project_ids=self.selected_project_ids,
            project_order=self.project_order,
        )


class LegacyStoredPreferences(BaseModel):
    """Legacy wire schema: only the title, no mode/selection/order."""

    username: str = DEFAULT_HOME_TITLE

    def to_record(self) -> PreferencesRecord:
        return PreferencesRecord(home_title=self.username)
