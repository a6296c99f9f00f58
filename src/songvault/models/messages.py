"""Chat message models for transcripts handed over by the chat client."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel

SYSTEM_ROLE = "system"


@runtime_checkable
class ArchivableMessage(Protocol):
    """Anything exposing a role and text content can be archived."""

    @property
    def role(self) -> str: ...

    @property
    def content(self) -> str: ...


class ChatMessage(BaseModel):
    """A single chat message."""

    role: str  # system, user, assistant
    content: str
