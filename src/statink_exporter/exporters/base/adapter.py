from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from statink_exporter.splatnet.models import Session

from .types import ExportResult, SessionType


class GameExporter(Protocol):
    """
    Callers depend on this, not on any target service client.

    Each exporter maps a session into its target's schema and submits it.
    """

    name: str

    async def export_game(self, session: Session) -> ExportResult:
        """
        Map + submit one session.
        Raises MappingError before any network write when the session cannot be mapped.
        """
        ...

    async def not_uploaded(self, session_type: SessionType, ids: Sequence[str]) -> list[str]:
        """Return the subset of `ids` the target does not know about yet."""
        ...
