from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

SessionType = Literal["VsInfo", "CoopInfo"]


@dataclass(frozen=True)
class ExportResult:
    """
    Outcome of a successful export.
    Failures are raised, never returned.
    """
    status: Literal["success"]
    url: str | None = None
