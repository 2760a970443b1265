from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from pathlib import Path

from statink_exporter.core.config import Settings, settings
from statink_exporter.exporters.stat_ink.exporter import StatInkExporter
from statink_exporter.splatnet.models import CoopSession, VersusSession, parse_session_json


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_sessions(paths: Sequence[Path]) -> list[tuple[Path, VersusSession | CoopSession]]:
    """Read one session per file, as written by the history fetcher."""
    return [(path, parse_session_json(path.read_bytes())) for path in paths]


@asynccontextmanager
async def exporter_scope(cfg: Settings | None = None) -> AsyncIterator[StatInkExporter]:
    """
    Context-managed stat.ink exporter for CLI commands.
    Ensures the HTTP client is closed.
    """
    exporter = StatInkExporter.from_settings(cfg or settings)
    try:
        yield exporter
    finally:
        await exporter.aclose()
