from __future__ import annotations

import asyncio
from collections import defaultdict
from pathlib import Path

import typer

from statink_exporter.cli.common import configure_logging, exporter_scope, load_sessions
from statink_exporter.exporters.base.errors import ExporterError
from statink_exporter.exporters.stat_ink.exporter import StatInkExporter
from statink_exporter.splatnet.models import CoopSession, VersusSession

app = typer.Typer(help="Upload SplatNet 3 sessions to stat.ink.")

Loaded = list[tuple[Path, VersusSession | CoopSession]]


async def _pending(exporter: StatInkExporter, loaded: Loaded) -> Loaded:
    ids_by_type: dict[str, list[str]] = defaultdict(list)
    for _, session in loaded:
        ids_by_type[session.type].append(session.source_id)

    pending: set[str] = set()
    for session_type, ids in ids_by_type.items():
        pending.update(await exporter.not_uploaded(session_type, ids))  # type: ignore[arg-type]

    return [(path, s) for path, s in loaded if s.source_id in pending]


async def _export(loaded: Loaded, *, force: bool, stop_on_failure: bool) -> int:
    failures = 0
    async with exporter_scope() as exporter:
        todo = loaded if force else await _pending(exporter, loaded)
        skipped = len(loaded) - len(todo)
        if skipped:
            typer.echo(f"Skipping {skipped} session(s) already on stat.ink.")

        for path, session in todo:
            try:
                result = await exporter.export_game(session)
            except ExporterError as e:
                if stop_on_failure:
                    raise
                failures += 1
                typer.echo(f"FAILED {path}: {e}", err=True)
                continue
            typer.echo(f"{path}: {result.url}")
    return failures


async def _check(loaded: Loaded) -> Loaded:
    async with exporter_scope() as exporter:
        return await _pending(exporter, loaded)


@app.command("export")
def export_cmd(
    files: list[Path] = typer.Argument(
        ..., exists=True, dir_okay=False, help="Session JSON files (one session per file)."
    ),
    force: bool = typer.Option(
        False, "--force", help="Upload even if stat.ink already has the session."
    ),
    stop_on_failure: bool = typer.Option(
        False,
        "--stop-on-failure",
        help="Stop immediately and raise the underlying exception.",
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Overrides LOG_LEVEL."),
) -> None:
    """Map each session and upload it to stat.ink."""

    configure_logging(log_level)
    failures = asyncio.run(
        _export(load_sessions(files), force=force, stop_on_failure=stop_on_failure)
    )
    if failures:
        raise typer.Exit(code=1)


@app.command("check")
def check_cmd(
    files: list[Path] = typer.Argument(
        ..., exists=True, dir_okay=False, help="Session JSON files (one session per file)."
    ),
) -> None:
    """List the sessions stat.ink does not have yet."""

    configure_logging()
    pending = asyncio.run(_check(load_sessions(files)))
    for path, session in pending:
        typer.echo(f"{path} ({session.type})")
    typer.echo(f"{len(pending)} of {len(files)} not uploaded.")
