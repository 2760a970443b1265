from __future__ import annotations

import typer

from statink_exporter.cli.export import app as export_app

app = typer.Typer(no_args_is_help=True)
app.add_typer(export_app, name="stat-ink")
