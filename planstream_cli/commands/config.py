from __future__ import annotations

from typing import Optional

import typer

from planstream.config import CONFIG_PATH, get_profile, save_config
from planstream.errors import ConfigError
from planstream.logging import get_console

app = typer.Typer(help="Manage planstream configuration")


@app.command("init")
def init_config(force: bool = typer.Option(False, "--force", help="Overwrite an existing file")):
    console = get_console()
    if CONFIG_PATH.exists() and not force:
        console.print(f"[warn]Config already exists at[/warn] {CONFIG_PATH}")
        raise typer.Exit(1)
    save_config()
    console.print(f"[success]Wrote config template to[/success] {CONFIG_PATH}")


@app.command("show")
def show_config(profile: Optional[str] = typer.Option(None, "--profile", help="Config profile")):
    console = get_console()
    try:
        data = get_profile(profile)
    except ConfigError as exc:
        console.print(f"[error]{exc}[/error]")
        raise typer.Exit(1)
    console.print(f"Profile: {data.name}")
    console.print(f"API: {data.base_url}", highlight=False)
    console.print(f"Token: {'set' if data.token else 'not set'}")
    console.print(f"Poll interval: {data.poll_min}s - {data.poll_max}s")
