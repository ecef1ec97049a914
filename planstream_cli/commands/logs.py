from __future__ import annotations

import io
import threading
from typing import Optional

import typer

from planstream.config import get_profile
from planstream.errors import PlanStreamError, StreamCanceled
from planstream.logging import get_console
from planstream.plans import from_profile

app = typer.Typer(help="Stream logs for a plan")


@app.callback(invoke_without_command=True)
def main(
    plan_id: str = typer.Argument(..., help="Plan ID"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Config profile"),
):
    console = get_console()
    cancel = threading.Event()
    try:
        profile_data = get_profile(profile)
        plans = from_profile(profile_data)
        reader = plans.logs(plan_id, cancel=cancel)
        buffered = io.BufferedReader(reader, buffer_size=profile_data.chunk_size)
        with io.TextIOWrapper(buffered, encoding="utf-8", errors="replace", newline="") as stream:
            out = console.file
            for line in stream:
                out.write(line)
                out.flush()
    except KeyboardInterrupt:
        cancel.set()
        console.print("[warn]Interrupted[/warn]")
        raise typer.Exit(130)
    except StreamCanceled as exc:
        console.print(f"[warn]{exc}[/warn]")
        raise typer.Exit(130)
    except PlanStreamError as exc:
        console.print(f"[error]{exc}[/error]", highlight=False)
        raise typer.Exit(1)
