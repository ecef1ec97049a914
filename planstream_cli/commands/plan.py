from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import typer

from planstream.config import get_profile
from planstream.errors import PlanStreamError
from planstream.logging import get_console
from planstream.models import PlanStatus
from planstream.plans import from_profile

app = typer.Typer(help="Inspect plans")


def _fail(exc: PlanStreamError) -> NoReturn:
    get_console().print(f"[error]{exc}[/error]", highlight=False)
    raise typer.Exit(1)


@app.command("show")
def show(
    plan_id: str = typer.Argument(..., help="Plan ID"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Config profile"),
):
    console = get_console()
    try:
        plan = from_profile(get_profile(profile)).read(plan_id)
    except PlanStreamError as exc:
        _fail(exc)
    if plan.status == PlanStatus.FINISHED.value:
        style = "success"
    elif plan.is_terminal:
        style = "error"
    else:
        style = "pending"
    console.print(f"Plan: [plan]{plan.id}[/plan]")
    console.print(f"Status: [{style}]{plan.status}[/{style}]")
    console.print(f"Has changes: {plan.has_changes}")
    console.print(
        f"Resources: {plan.resource_additions} to add, {plan.resource_changes} to change, "
        f"{plan.resource_destructions} to destroy, {plan.resource_imports} to import"
    )
    if plan.log_read_url:
        console.print(f"Log URL: {plan.log_read_url}", highlight=False)


@app.command("changes")
def changes(
    plan_id: str = typer.Argument(..., help="Plan ID"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Config profile"),
):
    console = get_console()
    try:
        result = from_profile(get_profile(profile)).read_resource_changes(plan_id)
    except PlanStreamError as exc:
        _fail(exc)
    if not result.resource_changes:
        console.print("[info]No resource changes.[/info]")
        return
    for item in result.resource_changes:
        actions = ",".join(item.change.actions) or "no-op"
        console.print(f"- {item.address} ({actions})", markup=False, highlight=False)


@app.command("json")
def json_output(
    plan_id: str = typer.Argument(..., help="Plan ID"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON to file"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Config profile"),
):
    console = get_console()
    try:
        body = from_profile(get_profile(profile)).read_json_output(plan_id)
    except PlanStreamError as exc:
        _fail(exc)
    if output:
        output.write_bytes(body)
        console.print(f"[success]Wrote plan JSON to[/success] {output}")
        return
    console.print(body.decode("utf-8", errors="replace"), markup=False, highlight=False)
