import typer

from planstream_cli.commands import config, logs, plan

app = typer.Typer(help="Stream and inspect remote plan runs")
app.add_typer(logs.app, name="logs")
app.add_typer(plan.app, name="plan")
app.add_typer(config.app, name="config")

if __name__ == "__main__":
    app()
