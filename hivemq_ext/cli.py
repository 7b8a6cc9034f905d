import contextlib
import logging
from pathlib import Path
from typing import Iterator, Optional

import typer
import yaml
from rich import print as rprint
from rich.markup import escape

from . import __version__
from .assembler import list_zip
from .config import DEFAULT_CONFIG_PATH, default_config_path, load_config
from .errors import HivemqExtensionError
from .pipeline import ExtensionPipeline
from .runtime.home import run_command

app = typer.Typer(help="Package HiveMQ extensions into their zip distribution.")

CONFIG_HELP = f"Build configuration file (default: $HIVEMQ_EXTENSION_CONFIG or {DEFAULT_CONFIG_PATH})."
NO_BUILD_HELP = "Reuse the existing zip instead of rebuilding it."


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Logging level (DEBUG, INFO, WARNING, ...)."),
):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@contextlib.contextmanager
def _reported() -> Iterator[None]:
    try:
        yield
    except HivemqExtensionError as exc:
        rprint(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1)


def _pipeline(config_path: Optional[str]) -> ExtensionPipeline:
    return ExtensionPipeline(load_config(config_path or default_config_path()))


@app.command("main-class")
def main_class(config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP)):
    """Print the extension main class (configured or detected)."""
    with _reported():
        typer.echo(_pipeline(config_path).main_class())


@app.command("service-descriptor")
def service_descriptor(config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP)):
    """Generate the service descriptor of the extension."""
    with _reported():
        path = _pipeline(config_path).service_descriptor()
    rprint(f"[green]Service descriptor written to[/green] {path}")


@app.command()
def xml(config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP)):
    """Generate hivemq-extension.xml."""
    with _reported():
        path = _pipeline(config_path).xml()
    rprint(f"[green]Xml descriptor written to[/green] {path}")


@app.command()
def resources(config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP)):
    """Collect the extension resources into the build folder."""
    with _reported():
        path = _pipeline(config_path).resources()
    rprint(f"[green]Resources collected in[/green] {path}")


@app.command()
def jar(config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP)):
    """Assemble the shaded jar of the extension."""
    with _reported():
        path = _pipeline(config_path).jar()
    rprint(f"[green]Jar written to[/green] {path}")


@app.command()
def build(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
    show_contents: bool = typer.Option(False, "--list", help="List the entries of each zip."),
):
    """Assemble the zip distribution(s) of the extension."""
    with _reported():
        result = _pipeline(config_path).build()
    for path in result.zips:
        rprint(f"[green]Zip written to[/green] {path}")
        if show_contents:
            for name in list_zip(path):
                rprint(f"  {name}")


app.command("zip", help="Alias of build.")(build)


@app.command("prepare-home")
def prepare_home(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
    no_build: bool = typer.Option(False, "--no-build", help=NO_BUILD_HELP),
):
    """Stage a HiveMQ home with the extension installed."""
    with _reported():
        path = _pipeline(config_path).prepare_home(rebuild=not no_build)
    rprint(f"[green]HiveMQ home prepared at[/green] {path}")


@app.command()
def run(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
    no_build: bool = typer.Option(False, "--no-build", help=NO_BUILD_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help="Prepare the home and print the java command only."),
):
    """Run HiveMQ with the extension."""
    with _reported():
        pipeline = _pipeline(config_path)
        if dry_run:
            home = pipeline.prepare_home(rebuild=not no_build)
            typer.echo(" ".join(run_command(home, pipeline.config.home.java, pipeline.config.home.jvm_args)))
            return
        code = pipeline.run_hivemq(rebuild=not no_build)
    if code:
        raise typer.Exit(code)


@app.command("prepare-test")
def prepare_test(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
    no_build: bool = typer.Option(False, "--no-build", help=NO_BUILD_HELP),
):
    """Unpack the extension zip as integration test fixtures."""
    with _reported():
        path = _pipeline(config_path).prepare_test(rebuild=not no_build)
    rprint(f"[green]Extension test fixtures prepared at[/green] {path}")


@app.command("integration-test")
def integration_test(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
    no_build: bool = typer.Option(False, "--no-build", help=NO_BUILD_HELP),
):
    """Run the configured integration test command against the packaged extension."""
    with _reported():
        code = _pipeline(config_path).integration_test(rebuild=not no_build)
    if code:
        rprint(f"[red]Integration tests failed with exit code {code}.[/red]")
        raise typer.Exit(code)
    rprint("[green]Integration tests passed.[/green]")


@app.command("show-config")
def show_config(config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP)):
    """Print the validated configuration including defaults."""
    with _reported():
        cfg = load_config(config_path or default_config_path())
    typer.echo(yaml.safe_dump(cfg.dump(), sort_keys=False))


@app.command()
def init(
    name: str = typer.Option(..., "--name", help="Display name of the extension."),
    author: str = typer.Option(..., "--author", help="Author of the extension."),
    project: Optional[str] = typer.Option(None, "--project", help="Extension id (default: current directory name)."),
    version: str = typer.Option("1.0.0", "--version", help="Extension version."),
    path: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--path", help="Where to write the configuration."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing configuration."),
):
    """Write a starter configuration file."""
    if path.exists() and not force:
        rprint(f"[yellow]{path} already exists; use --force to overwrite.[/yellow]")
        raise typer.Exit(1)
    data = {
        "project": {"name": project or Path.cwd().name, "version": version},
        "hivemqExtension": {"name": name, "author": author, "priority": 0, "startPriority": 1000},
        "dependencies": {"runtime": [], "provided": []},
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    rprint(f"[green]Configuration written to[/green] {path}")


@app.command()
def version():
    """Print the tool version."""
    rprint(__version__)


if __name__ == "__main__":
    app()
