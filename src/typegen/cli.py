"""CLI entry point for typegen."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from typegen.config import TypegenConfig, load_config
from typegen.config.loader import DEFAULT_CONFIG_TEMPLATE
from typegen.descriptor import DescriptorError
from typegen.freshness import BuildState, DescriptorWatcher, assess_staleness
from typegen.generator import (
    CommandGenerator,
    GenerationError,
    GenerationReport,
    generate_if_stale,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="typegen",
    help="Regenerate sources from XML type-system descriptors when they change.",
)

config_app = typer.Typer(help="Manage typegen configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: TypegenConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "ts": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data)


def _configure_logging(cfg: TypegenConfig) -> None:
    if cfg.log_format == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(level=_LOG_LEVELS[cfg.log_level], handlers=[handler])


def _get_config() -> TypegenConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to typegen.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    _configure_logging(_config)


def _base_dir(cfg: TypegenConfig) -> Path:
    return Path(cfg.project.base_dir).resolve()


def _resolve(path: str, base: Path) -> Path:
    p = Path(path)
    if not p.is_absolute():
        p = base / p
    return p.resolve()


def _run_generate(
    cfg: TypegenConfig, descriptor: Path, output_dir: Path, force: bool = False
) -> GenerationReport:
    base = _base_dir(cfg)
    return generate_if_stale(
        descriptor,
        output_dir,
        search_path=[_resolve(p, base) for p in cfg.search_path],
        resources=cfg.resources,
        build_output_dir=cfg.project.build_output_dir,
        generator=CommandGenerator(cfg.generator),
        state_file=cfg.project.state_file,
        base_dir=base,
        workers=cfg.scan_workers,
        force=force,
    )


def _display_report(report: GenerationReport, ci: bool) -> None:
    if ci:
        status = "GENERATED" if report.generated else "UP-TO-DATE"
        typer.echo(f"{status} reason={report.reason} descriptor={report.descriptor}")
        if report.trigger:
            typer.echo(f"trigger={report.trigger}")
        return
    if report.generated:
        rprint(f"[green]Generated[/green] {report.output_dir} [dim]({report.reason})[/dim]")
        if report.trigger:
            rprint(f"[dim]Triggered by:[/dim] {report.trigger}")
        rprint(f"[dim]Recorded {report.recorded} file(s) in the change record.[/dim]")
    else:
        rprint("[green]Generated sources are up to date.[/green]")


@app.command()
def generate(
    descriptor: Annotated[str, typer.Argument(help="Path to the type-system descriptor")],
    output_dir: Annotated[
        str | None, typer.Option("--output-dir", "-o", help="Generated sources directory")
    ] = None,
    force: Annotated[bool, typer.Option("--force", help="Regenerate even if up to date")] = False,
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
) -> None:
    """Generate sources if the descriptor or anything it imports changed."""
    cfg = _get_config()
    base = _base_dir(cfg)
    descriptor_path = _resolve(descriptor, base)
    out_dir = _resolve(output_dir or cfg.project.output_dir, base)

    try:
        report = _run_generate(cfg, descriptor_path, out_dir, force=force)
    except (DescriptorError, GenerationError) as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    _display_report(report, ci)


@app.command()
def check(
    descriptor: Annotated[str, typer.Argument(help="Path to the type-system descriptor")],
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
    fail_on_stale: Annotated[
        bool, typer.Option("--fail-on-stale", help="Exit 1 if generation is needed")
    ] = False,
) -> None:
    """Report whether generated sources are stale, without generating."""
    cfg = _get_config()
    base = _base_dir(cfg)
    descriptor_path = _resolve(descriptor, base)
    state = BuildState.load_or_empty(_resolve(cfg.project.state_file, base))

    try:
        report, _ = assess_staleness(
            descriptor_path,
            [_resolve(p, base) for p in cfg.search_path],
            cfg.resources,
            cfg.project.build_output_dir,
            state,
            base_dir=base,
            workers=cfg.scan_workers,
        )
    except DescriptorError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if ci:
        typer.echo(f"{'STALE' if report.stale else 'OK'} reason={report.reason}")
        if report.trigger:
            typer.echo(f"trigger={report.trigger}")
    else:
        table = Table(title="Staleness Check")
        table.add_column("Descriptor", style="cyan")
        table.add_column("Status", justify="center")
        table.add_column("Reason")
        table.add_column("Types checked", justify="right", style="dim")
        status = "[red]stale[/red]" if report.stale else "[green]ok[/green]"
        checked = f"{report.checked}/{report.fields_total}"
        table.add_row(str(descriptor_path), status, report.reason, checked)
        rprint(table)
        if report.trigger:
            rprint(f"[dim]Triggered by:[/dim] {report.trigger}")

    if fail_on_stale and report.stale:
        raise typer.Exit(code=1)


def _make_regenerate_callback(
    cfg: TypegenConfig, descriptor: Path, output_dir: Path
) -> Callable[[str, str], None]:
    """Watcher callback: rerun generate-if-stale, logging descriptor errors."""

    def _on_change(event_type: str, path: str) -> None:
        logger.debug("%s: %s", event_type, path)
        try:
            report = _run_generate(cfg, descriptor, output_dir)
        except (DescriptorError, GenerationError) as e:
            logger.error("%s", e)
            return
        if report.generated:
            logger.info("Regenerated %s (%s)", report.output_dir, report.reason)

    return _on_change


@app.command()
def watch(
    descriptor: Annotated[str, typer.Argument(help="Path to the type-system descriptor")],
    output_dir: Annotated[
        str | None, typer.Option("--output-dir", "-o", help="Generated sources directory")
    ] = None,
) -> None:
    """Watch the descriptor and resource directories, regenerating on change."""
    cfg = _get_config()
    base = _base_dir(cfg)
    descriptor_path = _resolve(descriptor, base)
    out_dir = _resolve(output_dir or cfg.project.output_dir, base)

    callback = _make_regenerate_callback(cfg, descriptor_path, out_dir)
    callback("initial", str(descriptor_path))

    paths = [descriptor_path.parent, *(_resolve(r.directory, base) for r in cfg.resources)]
    watcher = DescriptorWatcher(
        paths,
        debounce_seconds=cfg.watch.debounce_seconds,
        callback=callback,
        ignore=[out_dir, _resolve(cfg.project.state_file, base).parent],
    )
    watcher.start()
    rprint("[bold]Watching[/bold] for changes. Press Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default typegen.yaml in current directory."""
    target = Path("typegen.yaml")
    if target.exists() and not force:
        rprint("[yellow]typegen.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
