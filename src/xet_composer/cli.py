"""Command-line interface for xet-composer."""

import json
import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import click
import yaml
from rich.logging import RichHandler
from rich.markup import escape

from xet_composer import __version__
from xet_composer.config.loader import (
    get_home_config_path,
    get_local_config_path,
    load_config,
    resolve_template_root,
    save_config,
)
from xet_composer.config.preflight import run_all_checks
from xet_composer.config.schema import DEFAULT_CONFIG
from xet_composer.console import console
from xet_composer.kyc import KycError, validate_kyc
from xet_composer.pipeline import ComposeRequest, ComposeResult, Pipeline
from xet_composer.storage import ArtifactStore, StorageError
from xet_composer.templates import TemplateError, TemplateRenderer

logger = logging.getLogger(__name__)

# Hex literals (addresses, hashes) stay strings instead of becoming YAML ints
_HEX_LITERAL = re.compile(r"^0[xX][0-9a-fA-F]*$")


def _parse_param(raw: str) -> tuple[str, Any]:
    """Parse a key=value parameter, reading the value as a YAML scalar."""
    if "=" not in raw:
        raise click.BadParameter(f"Expected key=value, got: {raw}")
    key, value = raw.split("=", 1)
    key = key.strip()
    if not key:
        raise click.BadParameter(f"Missing parameter name in: {raw}")
    if _HEX_LITERAL.match(value):
        return key, value
    try:
        return key, yaml.safe_load(value) if value else ""
    except yaml.YAMLError:
        return key, value


def _load_params_file(path: Path) -> dict[str, Any]:
    """Load a JSON or YAML parameters file (must contain a mapping)."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise click.BadParameter(f"Cannot read parameters file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise click.BadParameter(f"Parameters file {path} must contain a mapping")
    return data


def _print_result(result: ComposeResult) -> None:
    """Print a human-readable compose result."""
    if not result.success:
        stage = result.stage.value if result.stage else "unknown"
        console.print(
            f"[red]✗[/red] [bold]{stage}[/bold] failed ([cyan]{result.error_kind}[/cyan])"
        )
        console.print(result.message, markup=False)
        return

    console.print(f"[green]✓[/green] {result.message}")
    console.print(f"  Contract: [cyan]{result.contract_name}[/cyan]")
    console.print(f"  Compiled at: {result.compiled_at}")
    if result.bytecode:
        preview = result.bytecode[:40] + ("..." if len(result.bytecode) > 40 else "")
        console.print(f"  Bytecode: [dim]{preview}[/dim] ({len(result.bytecode) // 2} bytes)")
    if result.artifact_path:
        console.print(f"  Artifact: {result.artifact_path}")
    if result.deployed_address:
        console.print(f"  Address: [cyan]{result.deployed_address}[/cyan]")
    for warning in result.warnings:
        console.print(f"[yellow]⚠[/yellow] {escape(warning)}")


def version_callback(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    console.print(f"xet-composer [bold cyan]{__version__}[/bold cyan]")
    ctx.exit()


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """xet-composer - render, compile and archive smart-contract templates."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    if ctx.invoked_subcommand is None:
        console.print("[bold]xet-composer[/bold] - smart-contract template pipeline")
        console.print("\nRun [cyan]xet-composer --help[/cyan] for available commands.")


@main.command()
@click.argument("template")
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    help="Template parameter as key=value (repeatable).",
)
@click.option(
    "--params-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON or YAML file with template parameters.",
)
@click.option(
    "--deploy/--no-deploy",
    default=True,
    help="Hand the artifact to the deployer after compiling (default: deploy).",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def compose(
    template: str,
    params: tuple[str, ...],
    params_file: Path | None,
    deploy: bool,
    as_json: bool,
) -> None:
    """Render, compile and store a contract template.

    TEMPLATE is a template name such as TokenVesting. Parameters given with
    --param override those loaded from --params-file.
    """
    parameters: dict[str, Any] = {}
    if params_file is not None:
        parameters.update(_load_params_file(params_file))
    parameters.update(_parse_param(p) for p in params)

    config = load_config()
    try:
        pipeline = Pipeline.from_config(config)
    except TemplateError as e:
        console.print(f"[red]Cannot load templates: {e}[/red]")
        raise SystemExit(1) from e

    result = pipeline.run(
        ComposeRequest(template=template, parameters=parameters, deploy=deploy)
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result)

    if not result.success:
        raise SystemExit(1)


@main.group(invoke_without_command=True)
@click.pass_context
def templates(ctx: click.Context) -> None:
    """Inspect contract templates."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(templates_list)


@templates.command("list")
@click.option("--verbose", "-v", is_flag=True, help="Show template source paths.")
def templates_list(verbose: bool) -> None:
    """List available templates."""
    root = resolve_template_root(load_config())
    try:
        renderer = TemplateRenderer(root)
    except TemplateError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from e

    names = renderer.template_names
    if not names:
        console.print(f"[yellow]No templates found in {root}.[/yellow]")
        return

    console.print("[bold]Available Templates:[/bold]\n")
    for name in names:
        console.print(f"  [cyan]{name}[/cyan]")
        tmpl = renderer.get_template(name)
        if verbose and tmpl is not None and tmpl.source is not None:
            console.print(f"    [dim]{tmpl.source}[/dim]")


@main.group(invoke_without_command=True)
@click.pass_context
def artifacts(ctx: click.Context) -> None:
    """Inspect stored artifacts."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(artifacts_list)


@artifacts.command("list")
@click.option(
    "--limit",
    "-n",
    default=10,
    type=int,
    help="Number of recent artifacts to show (default: 10).",
)
def artifacts_list(limit: int) -> None:
    """Show recently stored artifacts."""
    config = load_config()
    store = ArtifactStore(
        Path(config.artifact_root or "deployments"), config.storage or "dated"
    )
    paths = store.list_artifacts()[:limit]

    if not paths:
        console.print("[dim]No artifacts found.[/dim]")
        return

    console.print(f"[bold]Recent Artifacts ({len(paths)}):[/bold]\n")
    for path in paths:
        try:
            record = store.load(path)
        except StorageError as e:
            console.print(f"  [red]✗[/red] {path} [dim]({e.kind})[/dim]")
            continue
        try:
            compiled = datetime.fromtimestamp(record.compiled_at, UTC).isoformat()[:19]
        except (OverflowError, OSError, ValueError):
            compiled = str(record.compiled_at)
        console.print(f"  [cyan]{record.contract_name}[/cyan] | {path}")
        line = f"      Compiled: {compiled}"
        if record.address:
            line += f" | Address: {record.address}"
        console.print(line)


@artifacts.command("show")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def artifacts_show(path: Path) -> None:
    """Print a stored artifact record as JSON."""
    config = load_config()
    store = ArtifactStore(
        Path(config.artifact_root or "deployments"), config.storage or "dated"
    )
    try:
        record = store.load(path)
    except StorageError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from e
    click.echo(json.dumps(record.to_dict(), indent=2))


@main.command()
def preflight() -> None:
    """Validate environment is ready (compiler, templates, artifact root)."""
    if not run_all_checks(load_config()):
        raise SystemExit(1)


@main.command()
@click.option(
    "--global",
    "-g",
    "global_config",
    is_flag=True,
    help="Write the global config (~/.xet-composer/config.yaml).",
)
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
def init(global_config: bool, force: bool) -> None:
    """Write a config file with the default settings.

    Writes ./.xet-composer/config.yaml unless --global is given.
    """
    path = get_home_config_path() if global_config else get_local_config_path()
    if path.exists() and not force:
        console.print(f"[yellow]Config already exists: {path}[/yellow]")
        console.print("[dim]Use --force to overwrite.[/dim]")
        return

    save_config(DEFAULT_CONFIG, path)
    console.print(f"[green]Wrote config to {path}[/green]")


@main.command()
@click.argument("legal_name")
@click.argument("wallet_address")
@click.argument("signature_hash")
def kyc(legal_name: str, wallet_address: str, signature_hash: str) -> None:
    """Validate KYC details (legal name, wallet address, signature)."""
    try:
        validate_kyc(legal_name, wallet_address, signature_hash)
    except KycError as e:
        console.print(f"[red]✗[/red] {e}")
        raise SystemExit(1) from e
    console.print("[green]✓[/green] KYC details are valid")
