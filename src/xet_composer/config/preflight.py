"""Preflight checks to validate environment."""

from __future__ import annotations

import tempfile
from pathlib import Path

import docker
from docker.errors import DockerException

from xet_composer.compiler import LocalRunner
from xet_composer.config.loader import resolve_template_root
from xet_composer.config.schema import ComposerConfig
from xet_composer.console import console
from xet_composer.templates import TemplateError, TemplateRenderer


def check_docker(config: ComposerConfig) -> bool:
    """Validate Docker daemon is running and accessible."""
    try:
        client = docker.from_env()
        client.ping()
        console.print("[green]✓[/green] Docker daemon is running")
    except DockerException as e:
        console.print(f"[red]✗[/red] Cannot connect to Docker: {e}")
        return False

    try:
        version = client.version()
        console.print(f"[green]✓[/green] Docker version: {version['Version']}")
    except DockerException as e:
        console.print(f"[red]✗[/red] Cannot get Docker version: {e}")
        return False
    finally:
        client.close()

    console.print(f"  [dim]Compiler image: {config.docker_image}[/dim]")
    return True


def check_compiler(config: ComposerConfig) -> bool:
    """Check the compiler backend is reachable."""
    if config.runner == "docker":
        return check_docker(config)

    runner = LocalRunner(executable=config.solc or "solc")
    if runner.is_installed():
        console.print(f"[green]✓[/green] Compiler found: [cyan]{runner.executable}[/cyan]")
        return True

    console.print(
        f"[red]✗[/red] Compiler not found: [cyan]{runner.executable}[/cyan] "
        "[dim](set XET_SOLC or use the docker runner)[/dim]"
    )
    return False


def check_templates(config: ComposerConfig) -> bool:
    """Check the template root loads without errors."""
    root = resolve_template_root(config)
    try:
        renderer = TemplateRenderer(root)
    except TemplateError as e:
        console.print(f"[red]✗[/red] Templates: {e}")
        return False

    names = renderer.template_names
    if not names:
        console.print(f"[yellow]⚠[/yellow] No templates found in {root}")
        return False

    console.print(f"[green]✓[/green] {len(names)} template(s) in {root}")
    return True


def check_artifact_root(config: ComposerConfig) -> bool:
    """Check the artifact root can be created and written."""
    root = Path(config.artifact_root or "deployments")
    try:
        root.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryFile(dir=root):
            pass
    except OSError as e:
        console.print(f"[red]✗[/red] Artifact root not writable: {root} ({e})")
        return False

    console.print(f"[green]✓[/green] Artifact root writable: {root}")
    return True


CHECKS = [
    check_compiler,
    check_templates,
    check_artifact_root,
]


def run_all_checks(config: ComposerConfig) -> bool:
    """Run all preflight checks."""
    console.print("[bold]Running preflight checks...[/bold]\n")

    results = [check(config) for check in CHECKS]
    all_passed = all(results)

    if all_passed:
        console.print("\n[bold green]All preflight checks passed![/bold green]")
    else:
        console.print("\n[bold red]Some preflight checks failed.[/bold red]")

    return all_passed
