"""
CLI for the sandbox MCP server.

Stdout is reserved for the protocol stream, so all human-facing output and
logging goes to stderr.
"""

import asyncio
import logging
import sys
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sandbox_mcp import __version__
from sandbox_mcp.filesystem import Allowed, PathValidator, ToolDispatcher
from sandbox_mcp.settings import ServerConfig

# Load environment variables
load_dotenv()

console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Setup rich logging on stderr."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    # Reduce noise from the SDK
    logging.getLogger("mcp").setLevel(logging.WARNING)


def load_config(
    config_path: Optional[str],
    allow: tuple[str, ...] = (),
    block: tuple[str, ...] = (),
    extensions: tuple[str, ...] = (),
    resolve_symlinks: Optional[bool] = None,
) -> ServerConfig:
    """Build the effective configuration: file or environment, then CLI overrides."""
    if config_path:
        config = ServerConfig.from_file(config_path)
    else:
        config = ServerConfig.from_env()

    return config.with_overrides(
        allowed_roots=list(allow),
        blocked_roots=list(block),
        allowed_extensions=list(extensions),
        resolve_symlinks=resolve_symlinks,
    )


def config_options(f):
    """Options shared by every command that needs a policy."""
    options = [
        click.option(
            "--config",
            "-c",
            "config_path",
            type=click.Path(exists=True, dir_okay=False),
            default=None,
            help="Path to config file (YAML or JSON). Defaults to SANDBOX_MCP_* env vars.",
        ),
        click.option(
            "--allow",
            "-a",
            multiple=True,
            help="Allowed directory (repeatable, replaces configured roots)",
        ),
        click.option(
            "--block",
            "-b",
            multiple=True,
            help="Blocked directory (repeatable, replaces configured roots)",
        ),
        click.option(
            "--extension",
            "-e",
            "extensions",
            multiple=True,
            help="Allowed file extension (repeatable, replaces configured list)",
        ),
        click.option(
            "--resolve-symlinks/--no-resolve-symlinks",
            default=None,
            help="Resolve symlinks before containment checks (default: on)",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


@click.group()
@click.version_option(version=__version__)
def cli():
    """Sandbox MCP Server - filesystem tools behind a path sandbox."""
    pass


@cli.command()
@config_options
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
def serve(
    config_path: Optional[str],
    allow: tuple[str, ...],
    block: tuple[str, ...],
    extensions: tuple[str, ...],
    resolve_symlinks: Optional[bool],
    verbose: bool,
):
    """
    Run the MCP server over stdio.

    Examples:

        # Allow a single directory
        sandbox-mcp serve --allow ~/sandbox

        # Use a config file
        sandbox-mcp serve -c ~/.sandbox-mcp/config.yaml
    """
    setup_logging(verbose)
    logger = logging.getLogger(__name__)

    try:
        config = load_config(config_path, allow, block, extensions, resolve_symlinks)
    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(1)

    if not config.policy.allowed_roots:
        logger.warning("No allowed directories configured; every path will be denied")

    from sandbox_mcp.server import SandboxMCPServer

    try:
        server = SandboxMCPServer(config)
        exit_code = asyncio.run(server.run())
    except Exception as e:
        logger.error(f"Failed to run server: {e}")
        sys.exit(1)

    sys.exit(exit_code)


@cli.command()
@click.argument("path")
@config_options
def check(
    path: str,
    config_path: Optional[str],
    allow: tuple[str, ...],
    block: tuple[str, ...],
    extensions: tuple[str, ...],
    resolve_symlinks: Optional[bool],
):
    """
    Show the sandbox decision for PATH.

    Exits with status 1 when the path would be refused.
    """
    try:
        config = load_config(config_path, allow, block, extensions, resolve_symlinks)
    except Exception as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(1)

    validator = PathValidator(config.policy)
    result = validator.validate_path(path)

    if not isinstance(result, Allowed):
        console.print(
            Panel(
                f"[bold red]{type(result).__name__}[/bold red]: {escape(result.reason)}\n"
                f"Path: [yellow]{escape(result.attempted_path)}[/yellow]",
                title="Refused",
            )
        )
        sys.exit(1)

    ext_check = validator.validate_extension(result.normalized_path)
    ext_line = (
        f"Extension: [green]{ext_check.extension or '(none)'}[/green] allowed"
        if ext_check.is_valid
        else f"Extension: [red]{escape(ext_check.reason)}[/red]"
    )
    console.print(
        Panel(
            f"[bold green]Allowed[/bold green]\n"
            f"Normalized: [green]{escape(str(result.normalized_path))}[/green]\n"
            f"{ext_line}",
            title="Decision",
        )
    )
    if not ext_check.is_valid:
        sys.exit(1)


@cli.command()
@config_options
def policy(
    config_path: Optional[str],
    allow: tuple[str, ...],
    block: tuple[str, ...],
    extensions: tuple[str, ...],
    resolve_symlinks: Optional[bool],
):
    """Show the effective sandbox policy."""
    try:
        config = load_config(config_path, allow, block, extensions, resolve_symlinks)
    except Exception as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(1)

    summary = config.policy.summary()
    table = Table(title=f"{config.name} policy")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Allowed roots", "\n".join(summary["allowed_roots"]) or "(none)")
    table.add_row("Blocked roots", "\n".join(summary["blocked_roots"]) or "(none)")
    table.add_row(
        "Extensions", ", ".join(summary["allowed_extensions"]) or "(no restriction)"
    )
    table.add_row("Resolve symlinks", str(summary["resolve_symlinks"]))
    console.print(table)


@cli.command()
def tools():
    """List the tools the server exposes."""
    console.print("[bold]Available Tools:[/bold]")
    dispatcher = ToolDispatcher(PathValidator(ServerConfig().policy))
    for schema in dispatcher.get_tool_schemas():
        console.print(f"  • [green]{schema['name']}[/green] - {schema['description']}")


if __name__ == "__main__":
    cli()
