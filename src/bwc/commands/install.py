"""
Install everything declared in the active configuration
"""

import click
from rich.console import Console

from bwc.core.errors import BwcError
from bwc.mcp.executor import SKIPPED

from . import get_context

console = Console()


@click.command()
@click.option("--skip-mcp", is_flag=True, help="Only install subagents and commands")
@click.pass_context
def install(ctx, skip_mcp):
    """
    Install all dependencies from the configuration

    Re-downloads every declared subagent and command, and re-applies every
    recorded MCP server (servers already present in Claude Code or the
    Docker MCP Toolkit are left alone). One failure does not stop the rest.

    Examples:

        \b
        bwc install                 # Typical after cloning a project
        bwc install --skip-mcp
    """
    context = get_context(ctx, interactive=False)

    try:
        store = context.store
    except BwcError as e:
        console.print(f"[red]Error:[/] {e}")
        raise click.Abort()

    deps = store.all_dependencies()
    total = sum(len(names) for names in deps.values())
    if total == 0:
        console.print("[yellow]No dependencies declared[/]")
        console.print("\n[dim]Add one:[/] bwc add --agent <name>")
        return

    console.print(f"[cyan]Installing dependencies from {store.location}[/]\n")

    installed_count = 0
    failed_count = 0
    items = context.item_installer()

    for kind, names, install_one in (
        ("subagent", deps["subagents"], items.install_subagent),
        ("command", deps["commands"], items.install_command),
    ):
        for name in names:
            try:
                install_one(name)
                console.print(f"  [green]+[/] {kind} {name}")
                installed_count += 1
            except Exception as e:
                console.print(f"  [red]-[/] {kind} {name}: {e}")
                failed_count += 1

    if deps["mcpServers"] and not skip_mcp:
        result = context.mcp_installer().install_declared()
        for outcome in result.outcomes:
            marker = "[dim]=[/]" if outcome.status == SKIPPED else "[green]+[/]"
            console.print(f"  {marker} MCP server {outcome.name} [dim]({outcome.provider}: {outcome.status})[/]")
            for warning in outcome.warnings:
                console.print(f"    [yellow]Warning:[/] {warning}")
        for name, error in result.failures.items():
            console.print(f"  [red]-[/] MCP server {name}: {error}")
        installed_count += result.success_count
        failed_count += result.failure_count

    console.print(f"\n[green]{installed_count} installed[/], [red]{failed_count} failed[/]")
    if failed_count:
        raise click.exceptions.Exit(1)
