"""
Search the registry
"""

import click
from rich.console import Console
from rich.table import Table

from bwc.core.errors import BwcError

from . import get_context

console = Console()


@click.command()
@click.argument("query")
@click.option("--agents", is_flag=True, help="Only subagents")
@click.option("--commands", is_flag=True, help="Only slash commands")
@click.option("--mcps", is_flag=True, help="Only MCP servers")
@click.option("--docker", "include_docker", is_flag=True, help="Also search the Docker MCP catalog")
@click.pass_context
def search(ctx, query, agents, commands, mcps, include_docker):
    """
    Search subagents, commands and MCP servers

    Matches names, descriptions and tags (and categories for MCP servers).

    Examples:

        \b
        bwc search python
        bwc search database --mcps
        bwc search redis --mcps --docker
    """
    show_all = not (agents or commands or mcps)
    context = get_context(ctx, interactive=False)
    total = 0

    try:
        registry = context.registry
        if show_all or agents:
            results = registry.search_subagents(query)
            total += _print_results("Subagents", [(s.name, s.category, s.description) for s in results])
        if show_all or commands:
            results = registry.search_commands(query)
            total += _print_results("Commands", [(c.name, c.category, c.description) for c in results])
        if show_all or mcps:
            results = registry.search_mcp_servers(query)
            total += _print_results(
                "MCP Servers",
                [(m.name, f"{m.category} ({m.verification.status})", m.description) for m in results],
            )
    except BwcError as e:
        console.print(f"[red]Error:[/] {e}")
        raise click.Abort()

    if include_docker:
        entries = context.docker.search(query)
        total += _print_results("Docker MCP Catalog", [(e.name, "docker", e.description) for e in entries])

    if total == 0:
        console.print(f"[yellow]No results for '{query}'[/]")
    else:
        console.print("[dim]Install with:[/] bwc add --agent|--command|--mcp <name>")


def _print_results(title: str, rows) -> int:
    if not rows:
        return 0
    table = Table(title=f"{title} ({len(rows)})")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="blue")
    table.add_column("Description", max_width=70)
    for row in rows:
        table.add_row(*row)
    console.print(table)
    console.print()
    return len(rows)
