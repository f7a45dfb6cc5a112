"""
Remove subagents, commands or MCP servers
"""

import click
from rich.console import Console

from bwc.core.errors import BwcError
from bwc.core.schema import SCOPES

from . import get_context

console = Console()


@click.command()
@click.option("-a", "--agent", help="Subagent to remove")
@click.option("-c", "--command", "command_name", help="Slash command to remove")
@click.option("-m", "--mcp", help="MCP server to remove")
@click.option("-s", "--scope", type=click.Choice(SCOPES), help="Scope to remove the MCP server from (defaults to the recorded one)")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def remove(ctx, agent, command_name, mcp, scope, yes):
    """
    Remove an installed item

    Deletes the subagent/command file, or unregisters the MCP server from
    Claude Code, the Docker MCP Toolkit and .mcp.json, then drops it from
    the configuration.

    Examples:

        \b
        bwc remove --agent python-pro
        bwc remove --command commit -y
        bwc remove --mcp postgres --scope project
    """
    targets = [(kind, name) for kind, name in (("subagent", agent), ("command", command_name), ("MCP server", mcp)) if name]
    if len(targets) != 1:
        console.print("[red]Error:[/] Specify exactly one of --agent, --command or --mcp")
        raise click.Abort()

    kind, name = targets[0]

    if not yes and not click.confirm(f"Remove {kind} {name}?", default=False):
        console.print("[yellow]Cancelled[/]")
        return

    context = get_context(ctx, interactive=False)

    try:
        if kind == "MCP server":
            removed = context.mcp_installer().remove(name, scope)
        else:
            items = context.item_installer()
            removed = items.remove_subagent(name) if kind == "subagent" else items.remove_command(name)
    except BwcError as e:
        console.print(f"[red]Error:[/] {e}")
        raise click.Abort()

    if removed:
        console.print(f"  [green]-[/] Removed {kind} {name}")
    else:
        console.print(f"[yellow]Warning:[/] {kind} {name} is not installed")
