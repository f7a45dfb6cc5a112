"""
List command - Show available and installed items
"""

import json as json_lib

import click
from rich.console import Console
from rich.table import Table

from bwc.core.errors import BwcError, ConfigNotFound
from bwc.core.schema import StdioServerConfig
from bwc.utils.validators import find_unresolved_env

from . import get_context

console = Console()


@click.command(name="ls")
@click.option("--agents", is_flag=True, help="Only subagents")
@click.option("--commands", is_flag=True, help="Only slash commands")
@click.option("--mcps", is_flag=True, help="Only MCP servers")
@click.option("--installed", is_flag=True, help="Only items recorded in the active configuration")
@click.option("--category", help="Filter registry items by category")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_context
def list_items(ctx, agents: bool, commands: bool, mcps: bool, installed: bool, category: str, json_output: bool):
    """
    List subagents, commands and MCP servers

    Registry items are marked when installed. --installed reads only the
    active configuration and needs no network access.

    Examples:

        \b
        bwc ls                          # Everything in the registry
        bwc ls --agents --category data-ai
        bwc ls --mcps --installed       # Installed MCP servers
        bwc ls --installed --json
    """
    show_all = not (agents or commands or mcps)
    context = get_context(ctx, interactive=False)

    try:
        try:
            store = context.store
        except ConfigNotFound:
            if installed:
                raise
            store = None
        if installed:
            _list_installed(store, show_all or agents, show_all or commands, show_all or mcps, json_output)
        else:
            _list_registry(context, store, show_all or agents, show_all or commands, show_all or mcps, category, json_output)
    except BwcError as e:
        console.print(f"[red]Error:[/] {e}")
        raise click.Abort()


def _list_installed(store, agents: bool, commands: bool, mcps: bool, json_output: bool):
    """Display what the active config declares"""
    servers = store.get_all_mcp_server_configs()

    if json_output:
        output = {"scope": store.scope, "config": store.location}
        if agents:
            output["subagents"] = store.installed_subagents()
        if commands:
            output["commands"] = store.installed_commands()
        if mcps:
            output["mcpServers"] = {
                name: server.model_dump(mode="json", exclude_none=True) for name, server in servers.items()
            }
        print(json_lib.dumps(output, indent=2))
        return

    console.print(f"[dim]Configuration ({store.scope}):[/] {store.location}\n")

    if agents:
        _print_names("Subagents", store.installed_subagents(), "bwc add --agent <name>")
    if commands:
        _print_names("Commands", store.installed_commands(), "bwc add --command <name>")
    if not mcps:
        return

    if not servers:
        console.print("[yellow]No MCP servers installed[/]")
        console.print("[dim]Install one:[/] bwc add --mcp <name>")
        return

    table = Table(title="MCP Servers")
    table.add_column("Name", style="cyan")
    table.add_column("Provider", style="magenta")
    table.add_column("Transport", style="dim")
    table.add_column("Scope", style="blue")
    table.add_column("Config", style="dim")

    for name, server in servers.items():
        missing = find_unresolved_env(server.env) if isinstance(server, StdioServerConfig) else []
        status = "[green]READY[/]" if not missing else f"[yellow]INCOMPLETE[/] ({len(missing)} missing)"
        table.add_row(name, server.provider, server.transport, server.scope, status)

    console.print(table)
    console.print(f"\n[dim]Total: {len(servers)} MCP servers[/]")


def _print_names(title: str, names, hint: str):
    if not names:
        console.print(f"[yellow]No {title.lower()} installed[/]  [dim]{hint}[/]\n")
        return
    console.print(f"[bold]{title}[/] ({len(names)})")
    for name in names:
        console.print(f"  [green]*[/] {name}")
    console.print()


def _list_registry(context, store, agents: bool, commands: bool, mcps: bool, category: str, json_output: bool):
    """Display registry items, marking installed ones when a config exists"""
    registry = context.registry
    sections = []

    installed = {"subagents": set(), "commands": set(), "mcpServers": set()}
    if store is not None:
        installed = {kind: set(names) for kind, names in store.all_dependencies().items()}

    if agents:
        rows = [(s.name, s.category, s.description, s.name in installed["subagents"]) for s in registry.get_subagents()]
        sections.append(("Subagents", rows))
    if commands:
        rows = [(c.name, c.category, c.description, c.name in installed["commands"]) for c in registry.get_commands()]
        sections.append(("Commands", rows))
    if mcps:
        rows = [
            (m.name, m.category, m.description, m.name in installed["mcpServers"])
            for m in registry.get_mcp_servers()
        ]
        sections.append(("MCP Servers", rows))

    if category:
        sections = [(title, [r for r in rows if r[1] == category]) for title, rows in sections]

    if json_output:
        output = {
            title.lower().replace(" ", "_"): [
                {"name": name, "category": cat, "description": desc, "installed": inst}
                for name, cat, desc, inst in rows
            ]
            for title, rows in sections
        }
        print(json_lib.dumps(output, indent=2))
        return

    for title, rows in sections:
        table = Table(title=f"{title} ({len(rows)})")
        table.add_column("", width=1)
        table.add_column("Name", style="cyan")
        table.add_column("Category", style="blue")
        table.add_column("Description", max_width=60)
        for name, cat, desc, inst in rows:
            table.add_row("[green]✓[/]" if inst else "", name, cat, desc)
        console.print(table)
        console.print()
