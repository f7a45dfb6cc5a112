"""
Info command - Show detailed information about a registry item
"""

from pathlib import Path

import click
from rich.console import Console

from bwc.core.errors import BwcError, ConfigNotFound, DescriptorNotFound

from . import get_context

console = Console()

PREVIEW_LINES = 5

VERIFICATION_LABELS = {
    "verified": "[green]verified[/]",
    "community": "[cyan]community[/]",
    "experimental": "[yellow]experimental[/]",
}


@click.command()
@click.option("-a", "--agent", help="Subagent to describe")
@click.option("-c", "--command", "command_name", help="Slash command to describe")
@click.option("-m", "--mcp", help="MCP server to describe")
@click.pass_context
def info(ctx, agent, command_name, mcp):
    """
    Show detailed information about a subagent, command or MCP server

    Works without a configuration; installed items are marked when one exists.

    Examples:

        \b
        bwc info --agent python-pro
        bwc info --command commit
        bwc info --mcp postgres           # Methods, requirements and inputs
    """
    targets = [name for name in (agent, command_name, mcp) if name]
    if len(targets) != 1:
        console.print("[red]Error:[/] Specify exactly one of --agent, --command or --mcp")
        raise click.Abort()

    context = get_context(ctx, interactive=False)

    try:
        try:
            store = context.store
        except ConfigNotFound:
            store = None

        if agent:
            _show_subagent(context, store, agent)
        elif command_name:
            _show_command(context, store, command_name)
        else:
            _show_mcp_server(context, store, mcp)
    except BwcError as e:
        console.print(f"[red]Error:[/] {e}")
        raise click.Abort()


def _show_file_status(path: Path, add_hint: str, installed: bool):
    if not installed:
        console.print("\n[yellow]Not installed[/]")
        console.print(f"Run [cyan]{add_hint}[/] to install")
        return

    console.print(f"[yellow]Location:[/] {path}")
    if not path.is_file():
        console.print("[red]File is missing[/]  [dim]Run 'bwc install' to restore it[/]")
        return

    lines = path.read_text(encoding="utf-8").splitlines()
    console.print("\n[yellow]Preview:[/]")
    console.print("\n".join(lines[:PREVIEW_LINES]), style="dim", markup=False)
    if len(lines) > PREVIEW_LINES:
        console.print(f"[dim]... ({len(lines) - PREVIEW_LINES} more lines)[/]")


def _show_subagent(context, store, name: str):
    subagent = context.registry.find_subagent(name)
    if subagent is None:
        raise DescriptorNotFound("Subagent", name)

    installed = store is not None and subagent.name in store.installed_subagents()
    marker = " [green]✓ Installed[/]" if installed else ""
    console.print(f"\n[bold cyan]{subagent.name}[/]{marker}")
    console.print(f"{subagent.description}\n")

    console.print(f"[yellow]Category:[/] {subagent.category}")
    if subagent.tools:
        console.print(f"[yellow]Tools:[/] {', '.join(subagent.tools)}")
    if subagent.tags:
        console.print(f"[yellow]Tags:[/] {', '.join(subagent.tags)}")

    path = store.subagents_path() / f"{subagent.name}.md" if installed else None
    _show_file_status(path, f"bwc add --agent {subagent.name}", installed)


def _show_command(context, store, name: str):
    command = context.registry.find_command(name)
    if command is None:
        raise DescriptorNotFound("Command", name)

    installed = store is not None and command.name in store.installed_commands()
    marker = " [green]✓ Installed[/]" if installed else ""
    console.print(f"\n[bold cyan]{command.prefix}{command.name}[/]{marker}")
    console.print(f"{command.description}\n")

    console.print(f"[yellow]Category:[/] {command.category}")
    if command.argumentHint:
        console.print(f"[yellow]Arguments:[/] {command.argumentHint}")
    if command.tags:
        console.print(f"[yellow]Tags:[/] {', '.join(command.tags)}")

    path = store.commands_path() / f"{command.name}.md" if installed else None
    _show_file_status(path, f"bwc add --command {command.name}", installed)


def _show_mcp_server(context, store, name: str):
    server = context.registry.find_mcp_server(name)
    if server is None:
        raise DescriptorNotFound("MCP server", name)

    record = store.get_mcp_server_config(server.name) if store is not None else None
    marker = " [green]✓ Installed[/]" if record is not None else ""
    console.print(f"\n[bold cyan]{server.display_name or server.name}[/] ({server.name}){marker}")
    console.print(f"{server.description}\n")

    status = server.verification.status
    console.print("[yellow]Details:[/]")
    console.print(f"  Category: {server.category}")
    if server.server_type:
        console.print(f"  Server type: {server.server_type}")
    console.print(f"  Verification: {VERIFICATION_LABELS.get(status, status)}")

    console.print("\n[yellow]Installation Methods:[/]")
    for i, method in enumerate(server.installation_methods, 1):
        recommended = " [green](recommended)[/]" if method.recommended else ""
        console.print(f"  {i}. {method.type}{recommended}")
        if method.command:
            console.print(f"     Command: {method.command}", markup=False)
        if method.requirements:
            console.print(f"     Requirements: {', '.join(method.requirements)}")
        for step in method.steps:
            console.print(f"     - {step}", markup=False)

    if server.user_inputs:
        console.print("\n[yellow]User Inputs:[/]")
        for user_input in server.user_inputs:
            required = " (required)" if user_input.required else ""
            console.print(f"  • {user_input.label} [dim]{user_input.type}[/]{required}")
            if user_input.description:
                console.print(f"    {user_input.description}", markup=False)
            if user_input.env_var:
                console.print(f"    Environment variable: {user_input.env_var}")
            if user_input.default is not None:
                console.print(f"    Default: {user_input.default}", markup=False)

    sources = [(label, value) for label, value in (
        ("Official", server.sources.official),
        ("Docker", server.sources.docker),
        ("NPM", server.sources.npm),
    ) if value]
    if sources:
        console.print("\n[yellow]Sources:[/]")
        for label, value in sources:
            console.print(f"  {label}: {value}")

    if server.verification.tested_with:
        console.print(f"\n[yellow]Tested With:[/] {', '.join(server.verification.tested_with)}")
    if server.tags:
        console.print(f"[yellow]Tags:[/] {', '.join(server.tags)}")

    if record is None:
        console.print("\n[yellow]Not installed[/]")
        console.print(f"Run [cyan]bwc add --mcp {server.name}[/] to install")
        return

    console.print(f"\n[green]Installed[/] [dim]({record.provider}, {record.transport}, scope {record.scope})[/]")
    if record.provider == "claude" and context.claude.executable:
        details = context.claude.get_server(server.name)
        if details:
            console.print("\n[yellow]Claude Code:[/]")
            console.print(details.rstrip(), markup=False)
        else:
            console.print("[yellow]Not found in Claude Code[/]  [dim]Run 'bwc install' to re-apply it[/]")
