"""
Status command - Configuration, tooling and health report
"""

import json as json_lib
from typing import Any, Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from bwc.core.context import BwcContext
from bwc.core.errors import BwcError, ConfigNotFound
from bwc.core.schema import SCOPES
from bwc.mcp.verification import VerificationResult, format_verification_issues

from . import get_context

console = Console()


def collect_status(
    context: BwcContext, check: bool = False, scope: Optional[str] = None
) -> Tuple[Dict[str, Any], List[VerificationResult]]:
    """
    Gather the status report

    Args:
        context: Command context
        check: Also look for missing subagent/command files
        scope: Only report MCP servers installed with this scope
    """
    project_path = context.locator.find_project_config()
    user_path = context.locator.user_config()

    report: Dict[str, Any] = {
        "configScope": {
            "active": "none",
            "projectConfig": {"exists": project_path is not None, "path": str(project_path) if project_path else None},
            "userConfig": {"exists": user_path.is_file(), "path": str(user_path)},
        },
        "health": {"configValid": True, "pathsAccessible": True, "issues": []},
    }
    issues = report["health"]["issues"]

    try:
        store = context.store
    except ConfigNotFound:
        issues.append("No configuration found. Run 'bwc init' first.")
        store = None
    except BwcError as e:
        report["health"]["configValid"] = False
        issues.append(f"Configuration file is invalid or corrupted: {e}")
        store = None

    servers = {}
    if store is not None:
        report["configScope"]["active"] = store.scope
        servers = {
            name: server
            for name, server in store.get_all_mcp_server_configs().items()
            if scope is None or server.scope == scope
        }
        report["configuration"] = {
            "location": store.location,
            "registry": store.registry_url,
            "paths": {"subagents": str(store.subagents_path()), "commands": str(store.commands_path())},
        }
        report["installed"] = {
            "subagents": store.installed_subagents(),
            "commands": store.installed_commands(),
            "mcpServers": {n: s.model_dump(mode="json", exclude_none=True) for n, s in servers.items()},
        }

        for label, path in (("Subagents", store.subagents_path()), ("Commands", store.commands_path())):
            if not path.is_dir():
                report["health"]["pathsAccessible"] = False
                issues.append(f"{label} path does not exist: {path}")

        if check:
            for kind, name, path in context.item_installer().missing_files():
                issues.append(f"Missing {kind} file: {path.name}")

    claude_version = context.claude.version()
    report["claudeCLI"] = {
        "available": claude_version is not None,
        "version": claude_version,
        "path": context.claude.executable,
    }

    docker = context.docker.status()
    report["dockerMCP"] = {
        "dockerInstalled": docker.docker_installed,
        "toolkitAvailable": docker.toolkit_available,
        "gatewayConfigured": docker.gateway_configured,
        "installedServers": docker.installed_servers,
    }

    results = context.verifier.verify(servers) if servers else []
    report["verification"] = [
        {
            "name": r.name,
            "provider": r.provider,
            "status": r.status,
            "error": r.error,
            "fixCommands": r.fix_commands,
        }
        for r in results
    ]
    return report, results


@click.command()
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed information")
@click.option("--check", is_flag=True, help="Also check that installed files exist")
@click.option("--scope", type=click.Choice(SCOPES), help="Only MCP servers with this scope")
@click.pass_context
def status(ctx, json_output, verbose, check, scope):
    """
    Show configuration status and health

    Reports which configuration is active, what it declares, whether the
    claude CLI and Docker MCP Toolkit are available, and whether every
    recorded MCP server is really installed.

    Examples:

        \b
        bwc status
        bwc status --check --verbose
        bwc status --json
        bwc status --scope project
    """
    context = get_context(ctx, interactive=False)
    report, results = collect_status(context, check=check, scope=scope)

    if json_output:
        print(json_lib.dumps(report, indent=2))
        return

    _display(report, results, verbose, check)

    if report["health"]["issues"] or any(not r.ok for r in results):
        raise click.exceptions.Exit(1)


def _display(report: Dict[str, Any], results, verbose: bool, check: bool) -> None:
    scope = report["configScope"]
    console.print("[bold]Configuration[/]")
    console.print(f"  [dim]Active:[/]  {scope['active']}")
    for key, label in (("projectConfig", "Project"), ("userConfig", "User")):
        entry = scope[key]
        marker = "[green]✓[/]" if entry["exists"] else "[dim]-[/]"
        console.print(f"  {marker} {label}: {entry['path'] or 'not found'}")

    config = report.get("configuration")
    if config:
        console.print(f"  [dim]Registry:[/] {config['registry']}")
        if verbose:
            console.print(f"  [dim]Subagents:[/] {config['paths']['subagents']}")
            console.print(f"  [dim]Commands:[/]  {config['paths']['commands']}")

    installed = report.get("installed")
    if installed:
        console.print("\n[bold]Installed[/]")
        console.print(f"  Subagents: {len(installed['subagents'])}")
        console.print(f"  Commands:  {len(installed['commands'])}")
        console.print(f"  MCP servers: {len(installed['mcpServers'])}")
        if verbose:
            for name in installed["subagents"]:
                console.print(f"    [dim]subagent[/] {name}")
            for name in installed["commands"]:
                console.print(f"    [dim]command[/]  {name}")

    claude = report["claudeCLI"]
    docker = report["dockerMCP"]
    console.print("\n[bold]Tools[/]")
    if claude["available"]:
        console.print(f"  [green]✓[/] Claude CLI {claude['version']}")
    else:
        console.print("  [yellow]![/] Claude CLI not found")
    console.print(f"  {'[green]✓[/]' if docker['dockerInstalled'] else '[dim]-[/]'} Docker")
    console.print(f"  {'[green]✓[/]' if docker['toolkitAvailable'] else '[dim]-[/]'} Docker MCP Toolkit")
    console.print(f"  {'[green]✓[/]' if docker['gatewayConfigured'] else '[dim]-[/]'} Docker MCP gateway")

    if results:
        table = Table(title="MCP Servers")
        table.add_column("Name", style="cyan")
        table.add_column("Provider", style="magenta")
        table.add_column("Transport", style="dim")
        table.add_column("Scope", style="blue")
        table.add_column("Status")
        for r in results:
            style = "green" if r.ok else "yellow"
            table.add_row(r.name, r.provider, r.transport, r.scope, f"[{style}]{r.status}[/]")
        console.print()
        console.print(table)

        issues = format_verification_issues(results)
        if issues:
            console.print("\n[yellow]MCP server issues:[/]")
            for line in issues:
                console.print(line, markup=False, highlight=False)

    health = report["health"]
    if check or health["issues"]:
        console.print("\n[bold]Health[/]")
        console.print(f"  {'[green]✓[/]' if health['configValid'] else '[red]✗[/]'} Configuration")
        console.print(f"  {'[green]✓[/]' if health['pathsAccessible'] else '[yellow]![/]'} Paths")
        for issue in health["issues"]:
            console.print(f"  [yellow]-[/] {issue}")
