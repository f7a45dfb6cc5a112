"""
bwc CLI - Main entry point

Registers all commands and carries the global scope flags in ctx.obj.
"""

import logging
import sys

import click

from bwc import __version__


def setup_logging(verbose: bool) -> None:
    """Configure logging; library output goes to stderr"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", prog_name="bwc")
@click.option("--user", "-u", "user", is_flag=True, help="Use the user configuration (~/.bwc/config.json)")
@click.option("--project", "-p", "project", is_flag=True, help="Require the project configuration (bwc.config.json)")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def main(ctx, user, project, verbose):
    """
    bwc - Build with Claude

    Install Claude Code subagents, slash commands and MCP servers, and keep
    them declared in bwc.config.json so a project can be set up with one
    command.

    Examples:

        \b
        # Set up
        bwc init                                 # User configuration
        bwc init --project                       # Project configuration

        \b
        # Add things
        bwc add --agent python-pro
        bwc add --mcp postgres --scope project

        \b
        # Reproduce a project's setup
        bwc install

        \b
        # Inspect
        bwc ls --installed
        bwc info --mcp postgres
        bwc status --check
    """
    setup_logging(verbose)

    if user and project:
        raise click.UsageError("--user and --project cannot be used together")

    ctx.ensure_object(dict)
    ctx.obj["user"] = user
    ctx.obj["project"] = project
    ctx.obj["verbose"] = verbose


# ============================================================================
# A. SETUP
# ============================================================================

from bwc.commands import init

main.add_command(init.init)

# ============================================================================
# B. INSTALLATION
# ============================================================================

from bwc.commands import add, install, remove

main.add_command(add.add)
main.add_command(remove.remove)
main.add_command(install.install)

# ============================================================================
# C. DISCOVERY AND DIAGNOSTICS
# ============================================================================

from bwc.commands import info, ls, search, status

main.add_command(info.info)
main.add_command(ls.list_items, name="ls")
main.add_command(ls.list_items, name="list")  # Alias for ls
main.add_command(search.search)
main.add_command(status.status)


if __name__ == "__main__":
    main()
