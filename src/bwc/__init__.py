"""
bwc - Build with Claude CLI

Installs subagents, slash commands and MCP servers declared in bwc.config.json.
"""

__version__ = "0.4.0"
