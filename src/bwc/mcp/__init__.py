"""
MCP server installation: provider selection, inputs, execution and verification
"""
