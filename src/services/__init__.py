"""MCP surface for the scene code pipeline."""
