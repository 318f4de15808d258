"""FastMCP middleware."""
