"""Core engine modules for taskgraph-mcp."""
