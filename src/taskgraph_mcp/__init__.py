"""taskgraph-mcp: dependency graph engine for task lists."""
