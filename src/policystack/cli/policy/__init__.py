"""Policy document inspection and query commands."""
