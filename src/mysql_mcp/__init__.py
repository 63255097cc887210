"""mysql-mcp - MySQL catalog introspection over the Model Context Protocol."""

__version__ = "0.1.0"
