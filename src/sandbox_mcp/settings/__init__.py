"""
Settings and configuration for the sandbox MCP server.

Example:
    ```python
    from sandbox_mcp.settings import ServerConfig

    # Load from a file
    config = ServerConfig.from_file("~/.sandbox-mcp/config.yaml")

    # Or from SANDBOX_MCP_* environment variables
    config = ServerConfig.from_env()
    print(config.policy.allowed_roots)
    ```
"""

from sandbox_mcp.settings.config import ServerConfig

__all__ = [
    "ServerConfig",
]
