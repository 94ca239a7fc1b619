"""
Server configuration read from environment variables.

main.py loads a .env file (python-dotenv) before this module is used, so
values may come from either the process environment or that file.
"""
import os

_VALID_TRANSPORTS = ("stdio", "streamable-http")

_transport_mode = os.getenv("WORKSPACE_MCP_TRANSPORT", "stdio")

DEFAULT_TOKEN_FILE = os.path.join(
    os.path.expanduser("~"), ".config", "workspace-edit", "token.json"
)


def get_transport_mode() -> str:
    return _transport_mode


def set_transport_mode(mode: str) -> None:
    global _transport_mode
    if mode not in _VALID_TRANSPORTS:
        raise ValueError(
            f"Invalid transport mode '{mode}'. Must be one of: {list(_VALID_TRANSPORTS)}"
        )
    _transport_mode = mode


def get_port() -> int:
    return int(os.getenv("WORKSPACE_MCP_PORT", "8000"))


def get_token_file() -> str:
    return os.path.expanduser(os.getenv("GOOGLE_OAUTH_TOKEN_FILE", DEFAULT_TOKEN_FILE))


def get_max_batch_requests() -> int:
    """Maximum number of requests sent in a single batchUpdate call."""
    value = int(os.getenv("WORKSPACE_MCP_MAX_BATCH_REQUESTS", "50"))
    if value < 1:
        raise ValueError("WORKSPACE_MCP_MAX_BATCH_REQUESTS must be at least 1")
    return value
